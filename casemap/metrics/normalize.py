from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, Optional, Union

Number = Union[int, float]

STATE_KEYS = ("State", "state")
YEAR_KEYS = ("Year", "year")
CASES_KEYS = ("Cases", "cases")
YEAR_SCAN_MIN = 1900
YEAR_SCAN_MAX = 2100


@dataclass(frozen=True)
class NormalizedObservation:
    state: str
    year: int
    cases: Number
    # False when the case count was missing or unparseable and read as 0
    reported: bool = True


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def first_present(record: Dict[str, Any], keys: Iterable[str]) -> Any:
    """First present value among ``keys``; exact-case names are listed first."""
    for key in keys:
        value = record.get(key)
        if not _is_blank(value):
            return value
    return None


def to_number(value: Any) -> Optional[Number]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        value = value.strip().replace(",", "")
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(num):
        return None
    return int(num) if num.is_integer() else num


def to_year(value: Any) -> Optional[int]:
    if isinstance(value, date):
        return value.year
    num = to_number(value)
    if num is None:
        return None
    return int(num)


def _scan_for_year(record: Dict[str, Any]) -> Optional[int]:
    skip = set(STATE_KEYS) | set(YEAR_KEYS) | set(CASES_KEYS)
    for key, value in record.items():
        if key in skip:
            continue
        if isinstance(value, date):
            candidate: Optional[Number] = value.year
        else:
            candidate = to_number(value)
        if candidate is not None and YEAR_SCAN_MIN < candidate < YEAR_SCAN_MAX:
            return int(candidate)
    return None


def normalize(record: Dict[str, Any]) -> Optional[NormalizedObservation]:
    """Typed observation for ``record``, or None when it has no usable state or year."""
    raw_state = first_present(record, STATE_KEYS)
    if raw_state is None:
        return None
    state = str(raw_state).strip()
    if not state:
        return None

    raw_year = first_present(record, YEAR_KEYS)
    year = to_year(raw_year) if raw_year is not None else _scan_for_year(record)
    if year is None:
        return None

    cases = to_number(first_present(record, CASES_KEYS))
    reported = cases is not None and cases >= 0
    return NormalizedObservation(state=state, year=year, cases=cases if reported else 0, reported=reported)
