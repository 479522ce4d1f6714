from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from casemap.errors import NoUsableData
from .normalize import Number, NormalizedObservation, normalize, to_year

logger = logging.getLogger(__name__)

PivotTable = Dict[str, Dict[int, Number]]


@dataclass(frozen=True)
class ValueRange:
    min: Number = 0
    max: Number = 0


@dataclass
class AggregateResult:
    pivot: PivotTable
    years: List[int]
    states: List[str]
    selected_year: int
    snapshot: Dict[str, Number]
    value_range: ValueRange
    year_series: List[Tuple[int, Number]]
    total: Number
    observations: int = 0
    dropped: int = 0
    unreported: int = 0
    dataset: Optional[str] = None
    source: Optional[str] = None


def _as_number(value: Any) -> Number:
    num = float(value)
    return int(num) if num.is_integer() else num


def normalize_all(records: Iterable[Dict[str, Any]]) -> Tuple[List[NormalizedObservation], int]:
    observations: List[NormalizedObservation] = []
    dropped = 0
    for record in records:
        obs = normalize(record)
        if obs is None:
            dropped += 1
            continue
        observations.append(obs)
    return observations, dropped


def resolve_year(requested: Any, years: List[int]) -> int:
    """Requested year when it has data, else the latest year."""
    if not years:
        raise NoUsableData("No years available to select from")
    year = to_year(requested) if requested is not None else None
    if year in years:
        return year
    if requested not in (None, ""):
        logger.info("Year %s not in data; using latest year %s", requested, years[-1])
    return years[-1]


def build_pivot(observations: List[NormalizedObservation]) -> PivotTable:
    df = pd.DataFrame(
        [(o.state, o.year, o.cases) for o in observations],
        columns=["state", "year", "cases"],
    )
    grouped = df.groupby(["state", "year"], sort=True)["cases"].sum()
    pivot: PivotTable = {state: {} for state in sorted(df["state"].unique())}
    for (state, year), cases in grouped.items():
        pivot[state][int(year)] = _as_number(cases)
    return pivot


def year_totals(pivot: PivotTable, years: List[int]) -> List[Tuple[int, Number]]:
    series: List[Tuple[int, Number]] = []
    for year in years:
        series.append((year, _as_number(sum(row.get(year, 0) for row in pivot.values()))))
    return series


def aggregate(records: Iterable[Dict[str, Any]], selected_year: Any = None) -> AggregateResult:
    observations, dropped = normalize_all(records)
    if dropped:
        logger.warning("Dropped %d rows without a usable state or year", dropped)
    if not observations:
        raise NoUsableData("No rows with a usable state and year")

    pivot = build_pivot(observations)
    states = sorted(pivot)
    years = sorted({o.year for o in observations})
    year = resolve_year(selected_year, years)

    snapshot = {state: pivot[state].get(year, 0) for state in states}
    values = list(snapshot.values())
    value_range = ValueRange(min(values), max(values)) if values else ValueRange()

    return AggregateResult(
        pivot=pivot,
        years=years,
        states=states,
        selected_year=year,
        snapshot=snapshot,
        value_range=value_range,
        year_series=year_totals(pivot, years),
        total=_as_number(sum(values)),
        observations=len(observations),
        dropped=dropped,
        unreported=sum(1 for o in observations if not o.reported),
    )
