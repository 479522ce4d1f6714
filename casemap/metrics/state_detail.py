from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .normalize import Number, STATE_KEYS, normalize, first_present


@dataclass
class StateDetail:
    state: str
    rows: List[Dict[str, Any]] = field(default_factory=list)
    columns: List[str] = field(default_factory=list)
    series: List[Tuple[int, Number]] = field(default_factory=list)

    @property
    def latest(self) -> Optional[Tuple[int, Number]]:
        return self.series[-1] if self.series else None


def _row_state(record: Dict[str, Any]) -> str:
    value = first_present(record, STATE_KEYS)
    return str(value).strip().lower() if value is not None else ""


def state_detail(records: List[Dict[str, Any]], state_name: str) -> StateDetail:
    wanted = state_name.strip().lower()
    if not wanted:
        return StateDetail(state="")
    rows = [r for r in records if _row_state(r) == wanted]
    if not rows:
        rows = [r for r in records if wanted in _row_state(r)]
    if not rows:
        return StateDetail(state=state_name.strip())

    by_year: Dict[int, Number] = {}
    for record in rows:
        obs = normalize(record)
        if obs is None:
            continue
        by_year[obs.year] = by_year.get(obs.year, 0) + obs.cases
    return StateDetail(
        state=state_name.strip(),
        rows=rows,
        columns=list(rows[0].keys()),
        series=sorted(by_year.items()),
    )
