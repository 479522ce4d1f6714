from __future__ import annotations

from typing import Iterable, Mapping

from .formats import format_value


def _quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def pivot_to_csv(pivot: Mapping[str, Mapping[int, float]], years: Iterable[int], states: Iterable[str]) -> str:
    """State x year table as CSV text; absent cells are written as 0."""
    years = list(years)
    lines = [",".join(["State"] + [str(y) for y in years])]
    for state in states:
        row = pivot.get(state, {})
        cells = [_quote(state)] + [format_value(row.get(y) or 0) for y in years]
        lines.append(",".join(cells))
    return "\n".join(lines)


def write_csv(text: str, out_path: str) -> str:
    with open(out_path, "w", encoding="utf-8", newline="") as f:
        f.write(text)
    return out_path
