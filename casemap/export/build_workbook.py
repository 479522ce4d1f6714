from __future__ import annotations

from typing import Dict, Optional

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import PatternFill
from openpyxl.utils import get_column_letter

from casemap.metrics.aggregate import AggregateResult, ValueRange
from casemap.metrics.distribution import histogram
from .formats import color_ramp


def write_sheet(
    wb: Workbook,
    sheet_name: str,
    df: pd.DataFrame,
    value_range: Optional[ValueRange] = None,
) -> None:
    """Append ``df`` as a new sheet with a frozen header row.

    With ``value_range`` every cell right of the label column is filled
    from the choropleth ramp, so the sheet reads as the state x year heatmap.
    """
    ws = wb.create_sheet(sheet_name)
    ws.append([str(c) for c in df.columns])
    for values in df.astype(object).where(pd.notnull(df), None).itertuples(index=False, name=None):
        ws.append(list(values))
    ws.freeze_panes = "A2"

    if value_range is not None:
        for row in ws.iter_rows(min_row=2, min_col=2):
            for cell in row:
                color = color_ramp(cell.value, value_range.min, value_range.max)
                cell.fill = PatternFill(start_color=color, end_color=color, fill_type="solid")

    # Label column sized to the longest state name, value columns to their header.
    for idx, col in enumerate(ws.iter_cols(max_row=min(ws.max_row, 60)), start=1):
        longest = max((len(str(c.value)) for c in col if c.value is not None), default=0)
        width = longest + 2 if idx == 1 else max(10, longest + 2)
        ws.column_dimensions[get_column_letter(idx)].width = min(width, 40)


def build_tables(result: AggregateResult) -> Dict[str, pd.DataFrame]:
    snapshot = pd.DataFrame(
        [{"state": s, "year": result.selected_year, "cases": v} for s, v in result.snapshot.items()]
    )
    state_year = pd.DataFrame(
        [[state] + [result.pivot[state].get(y, 0) for y in result.years] for state in result.states],
        columns=["State"] + [str(y) for y in result.years],
    )
    year_series = pd.DataFrame(result.year_series, columns=["year", "total_cases"])
    labels, counts = histogram(list(result.snapshot.values()))
    hist = pd.DataFrame({"bin": labels, "states": counts})
    return {
        "snapshot": snapshot,
        "state_year": state_year,
        "year_series": year_series,
        "histogram": hist,
    }


def build_workbook(output_path: str, result: AggregateResult) -> None:
    wb = Workbook()
    if "Sheet" in wb.sheetnames:
        wb.remove(wb["Sheet"])

    for sheet_name, df in build_tables(result).items():
        shade = result.value_range if sheet_name == "state_year" else None
        write_sheet(wb, sheet_name, df, shade)

    wb.save(output_path)
