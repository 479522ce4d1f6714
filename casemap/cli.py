from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from casemap import config as config_mod
from casemap.errors import DatasetError
from casemap.export.build_workbook import build_workbook
from casemap.export.csv_export import pivot_to_csv, write_csv
from casemap.geo.boundaries import join_snapshot
from casemap.io.cache import export_path
from casemap.io.http import build_transport
from casemap.metrics.aggregate import AggregateResult
from casemap.metrics.distribution import format_tick
from casemap.pipeline import DashboardView, list_years, load_aggregates, load_state_detail

logger = logging.getLogger("casemap")


def _setup_logging() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")


class TextRenderer:
    def render(self, result: AggregateResult, geography) -> None:
        print(f"Total USA Cases ({result.selected_year}): {result.total:,}")
        print(f"Color scale from {result.value_range.min} → {result.value_range.max}")
        if geography is not None:
            joined = join_snapshot(geography, result.snapshot)
            print(f"States drawn: {int(joined['cases'].notna().sum())} of {len(joined)}")
        print("Trend: " + ", ".join(f"{y} {format_tick(v)}" for y, v in result.year_series))

    def show_failure(self, message: str) -> None:
        print("Failed to load data")
        print(message)


def summary(cfg, dataset: str, year: Optional[str], geo: bool) -> int:
    view = DashboardView(cfg, build_transport(cfg), TextRenderer(), geography=geo)
    return 0 if view.refresh(dataset, year) is not None else 1


def years(cfg, dataset: str) -> int:
    found = list_years(dataset, cfg)
    print(" ".join(str(y) for y in found) if found else "No years")
    return 0


def state(cfg, dataset: str, state_name: str) -> int:
    detail = load_state_detail(dataset, state_name, cfg)
    if not detail.rows:
        print("No data for state")
        return 0
    latest = detail.latest
    if latest is not None:
        print(f"Latest ({latest[0]}): {latest[1]:,} cases")
    for year, cases in detail.series:
        print(f"{year}\t{cases}")
    return 0


def export_csv(cfg, dataset: str, year: Optional[str], out: Optional[str]) -> int:
    result = load_aggregates(dataset, year, cfg)
    out_path = out or export_path(cfg, dataset, result.selected_year, ".csv")
    write_csv(pivot_to_csv(result.pivot, result.years, result.states), out_path)
    logger.info("Wrote %s", out_path)
    return 0


def export_xlsx(cfg, dataset: str, year: Optional[str], out: Optional[str]) -> int:
    result = load_aggregates(dataset, year, cfg)
    out_path = out or export_path(cfg, dataset, result.selected_year, ".xlsx")
    build_workbook(out_path, result)
    logger.info("Wrote workbook %s", out_path)
    return 0


def main(argv=None) -> None:
    _setup_logging()
    parser = argparse.ArgumentParser(prog="casemap", description="Disease case-count aggregation by state and year.")
    parser.add_argument("--config", help="Path to config YAML (defaults built in)")
    sub = parser.add_subparsers(dest="cmd", required=True)

    summary_cmd = sub.add_parser("summary", help="Aggregate a dataset and print the dashboard summary.")
    summary_cmd.add_argument("--dataset", required=True)
    summary_cmd.add_argument("--year")
    summary_cmd.add_argument("--no-geo", action="store_true", help="Skip loading the boundary document")

    years_cmd = sub.add_parser("years", help="List the years present in a dataset.")
    years_cmd.add_argument("--dataset", required=True)

    state_cmd = sub.add_parser("state", help="Per-year detail for one state.")
    state_cmd.add_argument("--dataset", required=True)
    state_cmd.add_argument("--state", required=True)

    for name, help_text in (("export-csv", "Write the state x year table as CSV."), ("export-xlsx", "Write the aggregate workbook.")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("--dataset", required=True)
        cmd.add_argument("--year")
        cmd.add_argument("--out")

    args = parser.parse_args(argv)
    cfg = config_mod.load_config(args.config)

    try:
        if args.cmd == "summary":
            code = summary(cfg, args.dataset, args.year, not args.no_geo)
        elif args.cmd == "years":
            code = years(cfg, args.dataset)
        elif args.cmd == "state":
            code = state(cfg, args.dataset, args.state)
        elif args.cmd == "export-csv":
            code = export_csv(cfg, args.dataset, args.year, args.out)
        else:
            code = export_xlsx(cfg, args.dataset, args.year, args.out)
    except DatasetError as exc:
        logger.error("%s: %s", exc.kind, exc)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
