from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


def today_str() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def export_dir(cfg: dict, dataset: str, date_str: Optional[str] = None) -> str:
    """``<output_dir>/<dataset>/<UTC date>``, created on first use."""
    path = Path(cfg["paths"]["output_dir"]) / dataset / (date_str or today_str())
    path.mkdir(parents=True, exist_ok=True)
    return str(path)


def export_path(cfg: dict, dataset: str, year: int, suffix: str, date_str: Optional[str] = None) -> str:
    return str(Path(export_dir(cfg, dataset, date_str)) / f"{dataset}_{year}{suffix}")
