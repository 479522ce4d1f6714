"""Shared fixtures: an in-memory transport and spreadsheet builders."""

import io
import json
import sys
from pathlib import Path

import pytest
from openpyxl import Workbook

# Ensure repo root is on sys.path so `import casemap` works without an install
REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from casemap.errors import FetchFailed  # noqa: E402
from casemap.geo import boundaries  # noqa: E402


class FakeTransport:
    """Serves files from a dict; records every call for assertions."""

    def __init__(self, files=None, probe_error=False):
        self.files = dict(files or {})
        self.probe_error = probe_error
        self.calls = []
        self.on_get = {}

    def exists(self, name):
        self.calls.append(("exists", name))
        if self.probe_error:
            return False
        return name in self.files

    def get(self, name):
        self.calls.append(("get", name))
        hook = self.on_get.pop(name, None)
        if hook is not None:
            hook()
        if name not in self.files:
            raise FetchFailed(name, 404)
        return self.files[name]

    def gets(self):
        return [n for kind, n in self.calls if kind == "get"]


def xlsx_bytes(rows, extra_sheets=None) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "data"
    for row in rows:
        ws.append(row)
    for title, sheet_rows in (extra_sheets or {}).items():
        other = wb.create_sheet(title)
        for row in sheet_rows:
            other.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def json_bytes(rows) -> bytes:
    return json.dumps(rows).encode("utf-8")


GEOJSON = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "properties": {"NAME": "Ohio"},
            "geometry": {"type": "Polygon", "coordinates": [[[0, 0], [10, 0], [10, 10], [0, 10], [0, 0]]]},
        },
        {
            "type": "Feature",
            "properties": {"NAME": " Texas "},
            "geometry": {"type": "Polygon", "coordinates": [[[20, 0], [30, 0], [30, 5], [20, 5], [20, 0]]]},
        },
    ],
}


@pytest.fixture
def sample_rows() -> list:
    """Two states across two years, with a duplicate Ohio 2019 row."""
    return [
        {"State": "Ohio", "Year": 2019, "Cases": 10},
        {"State": "Ohio", "Year": 2019, "Cases": 5},
        {"State": "Ohio", "Year": 2020, "Cases": 7},
        {"State": "Texas", "Year": 2020, "Cases": 40},
    ]


@pytest.fixture
def cfg(tmp_path: Path) -> dict:
    return {
        "project": {"output_dir": "out"},
        "source": {"base_url": None, "data_dir": str(tmp_path), "fetch_timeout": 5,
                   "probe_timeout": 1, "retries": 0, "backoff": 0},
        "geography": {"file": "usa_states.geojson"},
        "datasets": {"HIV": "HIV_data.xlsx", "TB": "TB.xlsx", "Flu": "flu.csv"},
        "paths": {"base_dir": str(tmp_path), "data_dir": str(tmp_path), "output_dir": str(tmp_path / "out")},
    }


@pytest.fixture(autouse=True)
def _clear_geo_cache():
    boundaries.clear_cache()
    yield
    boundaries.clear_cache()
