"""Tests for pipeline.py – end-to-end loads and the view's generation token."""

import json

import pytest

from casemap.errors import CodecUnavailable, FetchFailed, MalformedSource, NoUsableData, UnknownDatasetKey
from casemap.pipeline import DashboardView, ViewStatus, list_years, load_aggregates, load_state_detail

from conftest import GEOJSON, FakeTransport, json_bytes, xlsx_bytes


class RecordingRenderer:
    def __init__(self):
        self.rendered = []
        self.failures = []

    def render(self, result, geography):
        self.rendered.append((result, geography))

    def show_failure(self, message):
        self.failures.append(message)


class TestLoadAggregates:
    def test_spreadsheet_source(self, cfg):
        body = xlsx_bytes([["State", "Year", "Cases"], ["Ohio", 2019, 10], ["Ohio", 2019, 5], ["Texas", 2020, 3]])
        result = load_aggregates("HIV", "2019", cfg, FakeTransport({"HIV_data.xlsx": body}))
        assert result.source == "HIV_data.xlsx"
        assert result.dataset == "HIV"
        assert result.selected_year == 2019
        assert result.pivot["Ohio"][2019] == 15
        assert result.total == 15

    def test_fast_path_preferred(self, cfg, sample_rows):
        transport = FakeTransport({"HIV_data.json": json_bytes(sample_rows), "HIV_data.xlsx": b"unused"})
        result = load_aggregates("HIV", None, cfg, transport)
        assert result.source == "HIV_data.json"
        assert transport.gets() == ["HIV_data.json"]
        assert result.selected_year == 2020

    def test_csv_source(self, cfg):
        transport = FakeTransport({"flu.csv": b"State,Year,Cases\nOhio,2019,4\n"})
        result = load_aggregates("Flu", 2019, cfg, transport)
        assert result.snapshot == {"Ohio": 4}

    def test_unknown_key(self, cfg):
        with pytest.raises(UnknownDatasetKey):
            load_aggregates("Measles", None, cfg, FakeTransport())

    def test_fetch_failure(self, cfg):
        with pytest.raises(FetchFailed):
            load_aggregates("HIV", None, cfg, FakeTransport())

    def test_parse_failure_not_retried_against_base(self, cfg):
        transport = FakeTransport({"HIV_data.json": b"{broken", "HIV_data.xlsx": b"unused"})
        with pytest.raises(MalformedSource):
            load_aggregates("HIV", None, cfg, transport)
        assert transport.gets() == ["HIV_data.json"]

    def test_codec_failure(self, cfg):
        class MissingCodec:
            def read_first_sheet(self, body):
                raise CodecUnavailable("spreadsheet support missing")

        with pytest.raises(CodecUnavailable):
            load_aggregates("HIV", None, cfg, FakeTransport({"HIV_data.xlsx": b"x"}), MissingCodec())

    def test_no_usable_data(self, cfg):
        transport = FakeTransport({"HIV_data.json": json_bytes([{"state": "Maine"}])})
        with pytest.raises(NoUsableData):
            load_aggregates("HIV", None, cfg, transport)


class TestListYearsAndStateDetail:
    def test_list_years(self, cfg, sample_rows):
        transport = FakeTransport({"HIV_data.json": json_bytes(sample_rows)})
        assert list_years("HIV", cfg, transport) == [2019, 2020]

    def test_state_detail(self, cfg, sample_rows):
        transport = FakeTransport({"HIV_data.json": json_bytes(sample_rows)})
        detail = load_state_detail("HIV", "ohio", cfg, transport)
        assert detail.series == [(2019, 15), (2020, 7)]


class TestDashboardView:
    def _transport(self, sample_rows):
        return FakeTransport({
            "HIV_data.json": json_bytes(sample_rows),
            "TB.json": json_bytes([{"State": "Utah", "Year": 2001, "Cases": 4}]),
            "usa_states.geojson": json.dumps(GEOJSON).encode(),
        })

    def test_renders_result_with_geography(self, cfg, sample_rows):
        renderer = RecordingRenderer()
        view = DashboardView(cfg, self._transport(sample_rows), renderer)
        result = view.refresh("HIV", 2019)
        assert view.status is ViewStatus.READY
        assert renderer.rendered[0][0] is result
        assert list(renderer.rendered[0][1]["state"]) == ["Ohio", "Texas"]

    def test_geography_fetched_once(self, cfg, sample_rows):
        transport = self._transport(sample_rows)
        view = DashboardView(cfg, transport, RecordingRenderer())
        view.refresh("HIV", 2019)
        view.refresh("TB", None)
        assert transport.gets().count("usa_states.geojson") == 1
        assert transport.gets().count("HIV_data.json") == 1

    def test_failure_renders_nothing(self, cfg):
        renderer = RecordingRenderer()
        view = DashboardView(cfg, FakeTransport(), renderer, geography=False)
        assert view.refresh("HIV") is None
        assert view.status is ViewStatus.FAILED
        assert renderer.rendered == []
        assert renderer.failures and renderer.failures[0].startswith("Error: Failed to fetch")

    def test_geography_failure_is_a_failed_load(self, cfg, sample_rows):
        renderer = RecordingRenderer()
        transport = FakeTransport({"HIV_data.json": json_bytes(sample_rows)})
        view = DashboardView(cfg, transport, renderer)
        view.refresh("HIV")
        assert view.status is ViewStatus.FAILED
        assert renderer.rendered == []

    def test_superseded_load_is_discarded(self, cfg, sample_rows):
        renderer = RecordingRenderer()
        transport = self._transport(sample_rows)
        view = DashboardView(cfg, transport, renderer, geography=False)
        # a newer selection arrives while the HIV body is still in flight
        transport.on_get["HIV_data.json"] = lambda: view.refresh("TB")

        assert view.refresh("HIV", 2019) is None
        assert [r.dataset for r, _ in renderer.rendered] == ["TB"]
        assert view.result.dataset == "TB"
        assert view.status is ViewStatus.READY

    def test_superseded_failure_is_discarded(self, cfg, sample_rows):
        renderer = RecordingRenderer()
        transport = self._transport(sample_rows)
        transport.files["HIV_data.json"] = b"{broken"
        view = DashboardView(cfg, transport, renderer, geography=False)
        transport.on_get["HIV_data.json"] = lambda: view.refresh("TB")

        view.refresh("HIV")
        assert renderer.failures == []
        assert view.status is ViewStatus.READY
