from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Tuple

from casemap.config import load_config
from casemap.datasets.fetch import resolve
from casemap.datasets.parse import RawRecord, parse
from casemap.errors import DatasetError
from casemap.geo.boundaries import load_states
from casemap.io.http import build_transport
from casemap.metrics.aggregate import AggregateResult, aggregate, normalize_all
from casemap.metrics.state_detail import StateDetail, state_detail

logger = logging.getLogger(__name__)


def _context(cfg: Optional[Dict[str, Any]], transport) -> Tuple[Dict[str, Any], Any]:
    if cfg is None:
        cfg = load_config()
    if transport is None:
        transport = build_transport(cfg)
    return cfg, transport


def fetch_rows(dataset_key: str, cfg=None, transport=None, codec=None) -> Tuple[str, List[RawRecord]]:
    cfg, transport = _context(cfg, transport)
    name = resolve(dataset_key, transport, cfg["datasets"])
    logger.info("Loading %s from %s", dataset_key, name)
    return name, parse(name, transport, codec)


def load_aggregates(
    dataset_key: str,
    requested_year: Any = None,
    cfg: Optional[Dict[str, Any]] = None,
    transport=None,
    codec=None,
) -> AggregateResult:
    """Fetch, parse and aggregate one dataset.

    Raises only DatasetError subclasses: UnknownDatasetKey, FetchFailed,
    MalformedSource, CodecUnavailable or NoUsableData.
    """
    name, records = fetch_rows(dataset_key, cfg, transport, codec)
    result = aggregate(records, requested_year)
    result.dataset = dataset_key
    result.source = name
    logger.info(
        "%s %s: %d states, %d observations, total %s",
        dataset_key,
        result.selected_year,
        len(result.states),
        result.observations,
        result.total,
    )
    return result


def list_years(dataset_key: str, cfg=None, transport=None, codec=None) -> List[int]:
    _, records = fetch_rows(dataset_key, cfg, transport, codec)
    observations, _ = normalize_all(records)
    return sorted({o.year for o in observations})


def load_state_detail(dataset_key: str, state_name: str, cfg=None, transport=None, codec=None) -> StateDetail:
    _, records = fetch_rows(dataset_key, cfg, transport, codec)
    detail = state_detail(records, state_name)
    if not detail.rows:
        logger.warning("No %s rows for state %s", dataset_key, state_name)
    return detail


class ViewStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class Renderer(Protocol):
    def render(self, result: AggregateResult, geography) -> None:
        ...

    def show_failure(self, message: str) -> None:
        ...


class DashboardView:
    """One dashboard view: at most one load is allowed to publish at a time.

    Each refresh takes a generation token; a load whose token is no longer
    current when it finishes is discarded instead of rendered.
    """

    def __init__(self, cfg: Dict[str, Any], transport, renderer: Renderer, codec=None, geography: bool = True) -> None:
        self.cfg = cfg
        self.transport = transport
        self.renderer = renderer
        self.codec = codec
        self.geography = geography
        self.status = ViewStatus.IDLE
        self.result: Optional[AggregateResult] = None
        self.message = ""
        self._generation = 0

    def _is_current(self, token: int) -> bool:
        return token == self._generation

    def refresh(self, dataset_key: str, requested_year: Any = None) -> Optional[AggregateResult]:
        self._generation += 1
        token = self._generation
        self.status = ViewStatus.LOADING
        self.message = f"Dataset: {dataset_key} · Year: {requested_year if requested_year is not None else 'latest'}"

        try:
            result = load_aggregates(dataset_key, requested_year, self.cfg, self.transport, self.codec)
            geo = load_states(self.transport, self.cfg["geography"]["file"]) if self.geography else None
        except DatasetError as exc:
            if not self._is_current(token):
                logger.warning("Discarding superseded failure for %s: %s", dataset_key, exc)
                return None
            logger.error("Load failed for %s: %s", dataset_key, exc)
            self.status = ViewStatus.FAILED
            self.result = None
            self.message = f"Error: {exc}"
            self.renderer.show_failure(self.message)
            return None

        if not self._is_current(token):
            logger.warning("Discarding superseded result for %s", dataset_key)
            return None

        self.status = ViewStatus.READY
        self.result = result
        self.message = f"Dataset: {dataset_key} · Year: {result.selected_year}"
        self.renderer.render(result, geo)
        return result
