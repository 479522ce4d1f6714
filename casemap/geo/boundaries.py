from __future__ import annotations

import io
import logging
from typing import Dict, Mapping, Optional, Tuple

import geopandas as gpd
import pandas as pd

from casemap.errors import MalformedSource

logger = logging.getLogger(__name__)

NAME_FIELDS = ("NAME", "name", "NAME_1")

# Boundary documents are static; each one is read once per process.
_STATES_CACHE: Dict[str, gpd.GeoDataFrame] = {}


def clear_cache() -> None:
    _STATES_CACHE.clear()


def _read_geojson(body: bytes, name: str) -> gpd.GeoDataFrame:
    try:
        gdf = gpd.read_file(io.BytesIO(body))
    except Exception as exc:
        raise MalformedSource(f"{name} could not be read as a boundary document: {exc}") from exc
    name_col = next((c for c in NAME_FIELDS if c in gdf.columns), None)
    if name_col is None:
        raise MalformedSource(f"{name} has no state name property (expected one of {', '.join(NAME_FIELDS)})")
    gdf["state"] = gdf[name_col].astype(str).str.strip()
    return gdf


def load_states(transport, name: str = "usa_states.geojson") -> gpd.GeoDataFrame:
    if name in _STATES_CACHE:
        return _STATES_CACHE[name]
    gdf = _read_geojson(transport.get(name), name)
    logger.info("Loaded %d boundary features from %s", len(gdf), name)
    _STATES_CACHE[name] = gdf
    return gdf


def join_snapshot(gdf: gpd.GeoDataFrame, snapshot: Mapping[str, float]) -> gpd.GeoDataFrame:
    out = gdf.copy()
    out["cases"] = pd.Series([snapshot.get(s) for s in out["state"]], index=out.index, dtype=object)
    missing = sorted(set(snapshot) - set(out["state"]))
    if missing:
        logger.warning("States with data but no boundary: %s", missing)
    return out


def find_state(gdf: gpd.GeoDataFrame, state_name: str) -> Optional[pd.Series]:
    wanted = state_name.strip().lower()
    matches = gdf[gdf["state"].str.lower() == wanted]
    if matches.empty:
        return None
    return matches.iloc[0]


def state_bounds(gdf: gpd.GeoDataFrame, state_name: str, pad: float = 0.12) -> Optional[Tuple[float, float, float, float]]:
    feature = find_state(gdf, state_name)
    if feature is None:
        logger.warning("State %s not found in boundary document", state_name)
        return None
    minx, miny, maxx, maxy = feature.geometry.bounds
    dx = (maxx - minx) * pad
    dy = (maxy - miny) * pad
    return (minx - dx, miny - dy, maxx + dx, maxy + dy)
