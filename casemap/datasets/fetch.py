from __future__ import annotations

import logging
import os
from typing import Dict

from casemap.errors import UnknownDatasetKey
from .schema import DATASET

logger = logging.getLogger(__name__)


def fast_path_candidate(base: str) -> str:
    stem, _ = os.path.splitext(base)
    return stem + DATASET["fast_path_suffix"]


def resolve(key: str, transport, datasets: Dict[str, str]) -> str:
    """Return the file to load for ``key``, preferring the pre-converted row list.

    The probe is best effort: any failure means the spreadsheet is used.
    """
    base = datasets.get(key)
    if not base:
        raise UnknownDatasetKey(key)
    candidate = fast_path_candidate(base)
    if candidate == base:
        return base
    try:
        available = transport.exists(candidate)
    except Exception as exc:
        logger.warning("Probe for %s raised %s; using %s", candidate, exc, base)
        available = False
    if available:
        logger.info("Using pre-converted %s for %s", candidate, key)
        return candidate
    return base
