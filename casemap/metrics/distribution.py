from __future__ import annotations

import math
from typing import List, Optional, Sequence, Tuple

MIN_BINS = 4
MAX_BINS = 12


def format_tick(v: Optional[float]) -> str:
    """Compact axis label: 1500 -> '1.5k', 2000000 -> '2M'."""
    if v is None:
        return ""
    if abs(v) >= 1e6:
        return f"{v / 1e6:.1f}".removesuffix(".0") + "M"
    if abs(v) >= 1e3:
        return f"{v / 1e3:.1f}".removesuffix(".0") + "k"
    return str(v)


def round_up_nice(n: float) -> float:
    if not math.isfinite(n):
        return n
    if n <= 10:
        return math.ceil(n)
    p = 10 ** math.floor(math.log10(n))
    return math.ceil(n / p) * p


def nice_suggested_max(values: Sequence[float]) -> float:
    max_val = max(values) if values else 0
    if not math.isfinite(max_val) or max_val <= 0:
        return 10
    raw = max_val * 1.15
    p = 10 ** math.floor(math.log10(raw))
    return math.ceil(raw / p) * p


def _bin_count(values: Sequence[float]) -> int:
    n = len(values) or 1
    iqr = 0.0
    if n >= 4:
        s = sorted(values)
        q1 = s[math.floor((len(s) - 1) * 0.25)]
        q3 = s[math.floor((len(s) - 1) * 0.75)]
        iqr = q3 - q1
    sqrt_rule = round(math.sqrt(n))
    if iqr > 0:
        h = 2 * iqr / n ** (1 / 3)
        spread = (max(values) - min(values)) or 1
        bins = round(spread / h) or sqrt_rule
    else:
        bins = sqrt_rule
    return max(MIN_BINS, min(MAX_BINS, bins))


def histogram(values: Sequence[float]) -> Tuple[List[str], List[int]]:
    """Freedman-Diaconis histogram, clamped to 4..12 bins."""
    if not values:
        return [], []
    bins = _bin_count(values)
    lo, hi = min(values), max(values)
    width = (hi - lo) / bins or 1
    counts = [0] * bins
    for v in values:
        counts[min(bins - 1, math.floor((v - lo) / width))] += 1
    labels = [f"{round(lo + i * width)}–{round(lo + (i + 1) * width)}" for i in range(bins)]
    return labels, counts
