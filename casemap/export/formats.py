from __future__ import annotations

from typing import Optional

NO_DATA_COLOR = "EFEFEF"


def format_value(v: float) -> str:
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v)


def color_ramp(v: Optional[float], min_v: float, max_v: float) -> str:
    """Hex RGB (no '#') on a green-to-red ramp between ``min_v`` and ``max_v``."""
    if v is None:
        return NO_DATA_COLOR
    ratio = (v - min_v) / ((max_v - min_v) or 1)
    ratio = min(1.0, max(0.0, ratio))
    r = round(220 * ratio + 30 * (1 - ratio))
    g = round(230 - 180 * ratio)
    b = round(80 + 120 * (1 - ratio))
    return f"{r:02X}{g:02X}{b:02X}"
