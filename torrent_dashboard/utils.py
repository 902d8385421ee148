"""Small coercion and formatting helpers shared by the engine."""

from __future__ import annotations

import math


def to_number(value: object, default: float = 0.0) -> float:
    """Coerce a loosely typed backend value to a float.

    Mirrors what a dashboard does with ``Number(x) || 0``: numbers pass
    through, numeric strings are parsed, and anything else (``None``,
    garbage strings, containers, NaN) becomes ``default``. Infinite values
    are kept so seed-only ratios survive.

    Example:
        >>> to_number("12.5")
        12.5
        >>> to_number(None)
        0.0
    """
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        f = float(value)
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            return default
        try:
            f = float(s)
        except ValueError:
            return default
    else:
        return default
    if math.isnan(f):
        return default
    return f


def fmt_bytes(n: float) -> str:
    """Format bytes to human readable string using binary units (e.g. 1.2 GiB).

    Example:
        >>> fmt_bytes(1536)
        '1.5 KiB'
    """
    units = ["B", "KiB", "MiB", "GiB", "TiB"]
    i = 0
    f = float(to_number(n))
    while f >= 1024 and i < len(units) - 1:
        f /= 1024
        i += 1
    return f"{f:.1f} {units[i]}"


def fmt_speed(bytes_per_s: float) -> str:
    return f"{fmt_bytes(bytes_per_s)}/s"


def fmt_eta(eta_s: float | None) -> str:
    if eta_s is None:
        return "∞"
    secs = int(eta_s)
    d, r = divmod(secs, 86400)
    h, r = divmod(r, 3600)
    m, s = divmod(r, 60)
    if d:
        return f"{d}d {h}h"
    if h:
        return f"{h}h {m}m"
    return f"{m}m {s}s"
