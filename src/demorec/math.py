from __future__ import annotations

import math


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def catmull_rom(p0: float, p1: float, p2: float, p3: float, t: float) -> float:
    """Uniform Catmull-Rom segment between `p1` (t=0) and `p2` (t=1)."""
    t2 = t * t
    t3 = t2 * t
    return 0.5 * (
        (2.0 * p1)
        + (-p0 + p2) * t
        + (2.0 * p0 - 5.0 * p1 + 4.0 * p2 - p3) * t2
        + (-p0 + 3.0 * p1 - 3.0 * p2 + p3) * t3
    )


def normalize_degrees(degrees: float) -> float:
    """Map an angle into [0, 360)."""
    value = math.fmod(float(degrees), 360.0)
    if value < 0.0:
        value += 360.0
    if value >= 360.0:
        value -= 360.0
    return value


def wrap_degrees(degrees: float) -> float:
    """Map an angle into [-180, 180)."""
    return normalize_degrees(float(degrees) + 180.0) - 180.0


def lerp_angle(a: float, b: float, t: float) -> float:
    """Interpolate along the shorter arc; result is in [-180, 180)."""
    diff = float(b) - float(a)
    if diff > 180.0:
        diff -= 360.0
    elif diff < -180.0:
        diff += 360.0
    return wrap_degrees(float(a) + diff * float(t))
