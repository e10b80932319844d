"""Seismic-like colour map for scalar values."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Color:
    """An RGB colour with channels in ``[0, 1]``."""

    r: float = 1.0
    g: float = 1.0
    b: float = 1.0


def get_color(value: float, min_value: float, max_value: float) -> Color:
    """Map ``value`` to a blue-white-red colour over ``[min_value, max_value]``.

    A value of exactly zero is treated as unknown and mapped to white.
    """
    if min_value >= max_value:
        raise ValueError("min_value must be lower than max_value")
    if value == 0.0:
        return Color()
    value = min(max(value, min_value), max_value)
    dv = max_value - min_value
    t = 2.0 * (value - min_value) / dv
    if value < min_value + 0.5 * dv:
        return Color(r=t, g=t, b=1.0)
    return Color(r=1.0, g=2.0 - t, b=2.0 - t)