"""Ring orientation helpers."""

from __future__ import annotations

from shapely.geometry import LinearRing

from .models import Coordinate


def planar_coordinates(ring: list[Coordinate]) -> list[tuple[float, float]]:
    """Drop any z or m values from a ring."""
    return [(p[0], p[1]) for p in ring]


def is_degenerate(ring: list[Coordinate]) -> bool:
    """A ring with fewer than three distinct vertices encloses no area."""
    return len(set(planar_coordinates(ring))) < 3


def is_clockwise(ring: list[Coordinate]) -> bool:
    if is_degenerate(ring):
        return False
    return not LinearRing(planar_coordinates(ring)).is_ccw


def rewind(ring: list[Coordinate]) -> list[Coordinate]:
    return list(reversed(ring))
