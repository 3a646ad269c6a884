"""Geodesic measurements over a coordinate path (WGS84)."""

from collections.abc import Sequence

from pyproj import Geod

from .models import Coordinate
from .sequencer import sort_by_sequence

WGS84 = Geod(ellps="WGS84")


def path_length_km(points: Sequence[Coordinate]) -> float:
    """Length along the ellipsoid of the path in sequence order, in km."""
    ordered = sort_by_sequence(points)
    if len(ordered) < 2:
        return 0.0
    lons = [p.longitude for p in ordered]
    lats = [p.latitude for p in ordered]
    return WGS84.line_length(lons, lats) / 1000


def leg_lengths_km(points: Sequence[Coordinate]) -> list[float]:
    """Length of each consecutive leg of the path, in km."""
    ordered = sort_by_sequence(points)
    if len(ordered) < 2:
        return []
    lons = [p.longitude for p in ordered]
    lats = [p.latitude for p in ordered]
    return [d / 1000 for d in WGS84.line_lengths(lons, lats)]
