"""
Purpose: Pure geometry helpers for routing and progress tracking.
What it does:
- great-circle (haversine) distance between two coordinates
- nearest point on a segment (planar lat/lon projection, clamped)
- nearest point + segment index on a polyline
- remaining distance along a polyline from a projected point

Limitation: the projection treats lat/lon as planar. That is fine for
tracking at city/country scale but not geodesically exact on very long
segments.

Rule: No state, no I/O.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from .models import Coordinate

EARTH_RADIUS_M = 6371000.0  # meters


@dataclass(frozen=True)
class PolylineProjection:
    segment_index: int  # index of the segment start vertex
    point: Coordinate  # projected point on that segment
    distance_m: float  # from the query point to `point`


def distance(a: Coordinate, b: Coordinate) -> float:
    """Haversine distance in meters."""
    lat1, lon1, lat2, lon2 = map(
        math.radians, [a.latitude, a.longitude, b.latitude, b.longitude]
    )
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    )
    # rounding can push h slightly outside [0, 1] near antipodes
    h = min(1.0, max(0.0, h))
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c


def nearest_point_on_segment(a: Coordinate, b: Coordinate, p: Coordinate) -> Coordinate:
    """Project p onto segment ab, clamped to t in [0, 1]."""
    ab_lat = b.latitude - a.latitude
    ab_lon = b.longitude - a.longitude
    ab2 = ab_lat * ab_lat + ab_lon * ab_lon
    if ab2 == 0:
        return a

    ap_lat = p.latitude - a.latitude
    ap_lon = p.longitude - a.longitude
    t = (ap_lat * ab_lat + ap_lon * ab_lon) / ab2
    t = max(0.0, min(1.0, t))

    if t == 0.0:
        return a
    if t == 1.0:
        return b
    return Coordinate(a.latitude + ab_lat * t, a.longitude + ab_lon * t)


def nearest_point_on_polyline(points: Sequence[Coordinate], p: Coordinate) -> PolylineProjection:
    """
    Scan every segment and keep the one whose projected point is closest to p.
    Exact ties keep the lowest segment index.
    """
    if len(points) < 2:
        raise ValueError("A polyline needs at least two points.")

    best = None
    for index in range(len(points) - 1):
        projected = nearest_point_on_segment(points[index], points[index + 1], p)
        d = distance(projected, p)
        # strict comparison: first segment wins on ties
        if best is None or d < best.distance_m:
            best = PolylineProjection(segment_index=index, point=projected, distance_m=d)
    return best


def remaining_distance(segment_index: int, projected_point: Coordinate, points: Sequence[Coordinate]) -> float:
    """
    projected_point -> points[segment_index + 1], then every full segment to the end.
    """
    if segment_index < 0 or segment_index >= len(points) - 1:
        return 0.0

    total = distance(projected_point, points[segment_index + 1])
    for index in range(segment_index + 1, len(points) - 1):
        total += distance(points[index], points[index + 1])
    return total


def path_length(points: Sequence[Coordinate]) -> float:
    return sum(distance(points[i], points[i + 1]) for i in range(len(points) - 1))
