"""
Purpose: Presentation-neutral description of a route or progress update.
What it does:
- formats distance/time the way the info panel shows it ("12.3 km · 25 min")
- picks a path style hint per travel profile; straight-line estimates are
  drawn red and dashed so users can tell they are not a real road path

Rule: No drawing here. The map layer decides what to do with the hints.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from routing.models import RouteResult, TravelProfile
from tracking.models import ProgressState


@dataclass(frozen=True)
class PathStyle:
    color: str
    weight: int
    dash_array: Optional[str] = None  # None = solid line


PROFILE_STYLES = {
    TravelProfile.DRIVING: PathStyle(color="#0078ff", weight=5),
    TravelProfile.WALKING: PathStyle(color="#00b300", weight=5),
    TravelProfile.CYCLING: PathStyle(color="#2b3a66", weight=5),
    TravelProfile.HEAVY_GOODS_VEHICLE: PathStyle(color="#0078ff", weight=6),
}

APPROXIMATE_STYLE = PathStyle(color="#d9534f", weight=4, dash_array="6,6")


@dataclass(frozen=True)
class RouteInfo:
    distance_m: float
    time_s: float
    text: str
    approximate: bool
    style: PathStyle


def format_distance_time(distance_m: float, time_s: float) -> str:
    return f"{distance_m / 1000:.1f} km · {round(time_s / 60)} min"


def path_style(result: RouteResult) -> PathStyle:
    if result.approximate:
        return APPROXIMATE_STYLE
    return PROFILE_STYLES.get(result.profile or TravelProfile.DRIVING, PROFILE_STYLES[TravelProfile.DRIVING])


def describe(result: RouteResult, progress: Optional[ProgressState] = None) -> RouteInfo:
    """
    Route summary, or what is left of it once progress updates arrive.
    """
    if progress is not None:
        distance_m, time_s = progress.remaining_distance_m, progress.remaining_time_s
    else:
        distance_m, time_s = result.distance_m, result.duration_s

    text = format_distance_time(distance_m, time_s)
    if result.approximate:
        text += " (straight line, no route found)"

    return RouteInfo(
        distance_m=distance_m,
        time_s=time_s,
        text=text,
        approximate=result.approximate,
        style=path_style(result),
    )
