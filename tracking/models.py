"""
Purpose: Data structures for live progress tracking.
What it does:
- PositionSample: one fix from the position source (lat, lon, timestamp, accuracy)
- ProgressState: where the user is along the active route and what is left

Rule: No geometry here. Models only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from routing.models import Coordinate


@dataclass(frozen=True)
class PositionSample:
    latitude: float
    longitude: float
    timestamp: datetime = field(default_factory=datetime.now)
    accuracy_m: Optional[float] = None

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)


@dataclass(frozen=True)
class ProgressState:
    """
    Snapshot produced by ProgressTracker for one accepted sample.
    Tied to the route generation it was computed against.
    """
    nearest_segment_index: int
    remaining_distance_m: float
    remaining_time_s: float
    last_sample_at: datetime
    projected_point: Coordinate
    generation: int = 0
    arrived: bool = False
