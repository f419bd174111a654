# progress_tracker.py
# Tracks a user's live position against one route geometry.
# Call start() once per route, then on_position_sample() on every GPS update.

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Optional

from routing.errors import InvalidSampleError
from routing.geomath import nearest_point_on_polyline, remaining_distance
from routing.models import Coordinate, RouteGeometry, RouteSummary

from .models import ProgressState

logger = logging.getLogger(__name__)


class ProgressTracker:
    """
    Stateful progress tracker for a single navigation.

    Usage:
        tracker = ProgressTracker()
        tracker.start(result.geometry, result.summary)

        # Inside GPS loop:
        state = tracker.on_position_sample(position, timestamp)
    """

    def __init__(self, arrival_threshold_m: float = 15.0) -> None:
        self.arrival_threshold_m = arrival_threshold_m
        self._lock = threading.Lock()  # samples are processed one at a time
        self._geometry: Optional[RouteGeometry] = None
        self._average_speed: Optional[float] = None  # meters per second
        self._state: Optional[ProgressState] = None
        self._generation: int = 0
        self._active: bool = False

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def start(self, geometry: RouteGeometry, summary: RouteSummary, generation: int = 0) -> None:
        """Load a new route and reset state."""
        with self._lock:
            self._geometry = geometry
            if summary.distance_m > 0 and summary.duration_s > 0:
                self._average_speed = summary.distance_m / summary.duration_s
            else:
                self._average_speed = None
            self._state = None
            self._generation = generation
            self._active = True

    def stop(self) -> None:
        """Discard state. Samples are ignored until start() is called again."""
        with self._lock:
            self._geometry = None
            self._average_speed = None
            self._state = None
            self._active = False

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def state(self) -> Optional[ProgressState]:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def average_speed(self) -> Optional[float]:
        return self._average_speed

    # ------------------------------------------------------------------
    # Core method: call on every GPS update
    # ------------------------------------------------------------------

    def on_position_sample(
        self,
        position: Coordinate,
        timestamp: Optional[datetime] = None,
        generation: Optional[int] = None,
    ) -> Optional[ProgressState]:
        """
        Project the position onto the route and update remaining distance/time.

        Returns:
            the new ProgressState, or None when tracking is not active or
            `generation` is given and no longer matches the loaded route.

        Raises:
            InvalidSampleError: position outside the lat/lon range (state unchanged)
        """
        if not position.is_valid():
            raise InvalidSampleError(
                f"Rejected position sample: lat={position.latitude}, lon={position.longitude}"
            )
        timestamp = timestamp or datetime.now()

        with self._lock:
            if not self._active or self._geometry is None:
                logger.debug("Position sample ignored: tracking is not active")
                return None
            if generation is not None and generation != self._generation:
                logger.debug(f"Position sample for generation {generation} ignored (route is {self._generation})")
                return None

            points = self._geometry.points
            # full re-scan every time: backtracking may lower the segment index
            projection = nearest_point_on_polyline(points, position)
            remaining_m = remaining_distance(projection.segment_index, projection.point, points)

            if self._average_speed:
                remaining_s = remaining_m / self._average_speed
            else:
                remaining_s = 0.0

            # out-of-order samples are still projected but never move the clock back
            last_sample_at = timestamp
            if self._state is not None and self._state.last_sample_at > timestamp:
                last_sample_at = self._state.last_sample_at

            self._state = ProgressState(
                nearest_segment_index=projection.segment_index,
                remaining_distance_m=remaining_m,
                remaining_time_s=remaining_s,
                last_sample_at=last_sample_at,
                projected_point=projection.point,
                generation=self._generation,
                arrived=remaining_m <= self.arrival_threshold_m,
            )

            logger.debug(
                f"Progress: segment={projection.segment_index}, remaining={remaining_m:.0f}m, "
                f"eta={remaining_s:.0f}s, off_route={projection.distance_m:.0f}m"
            )
            return self._state
