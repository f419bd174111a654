"""
Purpose: Notification channel from the navigation core to the presentation layer.
What it does:
Defines the callbacks a map UI implements to render results. The core never
touches presentation state directly; it only calls these.
"""

import logging

from routing.models import RouteResult
from tracking.models import ProgressState

logger = logging.getLogger(__name__)


class NavigationObserver:
    """
    Base observer. Every callback is a no-op so implementations
    only override what they render.
    """

    def on_route_resolved(self, result: RouteResult) -> None:
        pass

    def on_progress_updated(self, state: ProgressState) -> None:
        pass

    def on_resolution_failed(self, result: RouteResult) -> None:
        """Every provider failed; `result` is the straight-line estimate in use."""
        pass


class LoggingObserver(NavigationObserver):
    """Writes every event to the log. Handy for scripts and debugging."""

    def on_route_resolved(self, result):
        logger.info(
            f"Route from {result.source_provider_id}: {result.distance_m:.0f}m, "
            f"{result.duration_s:.0f}s, approximate={result.approximate}"
        )

    def on_progress_updated(self, state):
        logger.info(
            f"Remaining {state.remaining_distance_m:.0f}m / {state.remaining_time_s:.0f}s "
            f"(segment {state.nearest_segment_index})"
        )

    def on_resolution_failed(self, result):
        logger.warning("No provider could route; showing straight line")
