"""
Purpose: Orchestrator for one user's navigation (the "glue").
What it does:
Owns the current start / destination / profile, resolves a route through the
RouteResolver whenever both endpoints are known, keeps the latest RouteResult,
and feeds live position samples to the ProgressTracker while tracking.

Concurrency rules:
- every resolve request gets a new generation number; only the newest one
  may commit its result, older ones are cancelled or discarded
- position samples are serialized by the tracker and dropped when they were
  computed against a route that has since been replaced
- provider calls run outside the session lock
- observer callbacks run under a separate notify lock, after re-checking the
  generation, so a superseded route or progress is never delivered late
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Union

from routing.errors import InvalidInputError, InvalidSampleError
from routing.models import Coordinate, RouteResult, TravelProfile
from routing.policy import RoutingPolicy, default_routing_policy
from routing.providers import RouteProviderClient, build_providers
from routing.resolver import RouteResolver
from tracking.models import PositionSample, ProgressState
from tracking.progress_tracker import ProgressTracker

from .observers import NavigationObserver
from .route_info import RouteInfo, describe

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _ResolveTicket:
    generation: int
    cancel_event: threading.Event
    start: Coordinate
    dest: Coordinate
    profile: TravelProfile


class NavigationSession:
    """
    Stateful façade combining RouteResolver and ProgressTracker.
    One instance per user; nothing is shared between sessions.
    """

    def __init__(
        self,
        providers: Optional[Sequence[RouteProviderClient]] = None,
        observer: Optional[NavigationObserver] = None,
        policy: Optional[RoutingPolicy] = None,
        *,
        resolver: Optional[RouteResolver] = None,
        tracker: Optional[ProgressTracker] = None,
        auto_resolve: bool = True,
    ):
        self.policy = policy or default_routing_policy()
        if resolver is None:
            if providers is None:
                providers = build_providers(self.policy)
            resolver = RouteResolver(providers, self.policy)
        self.resolver = resolver
        self.tracker = tracker or ProgressTracker(self.policy.arrival_threshold_m)
        self.observer = observer or NavigationObserver()

        # when False the caller decides when to call resolve_and_track() (debouncing)
        self.auto_resolve = auto_resolve

        self._lock = threading.RLock()
        # serializes observer callbacks; taken before _lock on the notify path
        self._notify_lock = threading.RLock()
        self.current_start: Optional[Coordinate] = None
        self.current_dest: Optional[Coordinate] = None
        self.current_profile: TravelProfile = TravelProfile.DRIVING
        self.current_result: Optional[RouteResult] = None
        self.current_progress: Optional[ProgressState] = None
        self.tracking: bool = False

        self._request_generation = 0  # bumped for every resolve request and clear()
        self._route_generation = 0  # generation of current_result
        self._cancel_event: Optional[threading.Event] = None

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def generation(self) -> int:
        """Generation of the route currently tracked. Tag samples with it."""
        return self._route_generation

    @property
    def has_endpoints(self) -> bool:
        return self.current_start is not None and self.current_dest is not None

    # ------------------------------------------------------------------
    # Endpoints / profile
    # ------------------------------------------------------------------

    def set_start(self, coordinate: Coordinate) -> Optional[RouteResult]:
        coordinate.validate("start")
        with self._lock:
            self.current_start = coordinate
        return self._maybe_resolve()

    def set_dest(self, coordinate: Coordinate) -> Optional[RouteResult]:
        coordinate.validate("destination")
        with self._lock:
            self.current_dest = coordinate
        return self._maybe_resolve()

    def set_profile(self, profile: Union[TravelProfile, str]) -> Optional[RouteResult]:
        profile = TravelProfile.parse(profile)
        with self._lock:
            self.current_profile = profile
        return self._maybe_resolve()

    def use_current_location(self, sample: PositionSample) -> Optional[RouteResult]:
        """Start from the user's position fix."""
        return self.set_start(sample.coordinate)

    def _maybe_resolve(self) -> Optional[RouteResult]:
        if self.auto_resolve and self.has_endpoints:
            return self.resolve_and_track()
        return None

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_and_track(self) -> Optional[RouteResult]:
        """
        Resolve a route for the current endpoints and profile.

        Returns:
            the committed RouteResult, or None when a newer request or clear()
            superseded this one while it was in flight.

        Raises:
            InvalidInputError: start or destination is not set
        """
        return self._run(self._begin())

    def resolve_and_track_async(self, executor: Executor) -> Future:
        """
        Same as resolve_and_track() but the provider calls run on `executor`.
        The generation is taken now, so submission order decides which result wins.
        """
        return executor.submit(self._run, self._begin())

    def _begin(self) -> _ResolveTicket:
        with self._lock:
            if not self.has_endpoints:
                raise InvalidInputError("Both start and destination must be set before resolving a route.")

            # supersede whatever is still in flight
            if self._cancel_event is not None:
                self._cancel_event.set()

            self._request_generation += 1
            ticket = _ResolveTicket(
                generation=self._request_generation,
                cancel_event=threading.Event(),
                start=self.current_start,
                dest=self.current_dest,
                profile=self.current_profile,
            )
            self._cancel_event = ticket.cancel_event
            return ticket

    def _run(self, ticket: _ResolveTicket) -> Optional[RouteResult]:
        outcome = self.resolver.resolve_with_outcome(
            ticket.start, ticket.dest, ticket.profile, cancelled=ticket.cancel_event.is_set
        )
        result = outcome.result

        with self._lock:
            if ticket.generation != self._request_generation or result is None:
                logger.info(
                    f"Discarding route for generation {ticket.generation} "
                    f"(current {self._request_generation}, state {outcome.state.value})"
                )
                return None

            self.current_result = result
            self.current_progress = None
            self._route_generation = ticket.generation
            self._cancel_event = None
            if self.tracking:
                self.tracker.start(result.geometry, result.summary, generation=ticket.generation)

        with self._notify_lock:
            with self._lock:
                # a newer route may have committed since we released the lock
                if ticket.generation != self._route_generation:
                    logger.info(f"Route for generation {ticket.generation} superseded before notify")
                    return None
            self._notify("on_route_resolved", result)
            if result.approximate:
                self._notify("on_resolution_failed", result)
        return result

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------

    def start_tracking(self) -> None:
        with self._lock:
            if self.current_result is None:
                raise InvalidInputError("No route to track. Resolve a route first.")
            self.tracker.start(
                self.current_result.geometry,
                self.current_result.summary,
                generation=self._route_generation,
            )
            self.current_progress = None
            self.tracking = True

    def stop_tracking(self) -> None:
        with self._lock:
            self.tracking = False
            self.current_progress = None
            self.tracker.stop()

    def on_position_sample(
        self, sample: Union[PositionSample, Coordinate], generation: Optional[int] = None
    ) -> Optional[ProgressState]:
        """
        Feed one position fix.

        Returns None when not tracking, when `generation` names a superseded
        route, or when the route changed while the sample was being processed.

        Raises:
            InvalidSampleError: coordinate out of range (session state unchanged)
        """
        if isinstance(sample, Coordinate):
            sample = PositionSample(sample.latitude, sample.longitude)

        with self._lock:
            if not self.tracking:
                return None
            expected = self._route_generation if generation is None else generation
            if expected != self._route_generation:
                logger.debug(f"Sample for stale generation {generation} ignored")
                return None

        # the tracker re-checks the generation under its own lock
        state = self.tracker.on_position_sample(sample.coordinate, sample.timestamp, generation=expected)
        if state is None:
            return None

        with self._notify_lock:
            with self._lock:
                if not self.tracking or state.generation != self._route_generation:
                    logger.debug(f"Progress for superseded generation {state.generation} dropped")
                    return None
                self.current_progress = state
            self._notify("on_progress_updated", state)
        return state

    def consume_samples(self, samples: Iterable[PositionSample]) -> Optional[ProgressState]:
        """
        Drain a position stream. Invalid samples are logged and skipped.
        Returns the last accepted state.
        """
        last = None
        for sample in samples:
            try:
                state = self.on_position_sample(sample)
            except InvalidSampleError as e:
                logger.warning(f"Skipping invalid position sample: {e.message}")
                continue
            if state is not None:
                last = state
        return last

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Forget endpoints and route, stop tracking, cancel any in-flight resolve."""
        with self._lock:
            if self._cancel_event is not None:
                self._cancel_event.set()
                self._cancel_event = None
            self._request_generation += 1
            self._route_generation = self._request_generation

            self.current_start = None
            self.current_dest = None
            self.current_result = None
            self.current_progress = None
            self.tracking = False
            self.tracker.stop()

    def route_info(self) -> Optional[RouteInfo]:
        with self._lock:
            if self.current_result is None:
                return None
            return describe(self.current_result, self.current_progress)

    def _notify(self, callback: str, payload) -> None:
        try:
            getattr(self.observer, callback)(payload)
        except Exception as e:
            logger.error(f"Observer {callback} failed: {e}")
