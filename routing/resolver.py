"""
Purpose: Provider fallback for a single route request.
What it does:
Walks an ordered list of providers, one at a time:

PENDING -> TRYING_PROVIDER(0) -> TRYING_PROVIDER(1) -> ... -> SUCCEEDED | ALL_FAILED

- first success wins and is returned immediately (no racing)
- any ProviderError moves on to the next provider, RATE_LIMITED and
  UNREACHABLE included
- when the list is exhausted the caller still gets a renderable result:
  a straight line from start to dest, estimated at the policy's nominal
  speed and flagged approximate=True

A cancel check runs before every attempt so a superseded request stops
early (state CANCELLED, no result).
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence

from .errors import DegradedRouteWarning, ProviderError
from .geomath import path_length
from .models import Coordinate, RouteGeometry, RouteResult, RouteSummary, TravelProfile
from .policy import RoutingPolicy, default_routing_policy
from .providers.base import RouteProviderClient

logger = logging.getLogger(__name__)

STRAIGHT_LINE_PROVIDER_ID = "straight-line"


class ResolverState(Enum):
    PENDING = "PENDING"
    TRYING_PROVIDER = "TRYING_PROVIDER"
    SUCCEEDED = "SUCCEEDED"
    ALL_FAILED = "ALL_FAILED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class ResolveAttempt:
    provider_id: str
    error: Optional[ProviderError] = None  # None means this attempt succeeded


@dataclass
class ResolveOutcome:
    state: ResolverState = ResolverState.PENDING
    result: Optional[RouteResult] = None
    attempts: List[ResolveAttempt] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return self.state is ResolverState.ALL_FAILED


class RouteResolver:
    """
    Orchestrates an ordered, fixed list of RouteProviderClients.
    The list is copied on construction and never reordered.
    """

    def __init__(self, providers: Sequence[RouteProviderClient], policy: Optional[RoutingPolicy] = None):
        if not providers:
            raise ValueError("RouteResolver needs at least one provider.")
        self._providers = tuple(providers)
        self.policy = policy or default_routing_policy()

    @property
    def providers(self) -> tuple:
        return self._providers

    def resolve(
        self,
        start: Coordinate,
        dest: Coordinate,
        profile: TravelProfile = TravelProfile.DRIVING,
        cancelled: Optional[Callable[[], bool]] = None,
    ) -> Optional[RouteResult]:
        return self.resolve_with_outcome(start, dest, profile, cancelled).result

    def resolve_with_outcome(
        self,
        start: Coordinate,
        dest: Coordinate,
        profile: TravelProfile = TravelProfile.DRIVING,
        cancelled: Optional[Callable[[], bool]] = None,
    ) -> ResolveOutcome:
        start.validate("start")
        dest.validate("destination")

        outcome = ResolveOutcome()

        for index, provider in enumerate(self._providers):
            if cancelled is not None and cancelled():
                logger.info(f"Route request cancelled before provider #{index} ({provider.provider_id})")
                outcome.state = ResolverState.CANCELLED
                return outcome

            outcome.state = ResolverState.TRYING_PROVIDER
            try:
                result = provider.request_route(start, dest, profile, timeout=self.policy.request_timeout_s)
            except ProviderError as e:
                logger.warning(
                    f"Provider {provider.provider_id} failed ({e.kind.value}): {e.message}"
                )
                outcome.attempts.append(ResolveAttempt(provider.provider_id, e))
                continue

            outcome.attempts.append(ResolveAttempt(provider.provider_id))
            outcome.state = ResolverState.SUCCEEDED
            outcome.result = result
            logger.info(
                f"Route resolved by {provider.provider_id}: {result.distance_m:.0f}m, "
                f"{result.duration_s:.0f}s, {len(result.geometry)} points"
            )
            return outcome

        # a cancel that lands during the last attempt still wins over the fallback
        if cancelled is not None and cancelled():
            outcome.state = ResolverState.CANCELLED
            return outcome

        outcome.state = ResolverState.ALL_FAILED
        outcome.result = self.straight_line(start, dest, profile)
        tried = ", ".join(a.provider_id for a in outcome.attempts)
        logger.warning(f"All providers failed ({tried}); using straight-line estimate")
        warnings.warn(
            f"All providers failed ({tried}); returning a straight-line estimate",
            DegradedRouteWarning,
            stacklevel=2,
        )
        return outcome

    def straight_line(self, start: Coordinate, dest: Coordinate, profile: TravelProfile) -> RouteResult:
        """Degraded two-point result. Callers must check `approximate`."""
        geometry = RouteGeometry((start, dest))
        distance_m = path_length(geometry.points)
        duration_s = distance_m / self.policy.nominal_speed(profile)
        return RouteResult(
            geometry=geometry,
            summary=RouteSummary(distance_m=distance_m, duration_s=duration_s, approximate=True),
            source_provider_id=STRAIGHT_LINE_PROVIDER_ID,
            approximate=True,
            profile=profile,
        )
