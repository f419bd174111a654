"""
Purpose: Central configuration for route resolution and tracking.
What it does:

Stores all tunable parameters, read from the environment (.env supported):

OSRM_BASE_URL=https://router.project-osrm.org
ORS_BASE_URL=https://api.openrouteservice.org
ORS_API_KEY=<key>
ROUTING_PROVIDERS=ors,osrm
ROUTING_TIMEOUT_S=10

plus the nominal speeds used for straight-line estimates when every
provider fails.

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Tuple

from dotenv import load_dotenv

from .models import TravelProfile

load_dotenv()

DEFAULT_OSRM_BASE_URL = "https://router.project-osrm.org"
DEFAULT_ORS_BASE_URL = "https://api.openrouteservice.org"


def _default_speeds() -> Dict[TravelProfile, float]:
    # meters per second
    return {
        TravelProfile.DRIVING: 13.9,  # ~50 km/h urban
        TravelProfile.WALKING: 1.4,  # ~5 km/h
        TravelProfile.CYCLING: 4.2,  # ~15 km/h
        TravelProfile.HEAVY_GOODS_VEHICLE: 11.1,  # ~40 km/h
    }


@dataclass(frozen=True)
class RoutingPolicy:
    """
    Central configuration for providers, fallback estimates and tracking.
    """

    # --- Providers ---
    osrm_base_url: str = DEFAULT_OSRM_BASE_URL
    ors_base_url: str = DEFAULT_ORS_BASE_URL
    ors_api_key: str = ""

    # Priority order used by the resolver. First success wins.
    provider_order: Tuple[str, ...] = ("ors", "osrm")

    # The time to wait for a provider before giving up on it
    request_timeout_s: float = 10.0

    # --- Straight-line fallback ---
    nominal_speeds_mps: Dict[TravelProfile, float] = field(default_factory=_default_speeds)

    # --- Tracking ---
    # Remaining distance under which the user counts as arrived
    arrival_threshold_m: float = 15.0

    def nominal_speed(self, profile: TravelProfile) -> float:
        return self.nominal_speeds_mps.get(profile, self.nominal_speeds_mps[TravelProfile.DRIVING])

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.request_timeout_s <= 0:
            raise ValueError("request_timeout_s must be > 0")

        if not self.provider_order:
            raise ValueError("provider_order must name at least one provider")

        if TravelProfile.DRIVING not in self.nominal_speeds_mps:
            raise ValueError("nominal_speeds_mps must define a DRIVING speed")

        for profile, speed in self.nominal_speeds_mps.items():
            if speed <= 0:
                raise ValueError(f"nominal speed for {profile.value} must be > 0")

        if self.arrival_threshold_m < 0:
            raise ValueError("arrival_threshold_m must be >= 0")


def policy_from_env() -> RoutingPolicy:
    providers = os.getenv("ROUTING_PROVIDERS", "ors,osrm")
    return RoutingPolicy(
        osrm_base_url=os.getenv("OSRM_BASE_URL", DEFAULT_OSRM_BASE_URL).rstrip("/"),
        ors_base_url=os.getenv("ORS_BASE_URL", DEFAULT_ORS_BASE_URL).rstrip("/"),
        ors_api_key=os.getenv("ORS_API_KEY", ""),
        provider_order=tuple(p.strip().lower() for p in providers.split(",") if p.strip()),
        request_timeout_s=float(os.getenv("ROUTING_TIMEOUT_S", "10")),
    )


def default_routing_policy() -> RoutingPolicy:
    """
    Convenience factory for the environment-driven policy.
    """
    p = policy_from_env()
    p.validate()
    return p
