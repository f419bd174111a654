#Purpose: The OSRM “adapter/client”.
#Sole responsibility: talk to OSRM via HTTP and return normalized outputs.
#Encapsulates OSRM-specific details:
#coordinate formatting (lon,lat)
#URL construction (/route/v1/{profile}/...)
#profile identifiers (driving, foot, bike)
#polyline geometry decoding
#OSRM "code" field -> ProviderError classification
#It should not contain fallback rules or tracking.

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import polyline
import requests

from routing.errors import ProviderErrorKind
from routing.models import Coordinate, LatLon, TravelProfile
from routing.policy import DEFAULT_OSRM_BASE_URL

from .base import RouteProviderClient, normalize_summary

# OSRM codes meaning "the request was fine but there is no route"
NO_ROUTE_CODES = {"NoRoute", "NoSegment", "NoMatch", "NoTrips"}

OSRM_PROFILES = {
    TravelProfile.DRIVING: "driving",
    TravelProfile.WALKING: "foot",
    TravelProfile.CYCLING: "bike",
    # OSRM ships no truck profile; closest available is the car graph
    TravelProfile.HEAVY_GOODS_VEHICLE: "driving",
}


class OSRMClient(RouteProviderClient):
    """
    OSRM Adapter / Client

    Sole responsibility:
    - Talk to OSRM via HTTP
    - Convert internal (lat, lon) → OSRM (lon,lat)
    - Return normalized outputs
    """

    provider_id = "osrm"

    def __init__(self, base_url: Optional[str] = DEFAULT_OSRM_BASE_URL, timeout: float = 10.0):
        super().__init__(base_url, timeout)

    def profile_id(self, profile: TravelProfile) -> str:
        return OSRM_PROFILES[profile]

    def format_coordinates(self, coords: List[Coordinate]) -> str:
        """Convert list of Coordinate to OSRM format 'lon,lat;lon,lat;...'"""
        return ';'.join([f"{c.longitude},{c.latitude}" for c in coords])

    def _send(self, start: Coordinate, dest: Coordinate, profile: TravelProfile, timeout: float) -> requests.Response:
        coordinates = self.format_coordinates([start, dest])
        url = f"{self.base_url}/route/v1/{self.profile_id(profile)}/{coordinates}"

        return requests.get(
            url,
            params={
                "overview": "full",  # full geometry, not simplified
                "geometries": "polyline",
                "steps": "false",  # no turn-by-turn
            },
            timeout=timeout,
        )

    def _no_route(self, data: Optional[Dict[str, Any]]) -> bool:
        return bool(data) and data.get("code") in NO_ROUTE_CODES

    def _check_payload(self, data: Dict[str, Any]) -> None:
        #validating OSRM response
        code = data.get("code")
        if code == "Ok":
            if not data.get("routes"):
                raise self._error(ProviderErrorKind.NO_ROUTE_FOUND, "OSRM returned no routes")
            return
        if code in NO_ROUTE_CODES:
            raise self._error(ProviderErrorKind.NO_ROUTE_FOUND, f"OSRM {code}: {data.get('message', '')}")
        raise self._error(
            ProviderErrorKind.INVALID_RESPONSE, f"OSRM error: {data.get('message', code or 'Unknown error')}"
        )

    def _parse(self, data: Dict[str, Any]) -> Tuple[List[LatLon], float, float]:
        route = data["routes"][0]  # take the first route (OSRM may return alternatives)

        # polyline.decode yields (lat, lon) tuples already
        latlon = polyline.decode(route["geometry"])
        summary = normalize_summary(route)
        return latlon, summary["distance"], summary["duration"]
