#Purpose: The OpenRouteService “adapter/client”.
#Sole responsibility: talk to ORS /v2/directions via HTTP and return normalized outputs.
#Encapsulates ORS-specific details:
#API key header
#profile identifiers (driving-car, foot-walking, cycling-regular, driving-hgv)
#GeoJSON body / response shape (lon,lat)
#ORS error codes -> ProviderError classification

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from routing.errors import ProviderErrorKind
from routing.models import Coordinate, LatLon, TravelProfile
from routing.policy import DEFAULT_ORS_BASE_URL

from .base import RouteProviderClient, normalize_summary

logger = logging.getLogger(__name__)

ORS_PROFILES = {
    TravelProfile.DRIVING: "driving-car",
    TravelProfile.WALKING: "foot-walking",
    TravelProfile.CYCLING: "cycling-regular",
    TravelProfile.HEAVY_GOODS_VEHICLE: "driving-hgv",
}

# 2004: route too long, 2009: route not found, 2010: point not routable
NO_ROUTE_CODES = {2004, 2009, 2010}

# keys shorter than this are placeholders, not real keys
MIN_API_KEY_LENGTH = 9


class ORSClient(RouteProviderClient):
    """
    OpenRouteService Adapter / Client

    Sole responsibility:
    - POST a two-point directions request with the API key
    - Convert ORS GeoJSON (lon,lat) → internal (lat, lon)
    - Return normalized outputs
    """

    provider_id = "ors"

    def __init__(self, api_key: str, base_url: Optional[str] = DEFAULT_ORS_BASE_URL, timeout: float = 10.0):
        if not api_key or len(api_key) < MIN_API_KEY_LENGTH:
            raise ValueError("ORS API key not set. Please set ORS_API_KEY in the .env file.")
        super().__init__(base_url, timeout)
        self.api_key = api_key

    def profile_id(self, profile: TravelProfile) -> str:
        return ORS_PROFILES[profile]

    def _send(self, start: Coordinate, dest: Coordinate, profile: TravelProfile, timeout: float) -> requests.Response:
        url = f"{self.base_url}/v2/directions/{self.profile_id(profile)}/geojson"
        headers = {
            "Authorization": self.api_key,
            "Content-Type": "application/json",
        }
        body = {
            "coordinates": [list(start.as_lonlat()), list(dest.as_lonlat())],
            "instructions": False,
        }
        return requests.post(url, json=body, headers=headers, timeout=timeout)

    def _error_code(self, data: Optional[Dict[str, Any]]) -> Optional[int]:
        if not data:
            return None
        error = data.get("error")
        if isinstance(error, dict):
            return error.get("code")
        return None

    def _no_route(self, data: Optional[Dict[str, Any]]) -> bool:
        return self._error_code(data) in NO_ROUTE_CODES

    def _check_payload(self, data: Dict[str, Any]) -> None:
        if "error" in data:
            code = self._error_code(data)
            kind = ProviderErrorKind.NO_ROUTE_FOUND if code in NO_ROUTE_CODES else ProviderErrorKind.INVALID_RESPONSE
            raise self._error(kind, f"ORS error {code}: {data['error']}")
        if not data.get("features"):
            raise self._error(ProviderErrorKind.NO_ROUTE_FOUND, "ORS returned no features")

    def _parse(self, data: Dict[str, Any]) -> Tuple[List[LatLon], float, float]:
        feature = data["features"][0]
        latlon = [(c[1], c[0]) for c in feature["geometry"]["coordinates"]]

        # ORS leaves out distance/duration for zero-length routes
        summary = normalize_summary(feature["properties"].get("summary", {}), default=0.0)
        return latlon, summary["distance"], summary["duration"]
