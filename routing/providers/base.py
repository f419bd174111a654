#Purpose: Shared contract for directions backends ("providers").
#Sole responsibility: one HTTP request per call, normalized RouteResult out.
#Encapsulates the parts every adapter has in common:
#transport error classification (timeouts, connection errors, status codes)
#JSON decoding
#summary field-name normalization (distance / totalDistance / total_distance ...)
#Adapters only build the request and parse their own payload shape.
#No retries here: fallback is the resolver's job.

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

import requests

from routing.errors import ProviderError, ProviderErrorKind
from routing.models import Coordinate, RouteGeometry, RouteResult, RouteSummary, TravelProfile

logger = logging.getLogger(__name__)

DISTANCE_KEYS = ("distance", "totalDistance", "total_distance")
DURATION_KEYS = ("duration", "totalTime", "total_time")


def normalize_summary(summary: Dict[str, Any], *, default: Optional[float] = None) -> Dict[str, float]:
    """
    Providers disagree on field names. Pick the first one present.

    Returns:
        {
            "distance": float, # in meters
            "duration": float, # in seconds
        }
    """
    def pick(keys: Iterable[str]) -> Optional[float]:
        for key in keys:
            value = summary.get(key)
            if value is not None:
                return float(value)
        return default

    distance = pick(DISTANCE_KEYS)
    duration = pick(DURATION_KEYS)
    if distance is None or duration is None:
        raise KeyError("route summary has no distance/duration")
    return {"distance": distance, "duration": duration}


class RouteProviderClient:
    """
    Base adapter for one directions backend.

    Subclasses set `provider_id` and implement:
    - _send(): issue exactly one HTTP request, return the requests.Response
    - _check_payload(): raise ProviderError for provider-level error codes
    - _parse(): payload -> (list of (lat, lon), distance_m, duration_s)
    """

    provider_id: str = "provider"

    def __init__(self, base_url: str, timeout: float = 10.0):
        if not base_url:
            raise ValueError(f"{self.provider_id} base URL not set.")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout  # default if the caller passes none

    #----------------
    # Public API
    #----------------
    def request_route(
        self,
        start: Coordinate,
        dest: Coordinate,
        profile: TravelProfile = TravelProfile.DRIVING,
        timeout: Optional[float] = None,
    ) -> RouteResult:
        """
        One directions request. Raises ProviderError on any failure,
        never a raw requests exception.
        """
        timeout = timeout if timeout is not None else self.timeout

        try:
            response = self._send(start, dest, profile, timeout)
        except requests.Timeout as e:
            raise self._error(ProviderErrorKind.TIMEOUT, f"no response within {timeout}s ({e})")
        except requests.ConnectionError as e:
            raise self._error(ProviderErrorKind.UNREACHABLE, f"connection failed: {e}")
        except requests.RequestException as e:
            raise self._error(ProviderErrorKind.UNREACHABLE, f"request failed: {e}")

        data = self._decode(response)
        self._check_status(response, data)
        self._check_payload(data)

        try:
            latlon, distance_m, duration_s = self._parse(data)
            geometry = RouteGeometry.from_latlon(latlon)
            summary = RouteSummary(distance_m=distance_m, duration_s=duration_s)
        except (AttributeError, KeyError, IndexError, TypeError, ValueError) as e:
            # InvalidInputError is a ValueError: short, negative or out-of-range payloads land here too
            raise self._error(ProviderErrorKind.INVALID_RESPONSE, f"malformed route payload: {e}")

        logger.debug(
            f"{self.provider_id}: {len(geometry)} points, {distance_m:.0f}m, {duration_s:.0f}s"
        )
        return RouteResult(
            geometry=geometry,
            summary=summary,
            source_provider_id=self.provider_id,
            approximate=False,
            profile=profile,
        )

    #----------------
    # Hooks for subclasses
    #----------------
    def profile_id(self, profile: TravelProfile) -> str:
        raise NotImplementedError

    def _send(self, start: Coordinate, dest: Coordinate, profile: TravelProfile, timeout: float) -> requests.Response:
        raise NotImplementedError

    def _check_payload(self, data: Dict[str, Any]) -> None:
        pass

    def _parse(self, data: Dict[str, Any]) -> tuple[List[tuple[float, float]], float, float]:
        raise NotImplementedError

    #----------------
    # Internal helpers
    #----------------
    def _error(self, kind: ProviderErrorKind, message: str, status_code: Optional[int] = None) -> ProviderError:
        return ProviderError(kind, message, provider_id=self.provider_id, status_code=status_code)

    def _decode(self, response: requests.Response) -> Optional[Dict[str, Any]]:
        try:
            data = response.json()
        except ValueError:
            data = None

        if data is None and response.ok:
            raise self._error(
                ProviderErrorKind.INVALID_RESPONSE, "response body is not JSON", response.status_code
            )
        if data is not None and not isinstance(data, dict):
            raise self._error(
                ProviderErrorKind.INVALID_RESPONSE, "response body is not a JSON object", response.status_code
            )
        return data

    def _no_route(self, data: Optional[Dict[str, Any]]) -> bool:
        """Provider-specific 'no route between these points' detection on error bodies."""
        return False

    def _check_status(self, response: requests.Response, data: Optional[Dict[str, Any]]) -> None:
        status = response.status_code
        if 200 <= status < 300:
            return

        if status == 429:
            raise self._error(ProviderErrorKind.RATE_LIMITED, "rate limited (HTTP 429)", status)
        if status >= 500:
            raise self._error(ProviderErrorKind.UNREACHABLE, f"server error (HTTP {status})", status)
        if status == 404 or self._no_route(data):
            raise self._error(ProviderErrorKind.NO_ROUTE_FOUND, f"no route (HTTP {status})", status)
        raise self._error(ProviderErrorKind.INVALID_RESPONSE, f"unexpected status (HTTP {status})", status)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(base_url={self.base_url!r})"
