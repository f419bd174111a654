import pytest
from unittest.mock import MagicMock

from routing.errors import ProviderError, ProviderErrorKind
from routing.models import Coordinate, RouteGeometry, RouteResult, RouteSummary, TravelProfile
from routing.policy import RoutingPolicy


def make_response(status_code=200, payload=None):
    """
    Stand-in for requests.Response.
    payload=None means the body is not JSON.
    """
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    if payload is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = payload
    return response


def straight_route(start, dest, points=2, distance_m=1000.0, duration_s=100.0, provider_id="fake"):
    """Evenly spaced RouteResult between two coordinates."""
    coords = []
    for i in range(points):
        t = i / (points - 1)
        coords.append(
            Coordinate(
                start.latitude + (dest.latitude - start.latitude) * t,
                start.longitude + (dest.longitude - start.longitude) * t,
            )
        )
    return RouteResult(
        geometry=RouteGeometry(tuple(coords)),
        summary=RouteSummary(distance_m=distance_m, duration_s=duration_s),
        source_provider_id=provider_id,
        approximate=False,
        profile=TravelProfile.DRIVING,
    )


class FakeProvider:
    """
    Scripted provider: fails with `error_kind` or returns a straight route.
    Records every call.
    """

    def __init__(self, provider_id, error_kind=None, points=5, distance_m=1000.0, duration_s=100.0):
        self.provider_id = provider_id
        self.error_kind = error_kind
        self.points = points
        self.distance_m = distance_m
        self.duration_s = duration_s
        self.calls = []

    def request_route(self, start, dest, profile=TravelProfile.DRIVING, timeout=None):
        self.calls.append((start, dest, profile, timeout))
        if self.error_kind is not None:
            raise ProviderError(self.error_kind, "scripted failure", provider_id=self.provider_id)
        return straight_route(
            start, dest, self.points, self.distance_m, self.duration_s, provider_id=self.provider_id
        )


@pytest.fixture
def policy():
    # explicit values so a developer's .env never leaks into tests
    return RoutingPolicy(
        osrm_base_url="http://osrm.test",
        ors_base_url="http://ors.test",
        ors_api_key="test-ors-key-123",
        provider_order=("ors", "osrm"),
        request_timeout_s=5.0,
    )


@pytest.fixture
def start():
    return Coordinate(55.1400, 30.1600)


@pytest.fixture
def dest():
    return Coordinate(55.1500, 30.1800)


@pytest.fixture
def failing_provider():
    return FakeProvider("down", error_kind=ProviderErrorKind.UNREACHABLE)


@pytest.fixture
def working_provider():
    return FakeProvider("up")
