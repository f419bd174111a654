import polyline
import pytest
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

from navigation.observers import NavigationObserver
from navigation.session import NavigationSession
from routing.errors import DegradedRouteWarning, InvalidInputError, InvalidSampleError, ProviderErrorKind
from routing.models import Coordinate, TravelProfile
from routing.providers.ors_client import ORSClient
from routing.providers.osrm_client import OSRMClient
from tracking.models import PositionSample
from tracking.progress_tracker import ProgressTracker

from conftest import FakeProvider, make_response


@pytest.fixture
def observer():
    return MagicMock(spec=NavigationObserver)


@pytest.fixture
def session(policy, observer):
    return NavigationSession([FakeProvider("A")], observer, policy)


def test_setting_both_endpoints_triggers_resolution(session, observer, start, dest):
    assert session.set_start(start) is None
    assert session.current_result is None

    result = session.set_dest(dest)

    assert result is session.current_result
    assert result.source_provider_id == "A"
    observer.on_route_resolved.assert_called_once_with(result)
    observer.on_resolution_failed.assert_not_called()


def test_invalid_endpoint_leaves_session_untouched(session, start, dest):
    session.set_start(start)
    session.set_dest(dest)
    before = session.current_result

    with pytest.raises(InvalidInputError):
        session.set_dest(Coordinate(55.0, 500.0))

    assert session.current_dest == dest
    assert session.current_result is before


def test_resolve_without_destination_is_rejected(session, start):
    session.set_start(start)

    with pytest.raises(InvalidInputError):
        session.resolve_and_track()


def test_profile_change_re_resolves(policy, observer, start, dest):
    provider = FakeProvider("A")
    session = NavigationSession([provider], observer, policy)
    session.set_start(start)
    session.set_dest(dest)

    session.set_profile("foot-walking")

    assert session.current_profile is TravelProfile.WALKING
    assert provider.calls[-1][2] is TravelProfile.WALKING
    assert observer.on_route_resolved.call_count == 2


def test_auto_resolve_off_leaves_timing_to_caller(policy, start, dest):
    provider = FakeProvider("A")
    session = NavigationSession([provider], policy=policy, auto_resolve=False)

    session.set_start(start)
    session.set_dest(dest)
    assert provider.calls == []

    assert session.resolve_and_track() is not None
    assert len(provider.calls) == 1


def test_all_providers_failing_notifies_degraded(policy, observer, start, dest):
    session = NavigationSession(
        [FakeProvider("A", error_kind=ProviderErrorKind.TIMEOUT)], observer, policy
    )
    session.set_start(start)

    with pytest.warns(DegradedRouteWarning):
        result = session.set_dest(dest)

    assert result.approximate is True
    observer.on_resolution_failed.assert_called_once_with(result)
    assert "straight line" in session.route_info().text
    assert session.route_info().style.dash_array is not None


def test_tracking_emits_progress(session, observer, start, dest):
    session.set_start(start)
    session.set_dest(dest)
    session.start_tracking()

    state = session.on_position_sample(PositionSample(55.145, 30.17))

    assert state is session.current_progress
    assert state.generation == session.generation
    observer.on_progress_updated.assert_called_once_with(state)
    assert session.route_info().distance_m == state.remaining_distance_m


def test_start_tracking_without_route_is_rejected(session):
    with pytest.raises(InvalidInputError):
        session.start_tracking()


def test_samples_ignored_when_not_tracking(session, observer, start, dest):
    session.set_start(start)
    session.set_dest(dest)

    assert session.on_position_sample(PositionSample(55.145, 30.17)) is None
    observer.on_progress_updated.assert_not_called()


def test_new_route_restarts_tracker_and_drops_stale_samples(session, start, dest):
    session.set_start(start)
    session.set_dest(dest)
    session.start_tracking()
    old_generation = session.generation

    session.set_dest(Coordinate(55.16, 30.19))

    assert session.tracking
    assert session.generation > old_generation
    assert session.tracker.generation == session.generation
    assert session.tracker.state is None

    # a sample tagged with the superseded route is ignored
    assert session.on_position_sample(PositionSample(55.145, 30.17), generation=old_generation) is None
    assert session.on_position_sample(PositionSample(55.145, 30.17), generation=session.generation) is not None


def test_invalid_sample_is_reported_not_fatal(session, start, dest):
    session.set_start(start)
    session.set_dest(dest)
    session.start_tracking()
    good = session.on_position_sample(PositionSample(55.145, 30.17))

    with pytest.raises(InvalidSampleError):
        session.on_position_sample(PositionSample(200.0, 30.17))

    assert session.current_progress is good
    assert session.tracking


def test_consume_samples_skips_invalid(session, start, dest):
    session.set_start(start)
    session.set_dest(dest)
    session.start_tracking()
    t0 = datetime(2024, 5, 1, 12, 0, 0)

    last = session.consume_samples(
        [
            PositionSample(55.142, 30.164, t0),
            PositionSample(200.0, 30.0, t0 + timedelta(seconds=1)),
            PositionSample(55.148, 30.176, t0 + timedelta(seconds=2)),
        ]
    )

    assert last.last_sample_at == t0 + timedelta(seconds=2)


def test_stale_resolution_is_discarded(policy, start, dest):
    """
    A second request issued while the first is in flight wins,
    even though the first one finishes last.
    """
    newer_dest = Coordinate(55.16, 30.19)
    holder = {}

    class SlowProvider(FakeProvider):
        def request_route(self, s, d, profile=TravelProfile.DRIVING, timeout=None):
            if len(self.calls) == 0:
                # while the first call is "on the wire" the user drags the marker
                self.calls.append((s, d, profile, timeout))
                holder["session"].auto_resolve = True
                holder["second"] = holder["session"].set_dest(newer_dest)
                return super().request_route(s, d, profile, timeout)
            return super().request_route(s, d, profile, timeout)

    observer = MagicMock(spec=NavigationObserver)
    session = NavigationSession([SlowProvider("A")], observer, policy, auto_resolve=False)
    holder["session"] = session
    session.set_start(start)
    session.set_dest(dest)

    first = session.resolve_and_track()

    assert first is None
    assert session.current_result is holder["second"]
    assert session.current_result.geometry.end == newer_dest
    observer.on_route_resolved.assert_called_once_with(holder["second"])


def test_clear_releases_everything_and_discards_in_flight(policy, start, dest):
    holder = {}

    class ClearingProvider(FakeProvider):
        def request_route(self, *args, **kwargs):
            holder["session"].clear()
            return super().request_route(*args, **kwargs)

    session = NavigationSession([ClearingProvider("A")], policy=policy, auto_resolve=False)
    holder["session"] = session
    session.set_start(start)
    session.set_dest(dest)

    assert session.resolve_and_track() is None
    assert session.current_start is None
    assert session.current_dest is None
    assert session.current_result is None
    assert not session.tracking
    assert session.route_info() is None


def test_observer_errors_do_not_break_session(policy, start, dest):
    observer = MagicMock(spec=NavigationObserver)
    observer.on_route_resolved.side_effect = RuntimeError("render failed")
    session = NavigationSession([FakeProvider("A")], observer, policy)

    session.set_start(start)
    result = session.set_dest(dest)

    assert result is session.current_result


def test_use_current_location_sets_start(session, dest):
    session.set_dest(dest)
    result = session.use_current_location(PositionSample(55.14, 30.16))

    assert session.current_start == Coordinate(55.14, 30.16)
    assert result is not None


def test_resolve_in_background(policy, start, dest):
    session = NavigationSession([FakeProvider("A")], policy=policy, auto_resolve=False)
    session.set_start(start)
    session.set_dest(dest)

    with ThreadPoolExecutor(max_workers=1) as executor:
        result = session.resolve_and_track_async(executor).result(timeout=5)

    assert result is session.current_result


def test_ors_rate_limited_falls_back_to_osrm(policy, observer):
    """
    start=(55.1400,30.1600), dest=(55.1500,30.1800), Driving, [ORS, OSRM]:
    ORS answers 429, OSRM answers with 42 points / 1850 m / 240 s.
    """
    start = Coordinate(55.1400, 30.1600)
    dest = Coordinate(55.1500, 30.1800)
    points = [
        (55.1400 + 0.0100 * i / 41, 30.1600 + 0.0200 * i / 41)
        for i in range(42)
    ]
    osrm_payload = {
        "code": "Ok",
        "routes": [{"geometry": polyline.encode(points), "distance": 1850.0, "duration": 240.0}],
    }
    providers = [
        ORSClient(policy.ors_api_key, policy.ors_base_url),
        OSRMClient(policy.osrm_base_url),
    ]
    session = NavigationSession(providers, observer, policy)

    with patch("routing.providers.ors_client.requests.post") as mock_post, patch(
        "routing.providers.osrm_client.requests.get"
    ) as mock_get:
        mock_post.return_value = make_response(429, {"error": "Rate Limit Exceeded"})
        mock_get.return_value = make_response(200, osrm_payload)

        session.set_profile(TravelProfile.DRIVING)
        session.set_start(start)
        session.set_dest(dest)

    result = session.current_result
    assert mock_post.call_count == 1
    assert mock_get.call_count == 1
    assert result.approximate is False
    assert result.source_provider_id == "osrm"
    assert len(result.geometry) == 42
    assert result.distance_m == 1850.0
    assert result.duration_s == 240.0
    assert session.route_info().text == "1.9 km · 4 min"


def test_sample_tagged_for_replaced_route_is_ignored_mid_flight(policy, observer, start, dest):
    """
    The route is replaced after the sample passed the session's first check
    but before the tracker projected it. The sample must not be projected
    onto the new route.
    """
    holder = {}

    class ReroutingTracker(ProgressTracker):
        def on_position_sample(self, position, timestamp=None, generation=None):
            if not holder.get("rerouted"):
                holder["rerouted"] = True
                holder["session"].set_dest(Coordinate(55.16, 30.19))
            return super().on_position_sample(position, timestamp, generation)

    session = NavigationSession([FakeProvider("A")], observer, policy, tracker=ReroutingTracker())
    holder["session"] = session
    session.set_start(start)
    session.set_dest(dest)
    session.start_tracking()
    old_generation = session.generation

    state = session.on_position_sample(PositionSample(55.145, 30.17), generation=old_generation)

    assert state is None
    assert session.generation > old_generation
    assert session.current_progress is None
    observer.on_progress_updated.assert_not_called()


def test_superseded_route_is_not_notified_after_newer_one(policy, start, dest):
    """
    Route N commits, then route N+1 commits and notifies before N reaches
    its notification. The observer must only ever see N+1.
    """
    newer_dest = Coordinate(55.16, 30.19)
    holder = {}

    class ReroutingTracker(ProgressTracker):
        def start(self, geometry, summary, generation=0):
            super().start(geometry, summary, generation)
            if holder.get("armed"):
                holder["armed"] = False
                holder["second"] = holder["session"].set_dest(newer_dest)

    observer = MagicMock(spec=NavigationObserver)
    session = NavigationSession(
        [FakeProvider("A")], observer, policy, tracker=ReroutingTracker(), auto_resolve=False
    )
    holder["session"] = session
    session.set_start(start)
    session.set_dest(dest)
    session.resolve_and_track()
    session.start_tracking()
    observer.reset_mock()

    session.auto_resolve = True
    holder["armed"] = True
    first = session.set_dest(Coordinate(55.155, 30.185))

    assert first is None
    assert session.current_result is holder["second"]
    assert session.current_result.geometry.end == newer_dest
    observer.on_route_resolved.assert_called_once_with(holder["second"])
