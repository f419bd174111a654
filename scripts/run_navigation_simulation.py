import argparse
import csv
import logging
import os
import random
from datetime import datetime, timedelta
from typing import List

from navigation.observers import LoggingObserver
from navigation.session import NavigationSession
from routing.models import Coordinate, RouteResult
from routing.policy import default_routing_policy
from tracking.models import PositionSample


def simulate_samples(result: RouteResult, every_n_points: int = 3, jitter_deg: float = 0.00005) -> List[PositionSample]:
    """
    Fake GPS fixes along the route: every n-th vertex, with a bit of noise,
    one fix every 10 seconds. One out-of-range fix is injected to show it
    being rejected.
    """
    samples = []
    now = datetime.now()
    points = list(result.geometry)[::every_n_points] + [result.geometry.end]

    for i, point in enumerate(points):
        samples.append(
            PositionSample(
                latitude=point.latitude + random.uniform(-jitter_deg, jitter_deg),
                longitude=point.longitude + random.uniform(-jitter_deg, jitter_deg),
                timestamp=now + timedelta(seconds=10 * i),
                accuracy_m=5.0,
            )
        )

    if len(samples) > 2:
        samples.insert(2, PositionSample(200.0, 0.0, now))
    return samples


def run_simulation(start: Coordinate, dest: Coordinate, profile: str):
    print("=== STARTING NAVIGATION SIMULATION ===")

    # 1. Configure System
    policy = default_routing_policy()
    print(f"Providers (in order): {', '.join(policy.provider_order)}, timeout {policy.request_timeout_s}s\n")

    session = NavigationSession(observer=LoggingObserver(), policy=policy, auto_resolve=False)
    session.set_profile(profile)
    session.set_start(start)
    session.set_dest(dest)

    # 2. Resolve
    result = session.resolve_and_track()
    info = session.route_info()
    print(f"Route from {result.source_provider_id}: {info.text}, {len(result.geometry)} points")
    if result.approximate:
        print("[WARNING] Every provider failed; tracking against a straight line.\n")

    # 3. Track
    session.start_tracking()
    samples = simulate_samples(result)

    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    output_path = os.path.join(base_dir, "navigation_progress.csv")

    with open(output_path, "w", newline='') as file:
        writer = csv.writer(file)
        writer.writerow(["timestamp", "segment_index", "remaining_m", "remaining_s", "arrived"])

        for sample in samples:
            state = session.consume_samples([sample])
            if state is None:
                continue
            writer.writerow([
                state.last_sample_at.isoformat(),
                state.nearest_segment_index,
                round(state.remaining_distance_m, 1),
                round(state.remaining_time_s, 1),
                state.arrived,
            ])

    print("\n=== SIMULATION COMPLETE ===")
    print(f"Final: {session.route_info().text}")
    print(f"Progress written to '{output_path}'.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Resolve a route and replay fake GPS fixes along it.")
    parser.add_argument("--start", nargs=2, type=float, default=[55.1400, 30.1600], metavar=("LAT", "LON"))
    parser.add_argument("--dest", nargs=2, type=float, default=[55.1500, 30.1800], metavar=("LAT", "LON"))
    parser.add_argument("--profile", default="driving")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    run_simulation(Coordinate.new(*args.start), Coordinate.new(*args.dest), args.profile)
