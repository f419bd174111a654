"""
Purpose: Domain models for the Routing capability.
What it does:
- Defines core value types shared by providers, resolver, tracker and session:
- Coordinate (lat, lon in degrees, WGS84)
- RouteGeometry (ordered points, start -> destination)
- RouteSummary (distance / duration, approximate flag)
- RouteResult (geometry + summary + which provider produced it)

Defines enums/constants:
- TravelProfile = DRIVING | WALKING | CYCLING | HEAVY_GOODS_VEHICLE

Rule: No HTTP calls, no resolver logic. Models only.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional, Tuple

from .errors import InvalidInputError

# Internal coordinate type: (lat, lon)
LatLon = Tuple[float, float]


class TravelProfile(str, Enum):
    """
    Travel mode requested from a provider.
    Each provider adapter maps it to its own profile identifier.
    """
    DRIVING = "driving"
    WALKING = "walking"
    CYCLING = "cycling"
    HEAVY_GOODS_VEHICLE = "hgv"

    @classmethod
    def parse(cls, value: str | TravelProfile) -> TravelProfile:
        """
        Accepts the enum values plus the provider-style names the map UI
        sends ("driving-car", "foot", "foot-walking", "cycling-regular", ...).
        """
        if isinstance(value, TravelProfile):
            return value

        key = str(value).strip().lower()
        aliases = {
            "driving": cls.DRIVING,
            "driving-car": cls.DRIVING,
            "car": cls.DRIVING,
            "walking": cls.WALKING,
            "foot": cls.WALKING,
            "foot-walking": cls.WALKING,
            "cycling": cls.CYCLING,
            "bike": cls.CYCLING,
            "cycling-regular": cls.CYCLING,
            "hgv": cls.HEAVY_GOODS_VEHICLE,
            "driving-hgv": cls.HEAVY_GOODS_VEHICLE,
            "truck": cls.HEAVY_GOODS_VEHICLE,
        }
        if key not in aliases:
            raise InvalidInputError(f"Unknown travel profile: {value!r}")
        return aliases[key]


@dataclass(frozen=True)
class Coordinate:
    """
    A WGS84 position in degrees.

    Range checks happen at the entry points (session setters, resolver,
    tracker) through validate(); use Coordinate.new() to build and check in
    one step.
    """
    latitude: float
    longitude: float

    @classmethod
    def new(cls, latitude: float, longitude: float) -> Coordinate:
        coordinate = cls(float(latitude), float(longitude))
        coordinate.validate()
        return coordinate

    @classmethod
    def from_lonlat(cls, pair) -> Coordinate:
        """GeoJSON order (lon, lat) -> Coordinate."""
        lon, lat = pair[0], pair[1]
        return cls(float(lat), float(lon))

    def is_valid(self) -> bool:
        try:
            lat = float(self.latitude)
            lon = float(self.longitude)
        except (TypeError, ValueError):
            return False
        # NaN fails both comparisons
        return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0

    def validate(self, what: str = "coordinate") -> None:
        if not self.is_valid():
            raise InvalidInputError(
                f"Invalid {what}: lat={self.latitude}, lon={self.longitude}"
            )

    def as_tuple(self) -> LatLon:
        return (self.latitude, self.longitude)

    def as_lonlat(self) -> Tuple[float, float]:
        return (self.longitude, self.latitude)


@dataclass(frozen=True)
class RouteGeometry:
    """
    Ordered path from start to destination, at least two points.
    Immutable once produced.
    """
    points: Tuple[Coordinate, ...]

    def __post_init__(self):
        # accept any iterable but store a tuple so the geometry can't be mutated
        object.__setattr__(self, "points", tuple(self.points))
        if len(self.points) < 2:
            raise InvalidInputError("A route geometry needs at least two points.")

    @classmethod
    def from_latlon(cls, pairs: Iterable[LatLon]) -> RouteGeometry:
        """Build from raw (lat, lon) pairs. Every point is range-checked."""
        return cls(tuple(Coordinate.new(float(lat), float(lon)) for lat, lon in pairs))

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[Coordinate]:
        return iter(self.points)

    def __getitem__(self, index):
        return self.points[index]

    @property
    def start(self) -> Coordinate:
        return self.points[0]

    @property
    def end(self) -> Coordinate:
        return self.points[-1]

    def as_latlon(self) -> list[LatLon]:
        return [point.as_tuple() for point in self.points]


@dataclass(frozen=True)
class RouteSummary:
    distance_m: float  # in meters
    duration_s: float  # in seconds
    approximate: bool = False  # True for straight-line estimates

    def __post_init__(self):
        if self.distance_m < 0 or self.duration_s < 0:
            raise InvalidInputError(
                f"Route summary must be non-negative: {self.distance_m}m / {self.duration_s}s"
            )


@dataclass(frozen=True)
class RouteResult:
    """
    Normalized output of a directions request.
    Superseded (never mutated) by every new resolution.
    """
    geometry: RouteGeometry
    summary: RouteSummary
    source_provider_id: str
    approximate: bool = False
    profile: Optional[TravelProfile] = None

    @property
    def distance_m(self) -> float:
        return self.summary.distance_m

    @property
    def duration_s(self) -> float:
        return self.summary.duration_s
