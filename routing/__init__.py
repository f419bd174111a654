#Marks routing as a package.
#Re-exports clean public APIs (models, geometry helpers, providers, resolver)
#so other modules import from routing without knowing internal file names.
#No business logic.

from .errors import (
    DegradedRouteWarning,
    InvalidInputError,
    InvalidSampleError,
    NavigationError,
    ProviderError,
    ProviderErrorKind,
)
from .models import Coordinate, RouteGeometry, RouteResult, RouteSummary, TravelProfile
from .policy import RoutingPolicy, default_routing_policy
from .providers import ORSClient, OSRMClient, RouteProviderClient, build_providers
from .resolver import ResolverState, RouteResolver

__all__ = [
    "Coordinate",
    "TravelProfile",
    "RouteGeometry",
    "RouteSummary",
    "RouteResult",
    "NavigationError",
    "ProviderError",
    "ProviderErrorKind",
    "InvalidInputError",
    "InvalidSampleError",
    "DegradedRouteWarning",
    "RoutingPolicy",
    "default_routing_policy",
    "RouteProviderClient",
    "ORSClient",
    "OSRMClient",
    "build_providers",
    "RouteResolver",
    "ResolverState",
]
