#Expose the high-level navigation pieces:
#NavigationSession (the "one object" entry point for a map UI)
#Observer callbacks the UI implements
#Route info formatting for the info panel

from .observers import LoggingObserver, NavigationObserver
from .route_info import PathStyle, RouteInfo, describe
from .session import NavigationSession

__all__ = [
    "NavigationSession",
    "NavigationObserver",
    "LoggingObserver",
    "RouteInfo",
    "PathStyle",
    "describe",
]
