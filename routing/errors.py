"""
Purpose: Error taxonomy for route resolution and progress tracking.
What it does:
- ProviderError: a directions backend failed, classified by ProviderErrorKind
- InvalidInputError: out-of-range coordinate or missing endpoint
- InvalidSampleError: a live position sample was rejected
- DegradedRouteWarning: resolver fell back to a straight-line estimate (not a failure)

Rule: No logic here beyond carrying context.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ProviderErrorKind(str, Enum):
    UNREACHABLE = "UNREACHABLE"
    TIMEOUT = "TIMEOUT"
    NO_ROUTE_FOUND = "NO_ROUTE_FOUND"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    RATE_LIMITED = "RATE_LIMITED"


class NavigationError(Exception):
    """Base class for errors raised by the navigation core."""

    def __init__(self, message: str, code: str = "NAVIGATION_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


class ProviderError(NavigationError):
    """Raised by a RouteProviderClient instead of raw transport exceptions."""

    def __init__(
        self,
        kind: ProviderErrorKind,
        message: str = "",
        provider_id: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.kind = kind
        self.provider_id = provider_id
        self.status_code = status_code
        super().__init__(message or kind.value, code=kind.value)

    def __repr__(self) -> str:
        return f"ProviderError({self.kind.value}, provider={self.provider_id!r}, message={self.message!r})"


class InvalidInputError(NavigationError, ValueError):
    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, code="INVALID_INPUT")


class InvalidSampleError(InvalidInputError):
    """A position sample outside the valid lat/lon range. Not fatal to the tracker."""


class DegradedRouteWarning(UserWarning):
    """All providers failed and a straight-line estimate was returned instead."""
