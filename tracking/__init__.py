#Marks tracking as a package.
#Re-exports the live-progress API so callers don't need internal file names.

from .models import PositionSample, ProgressState
from .progress_tracker import ProgressTracker

__all__ = [
    "PositionSample",
    "ProgressState",
    "ProgressTracker",
]
