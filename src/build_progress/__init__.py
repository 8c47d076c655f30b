"""
Build progress estimation.

Estimates the completion percentage of a bundling build whose total amount
of work is unknown, reusing the totals of the previous successful build.
"""

__version__ = "0.1.0"

from .core.models import (
    BuildProgressError, CacheError, CacheRecord, DisplayCounters,
    EstimatorMode, EstimatorState
)
from .core.cache import CacheStore
from .core.estimator import ProgressEngine
from .plugin import ProgressPlugin

__all__ = [
    # Models
    "CacheRecord", "DisplayCounters", "EstimatorMode", "EstimatorState",

    # Exceptions
    "BuildProgressError", "CacheError",

    # Engine
    "CacheStore", "ProgressEngine",

    # Host integration
    "ProgressPlugin",
]
