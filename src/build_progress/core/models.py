"""
Data models for build progress estimation.

This module provides the persisted cache record, the per-build estimator
state and the counters handed to the renderer.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Dict, Any


class BuildProgressError(Exception):
    """Base exception for build progress operations."""
    pass


class CacheError(BuildProgressError):
    """Raised when stored cache content cannot be used."""
    pass


class EstimatorMode(Enum):
    """Estimation strategy selected when a build is configured."""
    COLD = "cold"
    WARM = "warm"


@dataclass
class CacheRecord:
    """Totals observed in the last completed build."""
    transform_count: int = 0
    chunk_count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.transform_count == 0 and self.chunk_count == 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheRecord":
        """Create CacheRecord from the on-disk JSON object.

        Raises:
            CacheError: If a field is missing, not an integer or negative
        """
        if not isinstance(data, dict):
            raise CacheError(f"Expected a JSON object, got {type(data).__name__}")

        values = []
        for key in ("cacheTransformCount", "cacheChunkCount"):
            value = data.get(key)
            # bool is an int subclass but never a valid count
            if isinstance(value, bool) or not isinstance(value, int):
                raise CacheError(f"Field '{key}' must be an integer, got {value!r}")
            if value < 0:
                raise CacheError(f"Field '{key}' must not be negative, got {value}")
            values.append(value)

        return cls(transform_count=values[0], chunk_count=values[1])

    def to_dict(self) -> Dict[str, int]:
        """Convert to the on-disk JSON object."""
        return {
            "cacheTransformCount": self.transform_count,
            "cacheChunkCount": self.chunk_count,
        }


@dataclass
class DisplayCounters:
    """Auxiliary counters shown next to the progress bar."""
    transform_total: int = 0
    transform_current: int = 0
    chunk_total: int = 0
    chunk_current: int = 0

    def to_dict(self) -> Dict[str, int]:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class EstimatorState:
    """Mutable state of one build invocation."""
    mode: EstimatorMode
    expected_file_count: int = 1
    prior_transform_count: int = 0
    prior_chunk_count: int = 0
    transformed_so_far: int = 0
    transform_event_total: int = 0
    chunk_event_total: int = 0
    percent: float = 0.0
    displayed_percent: float = 0.0

    @property
    def prior_total(self) -> int:
        return self.prior_transform_count + self.prior_chunk_count

    def counters(self) -> DisplayCounters:
        """Snapshot the counters for display."""
        return DisplayCounters(
            transform_total=self.prior_transform_count,
            transform_current=self.transform_event_total,
            chunk_total=self.prior_chunk_count,
            chunk_current=self.chunk_event_total,
        )

    def to_record(self) -> CacheRecord:
        """Totals of this run, as persisted for the next one."""
        return CacheRecord(
            transform_count=self.transform_event_total,
            chunk_count=self.chunk_event_total,
        )
