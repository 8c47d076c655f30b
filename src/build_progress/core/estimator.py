"""
Progress estimation engine.

The engine turns build lifecycle events into a completion percentage for a
build whose total amount of work is unknown up front:

1. Cold mode: no totals from a previous build. The transform phase is
   measured against a scan of the source tree, the chunk phase advances by a
   fixed step per chunk.
2. Warm mode: the previous build's transform and chunk totals stand in for
   the expected amount of work.

The displayed percentage only ever moves forward within a build.
"""

import logging
import re
from pathlib import Path
from typing import Iterable, Optional, Protocol, Union

from .cache import CacheStore
from .models import CacheRecord, DisplayCounters, EstimatorMode, EstimatorState
from .scanner import DEFAULT_EXTENSIONS, count_source_files

logger = logging.getLogger(__name__)

DEFAULT_DEPENDENCY_MARKER = "node_modules"

# Cold mode thresholds
TRANSFORM_PHASE_LIMIT = 0.25
HIGH_CONFIDENCE_LIMIT = 0.8
CREEP_LIMIT = 0.65
CREEP_STEP = 0.001
CHUNK_STEP = 0.005

# Chunk events stop advancing the bar past this point
CHUNK_PHASE_LIMIT = 0.95


class ProgressRenderer(Protocol):
    """Anything able to display the engine's output."""

    def update(self, percent: float, counters: DisplayCounters) -> None:
        ...

    def finish(self) -> None:
        ...

    def stop(self) -> None:
        ...


def ratchet(state: EstimatorState, value: float) -> None:
    """Raise displayed_percent to value, never lowering it, within [0, 1]."""
    value = min(max(value, 0.0), 1.0)
    if value > state.displayed_percent:
        state.displayed_percent = value


class ColdEstimator:
    """Estimates progress from a source file count."""

    mode = EstimatorMode.COLD

    def __init__(self, dependency_marker: str = DEFAULT_DEPENDENCY_MARKER):
        self._dependency_pattern = re.compile(re.escape(dependency_marker), re.IGNORECASE)

    def is_qualifying(self, module_id: str) -> bool:
        """Project modules qualify, third-party dependency modules don't."""
        return not self._dependency_pattern.search(module_id or "")

    def on_transform(self, state: EstimatorState, module_id: str) -> None:
        """Count a project module and creep once the transform phase is over."""
        # Every source file is assumed to cost two transforms worth of work,
        # so the transform phase alone tops out at a quarter of the bar.
        if self.is_qualifying(module_id) and state.percent < TRANSFORM_PHASE_LIMIT:
            state.transformed_so_far += 1
            state.percent = round(
                state.transformed_so_far / (state.expected_file_count * 2), 2
            )
            if state.percent < HIGH_CONFIDENCE_LIMIT:
                ratchet(state, state.percent)

        if state.percent >= TRANSFORM_PHASE_LIMIT and state.displayed_percent <= CREEP_LIMIT:
            ratchet(state, round(state.displayed_percent + CREEP_STEP, 4))

    def on_chunk_rendered(self, state: EstimatorState) -> None:
        """Advance by a fixed step per chunk."""
        ratchet(state, round(state.displayed_percent + CHUNK_STEP, 4))


class WarmEstimator:
    """Estimates progress from the previous build's totals."""

    mode = EstimatorMode.WARM

    def on_transform(self, state: EstimatorState, module_id: str) -> None:
        """Count one unit of the previous build's work."""
        self._advance(state)

    def on_chunk_rendered(self, state: EstimatorState) -> None:
        """Count one unit of the previous build's work."""
        self._advance(state)

    def _advance(self, state: EstimatorState) -> None:
        # The denominator includes chunk work that has not started yet, which
        # keeps the transform phase from saturating the bar on its own.
        state.transformed_so_far += 1
        value = round(state.transformed_so_far / state.prior_total, 4)
        state.percent = min(value, 1.0)
        ratchet(state, value)


class ProgressEngine:
    """
    Build progress state machine.

    Exposes four entry points driven by the host build tool:
    on_configure, on_transform, on_chunk_rendered and on_build_close.
    Events arriving before a build has been configured are ignored.
    """

    def __init__(
        self,
        cache_store: Optional[CacheStore] = None,
        source_root: Union[str, Path] = "src",
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        dependency_marker: str = DEFAULT_DEPENDENCY_MARKER,
        renderer: Optional[ProgressRenderer] = None
    ):
        """Initialize the engine.

        Args:
            cache_store: Store holding the previous build's totals
            source_root: Directory scanned for source files in cold mode
            extensions: Tracked source file extensions
            dependency_marker: Path fragment identifying third-party modules
            renderer: Optional display receiving every update
        """
        self.cache_store = cache_store or CacheStore()
        self.source_root = Path(source_root)
        self.extensions = tuple(extensions)
        self.dependency_marker = dependency_marker
        self.renderer = renderer

        self.state: Optional[EstimatorState] = None
        self._estimator = None
        self._closed = False

    @property
    def active(self) -> bool:
        """Whether a build is configured and not yet closed."""
        return self.state is not None and not self._closed

    @property
    def mode(self) -> Optional[EstimatorMode]:
        return self.state.mode if self.state else None

    def on_configure(self, is_build_command: bool) -> None:
        """Set up state for a new build.

        Args:
            is_build_command: False for non-build commands, which leaves the
                engine inactive
        """
        self._closed = False
        if not is_build_command:
            logger.debug("Not a build command, progress estimation disabled")
            self.state = None
            self._estimator = None
            return

        record = self.cache_store.load() if self.cache_store.exists() else None

        if record is not None and not record.is_empty:
            self.state = EstimatorState(
                mode=EstimatorMode.WARM,
                prior_transform_count=record.transform_count,
                prior_chunk_count=record.chunk_count,
            )
            self._estimator = WarmEstimator()
            logger.info(
                f"Warm progress estimate from previous build: "
                f"{record.transform_count} transforms, {record.chunk_count} chunks"
            )
            return

        if record is not None:
            logger.info("Cached build totals are empty, falling back to cold estimate")

        file_count = count_source_files(self.project_path(self.source_root), self.extensions)
        self.state = EstimatorState(
            mode=EstimatorMode.COLD,
            expected_file_count=max(file_count, 1),
        )
        self._estimator = ColdEstimator(self.dependency_marker)
        logger.info(f"Cold progress estimate from {file_count} source files")

    def on_transform(self, module_id: str) -> Optional[float]:
        """Record one module transformation.

        Args:
            module_id: Identifier (usually a path) of the transformed module

        Returns:
            Displayed percentage, or None when no build is active
        """
        if not self.active:
            return None

        state = self.state
        state.transform_event_total += 1

        if state.mode is EstimatorMode.WARM and state.transform_event_total == 1:
            # Show the starting point before the first advance
            self._render()

        self._estimator.on_transform(state, module_id)
        self._render()
        return state.displayed_percent

    def on_chunk_rendered(self) -> Optional[float]:
        """Record one rendered output chunk.

        Returns:
            Displayed percentage, or None when no build is active
        """
        if not self.active:
            return None

        state = self.state
        state.chunk_event_total += 1

        if state.displayed_percent <= CHUNK_PHASE_LIMIT:
            self._estimator.on_chunk_rendered(state)

        self._render()
        return state.displayed_percent

    def on_build_close(self, error: Optional[BaseException] = None) -> Optional[CacheRecord]:
        """Finish the build.

        Args:
            error: Build error reported by the host, if any

        Returns:
            The record handed to the cache store, or None when the build
            failed or no build was active
        """
        if not self.active:
            return None

        self._closed = True
        state = self.state

        if error is not None:
            logger.error(f"Build failed, progress cache not updated: {error}")
            if self.renderer is not None:
                self.renderer.stop()
            return None

        state.percent = 1.0
        state.displayed_percent = 1.0
        self._render()
        if self.renderer is not None:
            self.renderer.finish()

        record = state.to_record()
        self.cache_store.save(record)
        return record

    def project_path(self, path: Path) -> Path:
        """Resolve path against the cache store's project directory."""
        path = Path(path)
        if path.is_absolute():
            return path
        return self.cache_store.project_dir / path

    def _render(self) -> None:
        if self.renderer is not None:
            self.renderer.update(self.state.displayed_percent, self.state.counters())
