"""Lifecycle adapter between a host build tool and the progress engine."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.markup import escape

from build_progress.core.cache import CacheStore
from build_progress.core.estimator import ProgressEngine
from build_progress.core.models import CacheRecord
from build_progress.ui.progress import BuildProgressBar
from build_progress.utils.config import Config

logger = logging.getLogger(__name__)


class ProgressPlugin:
    """
    Build plugin reporting progress on the terminal.

    The hook methods follow the host tool's pipeline order:
    config -> transform* -> build_end -> render_chunk* -> close_bundle.
    Only the "build" command is tracked.
    """

    name = "build-progress"
    apply = "build"

    def __init__(
        self,
        options: Optional[Dict[str, Any]] = None,
        project_dir: Optional[Path] = None,
        console: Optional[Console] = None
    ):
        """Initialize plugin.

        Args:
            options: Overrides for configuration keys (bar_width, description,
                source_root, cache_dir, extensions, dependency_marker)
            project_dir: Project working directory (defaults to cwd)
            console: Rich console used for the bar and error output
        """
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self.console = console or Console(stderr=True)

        self.settings = Config(project_dir=self.project_dir)
        if options:
            self.settings.update(options)

        self.bar = self._make_bar()
        self.engine = ProgressEngine(
            cache_store=CacheStore(self.project_dir, self.settings.get("cache_dir")),
            source_root=self.settings.get("source_root"),
            extensions=self.settings.get("extensions"),
            dependency_marker=self.settings.get("dependency_marker"),
            renderer=self.bar,
        )
        self._build_error: Optional[BaseException] = None

    def config(self, command: str) -> None:
        """Called once the host has resolved which command runs."""
        self._build_error = None
        self.bar = self._make_bar()
        self.engine.renderer = self.bar
        self.engine.on_configure(command == self.apply)

    def transform(self, code: str, module_id: str) -> str:
        """Called for every module; the code passes through unchanged."""
        self.engine.on_transform(module_id)
        return code

    def build_end(self, error: Optional[BaseException] = None) -> None:
        """Called when module processing ends, with the error if it failed."""
        self._build_error = error

    def render_chunk(self, code: Optional[str] = None, chunk: Any = None) -> None:
        """Called for every output chunk; never modifies it."""
        self.engine.on_chunk_rendered()
        return None

    def close_bundle(self) -> Optional[CacheRecord]:
        """Called last; persists totals when the build succeeded."""
        error = self._build_error
        record = self.engine.on_build_close(error)
        if error is not None:
            self.console.print(f"[red]Build failed: {escape(str(error))}[/red]")
        return record

    def _make_bar(self) -> BuildProgressBar:
        return BuildProgressBar(
            console=self.console,
            description=self.settings.get("description"),
            width=self.settings.get("bar_width"),
        )

    def hooks(self) -> Dict[str, Any]:
        """Map of host hook names to the bound handlers."""
        return {
            "config": self.config,
            "transform": self.transform,
            "buildEnd": self.build_end,
            "renderChunk": self.render_chunk,
            "closeBundle": self.close_bundle,
        }
