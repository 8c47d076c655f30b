"""Terminal progress bar for builds."""

from typing import Optional

from rich.console import Console
from rich.progress import (
    Progress, SpinnerColumn, TextColumn, BarColumn, TimeElapsedColumn
)

from build_progress.core.models import DisplayCounters


class BuildProgressBar:
    """Displays the engine's percentage with a rich progress bar."""

    def __init__(
        self,
        console: Optional[Console] = None,
        description: str = "Building",
        width: int = 40,
        show_counters: Optional[bool] = None
    ):
        """Initialize progress bar.

        Args:
            console: Rich console to draw on
            description: Label shown before the bar
            width: Bar width in characters
            show_counters: Force the transform/chunk counters on or off.
                By default they are shown when previous totals are known.
        """
        self.console = console or Console(stderr=True)
        self.description = description
        self.width = width
        self.show_counters = show_counters
        self.percent = 0.0
        self.finished = False
        self._progress: Optional[Progress] = None
        self._task = None

    @property
    def started(self) -> bool:
        return self._progress is not None

    def update(self, percent: float, counters: DisplayCounters) -> None:
        """Redraw the bar.

        Args:
            percent: Completion in [0, 1]
            counters: Auxiliary transform/chunk counters
        """
        if self._progress is None:
            self._start(counters)

        self.percent = percent
        self._progress.update(self._task, completed=percent, **counters.to_dict())

    def finish(self) -> None:
        """Complete the bar and stop drawing."""
        if self._progress is None:
            return
        self._progress.update(self._task, completed=1.0)
        self.percent = 1.0
        self.finished = True
        self._progress.stop()

    def stop(self) -> None:
        """Stop drawing, leaving the bar where it is."""
        if self._progress is not None:
            self._progress.stop()

    def _start(self, counters: DisplayCounters) -> None:
        show_counters = self.show_counters
        if show_counters is None:
            show_counters = bool(counters.transform_total or counters.chunk_total)

        columns = [
            SpinnerColumn(),
            TextColumn("[green]{task.description}"),
            BarColumn(bar_width=self.width),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        ]
        if show_counters:
            columns.append(TextColumn(
                "[magenta]Transforms:[/magenta] "
                "{task.fields[transform_current]}/{task.fields[transform_total]}"
            ))
            columns.append(TextColumn(
                "[magenta]Chunks:[/magenta] "
                "{task.fields[chunk_current]}/{task.fields[chunk_total]}"
            ))
        columns.append(TimeElapsedColumn())

        self._progress = Progress(*columns, console=self.console)
        self._task = self._progress.add_task(
            self.description, total=1.0, **counters.to_dict()
        )
        self._progress.start()
