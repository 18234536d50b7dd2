"""Progress sinks for generation runs."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TimeRemainingColumn,
)

# Receives the completed fraction of a run, in ``[0, 1]``.
ProgressSink = Callable[[float], None]


class RichProgressSink:
    """Forward run progress to a task of a :class:`rich.progress.Progress`."""

    def __init__(self, progress: Progress, task_id: TaskID) -> None:
        self._progress = progress
        self._task_id = task_id

    def __call__(self, fraction: float) -> None:
        self._progress.update(self._task_id, completed=min(max(fraction, 0.0), 1.0))


@contextmanager
def rich_progress(
    description: str = "Building PDF",
    *,
    console: Console | None = None,
) -> Iterator[RichProgressSink]:
    """Show a progress bar for the duration of the ``with`` block.

    Example::

        with rich_progress() as sink:
            result = await orchestrator.run(entries, settings, on_progress=sink)
    """
    progress = Progress(
        SpinnerColumn(),
        "[progress.description]{task.description}",
        BarColumn(),
        TaskProgressColumn(),
        TimeRemainingColumn(),
        console=console,
    )
    with progress:
        task_id = progress.add_task(description=description, total=1.0)
        yield RichProgressSink(progress, task_id)
