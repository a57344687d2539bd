"""
A result listener that renders request and download progress with Rich.
"""

import logging
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from cacheflow.listeners import ResultListener

log = logging.getLogger(__name__)


class RichProgressListener(ResultListener[Any]):
    """
    Shows a spinner while the request runs and a percentage bar once a
    download reports progress. The display is torn down on the terminal event.
    """

    def __init__(self, console: Console, description: str):
        self.console = console
        self.description = description
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}", justify="left"),
            BarColumn(bar_width=30),
            "[progress.percentage]{task.percentage:>3.0f}%",
            "•",
            TimeElapsedColumn(),
            console=console,
            transient=True,
        )
        self._task_id: TaskID | None = None
        self.saved_file: Path | None = None

    def on_loading(self) -> None:
        if self._task_id is None:
            self.progress.start()
            self._task_id = self.progress.add_task(self.description, total=None)

    def on_file_download_progress(self, percentage: int) -> None:
        if self._task_id is None:
            return
        if percentage < 0:
            # Unknown content length keeps the bar indeterminate.
            self.progress.update(self._task_id, total=None)
        else:
            self.progress.update(self._task_id, total=100, completed=percentage)

    def on_success(self, data: Any) -> None:
        self._finish()

    def on_failure(self, message: str) -> None:
        self._finish()
        log.debug(f"Request failed: {message}")

    def on_file_download_success(self, file: Path) -> None:
        self.saved_file = file

    def _finish(self) -> None:
        if self._task_id is not None:
            self.progress.stop()
            self._task_id = None
