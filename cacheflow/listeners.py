"""
Callback interfaces for observing request outcomes.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ResultListener(ABC, Generic[T]):
    """
    Receives the same events as the outcome sequence, as discrete callbacks.

    The download hooks are optional and do nothing unless overridden.
    """

    @abstractmethod
    def on_loading(self) -> None:
        """Called when the request starts and on every download progress update."""

    @abstractmethod
    def on_success(self, data: T | None) -> None:
        """Called once with the result of a successful request."""

    @abstractmethod
    def on_failure(self, message: str) -> None:
        """Called once when the request fails."""

    def on_file_download_progress(self, percentage: int) -> None:
        """Percentage complete, or -1 when the total size is unknown."""

    def on_file_download_success(self, file: Path) -> None:
        pass


class CallbackListener(ResultListener[Any]):
    """Builds a listener out of plain callables; any of them may be omitted."""

    def __init__(
        self,
        on_loading: Callable[[], None] | None = None,
        on_success: Callable[[Any], None] | None = None,
        on_failure: Callable[[str], None] | None = None,
        on_progress: Callable[[int], None] | None = None,
        on_file: Callable[[Path], None] | None = None,
    ):
        self._on_loading = on_loading
        self._on_success = on_success
        self._on_failure = on_failure
        self._on_progress = on_progress
        self._on_file = on_file

    def on_loading(self) -> None:
        if self._on_loading:
            self._on_loading()

    def on_success(self, data: Any) -> None:
        if self._on_success:
            self._on_success(data)

    def on_failure(self, message: str) -> None:
        if self._on_failure:
            self._on_failure(message)

    def on_file_download_progress(self, percentage: int) -> None:
        if self._on_progress:
            self._on_progress(percentage)

    def on_file_download_success(self, file: Path) -> None:
        if self._on_file:
            self._on_file(file)
