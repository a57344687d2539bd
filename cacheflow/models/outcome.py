"""
The outcome events emitted for every request attempt.

A request produces exactly one `Loading` first, optionally more `Loading`
events carrying download progress, and then exactly one terminal `Success`
or `Failure`.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generic, TypeVar, Union

from cacheflow.exceptions import CacheFlowError

T = TypeVar("T")


@dataclass(frozen=True)
class Loading:
    """The request is in flight. `progress` is set only by download sub-flows."""

    progress: int | None = None

    @property
    def is_terminal(self) -> bool:
        return False


@dataclass(frozen=True)
class Success(Generic[T]):
    data: T | None = None

    @property
    def is_terminal(self) -> bool:
        return True


@dataclass(frozen=True)
class FileSuccess(Success[Path]):
    """A successful download; `data` is the path of the written file."""


@dataclass(frozen=True)
class Failure:
    message: str
    cause: CacheFlowError | None = None

    @property
    def is_terminal(self) -> bool:
        return True

    @classmethod
    def from_error(cls, error: CacheFlowError) -> "Failure":
        return cls(error.message, error)


Outcome = Union[Loading, Success[Any], FileSuccess, Failure]
