"""
A single emission point for outcomes, fanned out to the outcome sequence and to
callback listeners so both observe the same events in the same order.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any

from cacheflow.exceptions import CacheFlowError
from cacheflow.listeners import ResultListener
from cacheflow.models.outcome import Failure, FileSuccess, Loading, Outcome, Success

log = logging.getLogger(__name__)


class QueueAdapter:
    """Buffers outcomes for the lazy sequence."""

    def __init__(self) -> None:
        self.queue: asyncio.Queue[Outcome] = asyncio.Queue()

    def deliver(self, outcome: Outcome) -> None:
        self.queue.put_nowait(outcome)


class ListenerAdapter:
    """Translates outcomes into `ResultListener` callbacks."""

    def __init__(self, listener: ResultListener) -> None:
        self.listener = listener

    def deliver(self, outcome: Outcome) -> None:
        if not isinstance(outcome, (Loading, Success, Failure)):
            raise TypeError(f"Unknown outcome type: {type(outcome).__name__}")
        try:
            if isinstance(outcome, Loading):
                self.listener.on_loading()
                if outcome.progress is not None:
                    self.listener.on_file_download_progress(outcome.progress)
            elif isinstance(outcome, FileSuccess):
                self.listener.on_success(outcome.data)
                self.listener.on_file_download_success(outcome.data)
            elif isinstance(outcome, Success):
                self.listener.on_success(outcome.data)
            else:
                self.listener.on_failure(outcome.message)
        except Exception:
            log.exception(f"Result listener raised while handling {outcome!r}")


class ErrorListenerAdapter:
    """Forwards the cause of every failure to the configured error listener."""

    def __init__(self, error_listener: Callable[[CacheFlowError], Any]) -> None:
        self.error_listener = error_listener

    def deliver(self, outcome: Outcome) -> None:
        if not isinstance(outcome, Failure) or outcome.cause is None:
            return
        try:
            self.error_listener(outcome.cause)
        except Exception:
            log.exception("Error listener raised while handling a failure")


class OutcomeEmitter:
    """
    Emits the outcomes of one request attempt.

    `emit` pushes an event to every adapter at once; `events()` yields the
    buffered events in emission order and stops after the first terminal one.
    """

    def __init__(
        self,
        listener: ResultListener | None = None,
        error_listener: Callable[[CacheFlowError], Any] | None = None,
    ) -> None:
        self._queue_adapter = QueueAdapter()
        self._adapters: list[QueueAdapter | ListenerAdapter | ErrorListenerAdapter] = [
            self._queue_adapter
        ]
        if listener is not None:
            self._adapters.append(ListenerAdapter(listener))
        if error_listener is not None:
            self._adapters.append(ErrorListenerAdapter(error_listener))
        self._terminated = False

    @property
    def terminated(self) -> bool:
        return self._terminated

    def emit(self, outcome: Outcome) -> None:
        if self._terminated:
            raise RuntimeError(f"Outcome emitted after a terminal event: {outcome!r}")
        if outcome.is_terminal:
            self._terminated = True
        for adapter in self._adapters:
            adapter.deliver(outcome)

    async def events(self) -> AsyncIterator[Outcome]:
        while True:
            outcome = await self._queue_adapter.queue.get()
            yield outcome
            if outcome.is_terminal:
                return
