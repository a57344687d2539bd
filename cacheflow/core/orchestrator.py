"""
The request orchestrator: decides between cache, live response and download for
every request, and emits the resulting outcome sequence.
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from pydantic import BaseModel, TypeAdapter

from cacheflow.api.response import ApiResponse, FileBody
from cacheflow.exceptions import (
    CacheError,
    CacheFlowError,
    NetworkError,
    ParseError,
    classify_exception,
)
from cacheflow.listeners import ResultListener
from cacheflow.media.downloader import (
    DownloadComplete,
    DownloadFailed,
    DownloadProgress,
    Downloader,
)
from cacheflow.models.config import CacheFlowConfig
from cacheflow.models.outcome import Failure, FileSuccess, Loading, Outcome, Success
from cacheflow.models.stats import CacheStats
from cacheflow.storage.cache import CacheEntry, CacheStore, now_millis
from cacheflow.utils.content_types import is_downloadable_content
from cacheflow.utils.path import file_name_from_key

from .channel import OutcomeEmitter

log = logging.getLogger(__name__)

ApiCall = Callable[[], Awaitable[ApiResponse]]

_PAYLOAD_ADAPTER: TypeAdapter[Any] = TypeAdapter(Any)


def admits_file(result_type: Any, value: Any) -> bool:
    """Checks whether the caller's expected result type can hold a downloaded file."""
    if result_type is None or result_type is Any:
        return True
    try:
        return isinstance(value, result_type)
    except TypeError:
        return False


def _type_name(value: Any) -> str:
    return getattr(value, "__name__", None) or repr(value)


class RequestOrchestrator:
    """
    Runs the request state machine.

    Every attempt emits `Loading` first and ends with exactly one `Success` or
    `Failure`. Downloads add `Loading(progress=...)` events in between. By
    default the live call is always made, even when a valid cache entry exists,
    so each request refreshes the cache; offline mode only decides which value
    is returned.
    """

    def __init__(
        self,
        config: CacheFlowConfig,
        cache: CacheStore,
        downloader: Downloader,
        stats: CacheStats | None = None,
        clock: Callable[[], int] = now_millis,
    ):
        self.config = config
        self.cache = cache
        self.downloader = downloader
        self.stats = stats or CacheStats()
        self._clock = clock

    async def perform_request(
        self,
        key: str,
        call: ApiCall,
        listener: ResultListener | None = None,
        result_type: Any = None,
    ) -> AsyncIterator[Outcome]:
        """
        Performs `call` for the request identified by `key` and yields its outcomes.

        Args:
            key: Opaque cache key, conventionally the request URL.
            call: Zero-argument coroutine function performing the HTTP call.
            listener: Optional listener mirroring every yielded outcome.
            result_type: Type the caller expects for downloaded files; a download
                whose path is not an instance of it fails with a type mismatch.
        """
        emitter = OutcomeEmitter(listener, self.config.error_listener)
        producer = asyncio.create_task(self._run(key, call, emitter, result_type))
        try:
            async for outcome in emitter.events():
                yield outcome
        finally:
            if not producer.done():
                producer.cancel()
            await asyncio.gather(producer, return_exceptions=True)

    async def execute(
        self,
        key: str,
        call: ApiCall,
        listener: ResultListener | None = None,
        result_type: Any = None,
    ) -> Outcome:
        """Runs a request to completion and returns its terminal outcome."""
        outcome: Outcome | None = None
        async for outcome in self.perform_request(key, call, listener, result_type):
            pass
        if outcome is None or not outcome.is_terminal:
            raise RuntimeError(f"Request for '{key}' ended without a terminal outcome")
        return outcome

    async def clear_cache(self, key: str | None = None) -> Outcome:
        """Clears one key, or every entry when `key` is None."""
        emitter = OutcomeEmitter(error_listener=self.config.error_listener)
        try:
            if key is not None:
                await self.cache.delete_by_key(key)
            else:
                await self.cache.delete_all()
        except CacheFlowError as e:
            log.error(f"[red]Failed to clear cache: {e}[/red]")
            outcome: Outcome = Failure.from_error(e)
        else:
            outcome = Success(None)
        emitter.emit(outcome)
        return outcome

    async def _run(
        self, key: str, call: ApiCall, emitter: OutcomeEmitter, result_type: Any
    ) -> None:
        emitter.emit(Loading())
        try:
            await self._orchestrate(key, call, emitter, result_type)
        except Exception as e:
            if emitter.terminated:
                log.exception(f"Request for '{key}' failed after completing")
                return
            emitter.emit(self._failure(classify_exception(e), exc=e))

    async def _orchestrate(
        self, key: str, call: ApiCall, emitter: OutcomeEmitter, result_type: Any
    ) -> None:
        log.debug(f"Performing request for key: {key}")

        if not self.config.refresh_on_cache_hit:
            entry = await self._lookup_valid(key)
            if entry is not None:
                log.debug(f"Returning cached response without a call for: {key}")
                emitter.emit(Success(self._deserialize(entry.payload)))
                return

        response = await call()

        if is_downloadable_content(response.content_type):
            if not response.is_file:
                message = (
                    "Error: Expected response type FileBody but found "
                    f"{type(response.body).__name__}"
                )
                log.error(message)
                emitter.emit(self._failure(ParseError(message)))
                return
            log.debug("Downloadable content detected. Starting download...")
            await self._download(key, response.body, emitter, result_type)
            return

        if response.is_file:
            response.body.release()
        if not response.ok:
            raise NetworkError(
                f"Request failed with HTTP {response.status}", response.status
            )
        if response.is_file:
            raise ParseError(
                "Received a streamed body for non-downloadable content type "
                f"'{response.content_type}'."
            )

        live_body = self._coerce_live(response.body)
        cached = None
        if self.config.offline_mode_enabled:
            cached = await self._lookup_valid(key)
        await self._store(key, live_body)

        if cached is not None:
            log.debug(f"Returning cached response for key: {key}")
            emitter.emit(Success(self._deserialize(cached.payload)))
        else:
            emitter.emit(Success(live_body))

    async def _download(
        self, key: str, body: FileBody, emitter: OutcomeEmitter, result_type: Any
    ) -> None:
        file_name = file_name_from_key(key)
        async for event in self.downloader.stream(body, file_name):
            if isinstance(event, DownloadProgress):
                emitter.emit(Loading(progress=event.percentage))
            elif isinstance(event, DownloadComplete):
                self.stats.record_download(event.size_bytes)
                if admits_file(result_type, event.path):
                    emitter.emit(FileSuccess(event.path))
                else:
                    message = (
                        "Error casting file to expected type "
                        f"{_type_name(result_type)}: downloaded '{event.path.name}' "
                        f"is a {type(event.path).__name__}"
                    )
                    log.error(message)
                    emitter.emit(self._failure(ParseError(message)))
            elif isinstance(event, DownloadFailed):
                error = event.error
                if not isinstance(error, NetworkError):
                    error = NetworkError(event.message)
                    error.__cause__ = event.error
                emitter.emit(self._failure(error, message=event.message))
            else:
                raise TypeError(f"Unknown download event: {type(event).__name__}")

    async def _lookup_valid(self, key: str) -> CacheEntry | None:
        """Returns the entry for `key` if still fresh; read faults count as a miss."""
        try:
            entry = await self.cache.get(key)
        except CacheError as e:
            log.warning(f"[yellow]Treating cache read failure as a miss: {e}[/yellow]")
            entry = None
        if entry is not None and not self.cache.is_valid(
            entry, self.config.ttl_ms, self._clock()
        ):
            log.debug(f"Cache entry for '{key}' has expired.")
            entry = None
        self.stats.record_lookup(entry is not None)
        return entry

    async def _store(self, key: str, body: Any) -> None:
        try:
            payload = self._serialize(body)
            await self.cache.put(key, payload, self._clock())
            self.stats.cache_writes += 1
        except (ParseError, CacheError) as e:
            self.stats.cache_write_failures += 1
            log.warning(f"[yellow]Could not save response to cache: {e}[/yellow]")

    def _coerce_live(self, body: Any) -> Any:
        """Validates a live body into the configured response model, if any."""
        model = self.config.response_model
        if model is None or body is None or isinstance(body, model):
            return body
        if isinstance(body, (str, bytes)):
            return model.model_validate_json(body)
        return model.model_validate(body)

    @staticmethod
    def _serialize(body: Any) -> str:
        try:
            if isinstance(body, BaseModel):
                return body.model_dump_json()
            return _PAYLOAD_ADAPTER.dump_json(body).decode("utf-8")
        except (ValueError, TypeError) as e:
            raise ParseError(f"Could not serialize response body: {e}") from e

    def _deserialize(self, payload: str) -> Any:
        """Parses a stored payload into the response model, or plain JSON values."""
        if self.config.response_model is not None:
            return self.config.response_model.model_validate_json(payload)
        return json.loads(payload)

    def _failure(
        self,
        error: CacheFlowError,
        message: str | None = None,
        exc: BaseException | None = None,
    ) -> Failure:
        self.stats.requests_failed += 1
        show_traceback = exc is not None and not isinstance(exc, CacheFlowError)
        log.error(f"Error occurred: {error.message}", exc_info=show_traceback)
        return Failure(message or error.message, error)
