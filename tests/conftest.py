"""Shared test fixtures for cacheflow.

Provides isolated storage under ``tmp_path``, a controllable clock, a
recording listener, and a local aiohttp server that serves JSON, text and
file endpoints.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from cacheflow.api.response import ApiResponse
from cacheflow.listeners import ResultListener
from cacheflow.media.downloader import Downloader
from cacheflow.models.stats import CacheStats
from cacheflow.storage.cache import CacheStore
from cacheflow.storage.database import SqliteStore

# 50 KiB of non-text bytes so a chunk size of 1 KiB yields 50 progress steps.
FILE_PAYLOAD = bytes(range(256)) * 200
START_MILLIS = 1_700_000_000_000


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


@pytest.fixture()
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture()
def store(data_dir: Path) -> SqliteStore:
    return SqliteStore(data_dir)


@pytest.fixture()
def stats() -> CacheStats:
    return CacheStats()


@pytest.fixture()
def cache(store: SqliteStore) -> CacheStore:
    return CacheStore(store)


class UnmountedStore:
    """A key/value store living on a filesystem that has gone away."""

    async def get(self, key):
        raise OSError("disk gone")

    async def put(self, key, payload, stored_at):
        raise OSError("disk gone")

    async def delete(self, key):
        raise OSError("disk gone")

    async def clear(self):
        raise OSError("disk gone")


@pytest.fixture()
def downloader(data_dir: Path) -> Downloader:
    return Downloader(data_dir / "downloads", chunk_size=1024)


# ---------------------------------------------------------------------------
# Time and listeners
# ---------------------------------------------------------------------------


class FakeClock:
    """A millisecond clock that only moves when told to."""

    def __init__(self, now: int = START_MILLIS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


class RecordingListener(ResultListener[Any]):
    """Records every callback as a ``(name, argument)`` tuple."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []

    def on_loading(self) -> None:
        self.calls.append(("loading", None))

    def on_success(self, data: Any) -> None:
        self.calls.append(("success", data))

    def on_failure(self, message: str) -> None:
        self.calls.append(("failure", message))

    def on_file_download_progress(self, percentage: int) -> None:
        self.calls.append(("progress", percentage))

    def on_file_download_success(self, file: Path) -> None:
        self.calls.append(("file", file))


@pytest.fixture()
def listener() -> RecordingListener:
    return RecordingListener()


# ---------------------------------------------------------------------------
# Fake API calls
# ---------------------------------------------------------------------------


def json_response(body: Any, status: int = 200) -> ApiResponse:
    return ApiResponse(
        status=status, headers={"Content-Type": "application/json"}, body=body
    )


class CountingCall:
    """A zero-argument API call returning canned responses and counting calls."""

    def __init__(
        self, response: ApiResponse | Callable[[], Awaitable[ApiResponse]]
    ) -> None:
        self._response = response
        self.count = 0

    async def __call__(self) -> ApiResponse:
        self.count += 1
        if callable(self._response):
            return await self._response()
        return self._response


# ---------------------------------------------------------------------------
# Local HTTP server
# ---------------------------------------------------------------------------


async def _items(request: web.Request) -> web.Response:
    return web.json_response({"items": [1, 2, 3]})


async def _greeting(request: web.Request) -> web.Response:
    return web.Response(text="hello", content_type="text/plain")


async def _broken_json(request: web.Request) -> web.Response:
    return web.Response(text="{not json", content_type="application/json")


async def _server_error(request: web.Request) -> web.Response:
    return web.json_response({"code": 42, "detail": "boom"}, status=500)


async def _report(request: web.Request) -> web.Response:
    return web.Response(body=FILE_PAYLOAD, content_type="application/pdf")


async def _missing_report(request: web.Request) -> web.Response:
    return web.Response(body=b"gone", status=404, content_type="application/pdf")


async def _chunked_blob(request: web.Request) -> web.StreamResponse:
    response = web.StreamResponse(headers={"Content-Type": "application/octet-stream"})
    response.enable_chunked_encoding()
    await response.prepare(request)
    for offset in range(0, len(FILE_PAYLOAD), 4096):
        await response.write(FILE_PAYLOAD[offset : offset + 4096])
    await response.write_eof()
    return response


async def _slow_report(request: web.Request) -> web.StreamResponse:
    response = web.StreamResponse(headers={"Content-Type": "application/pdf"})
    response.content_length = len(FILE_PAYLOAD)
    await response.prepare(request)
    for offset in range(0, len(FILE_PAYLOAD), 1024):
        await response.write(FILE_PAYLOAD[offset : offset + 1024])
        await asyncio.sleep(0.05)
    await response.write_eof()
    return response


async def _truncated_report(request: web.Request) -> web.StreamResponse:
    response = web.StreamResponse(headers={"Content-Type": "application/pdf"})
    response.content_length = 100 * 1024
    await response.prepare(request)
    await response.write(FILE_PAYLOAD[: 10 * 1024])
    # Drop the connection with most of the declared body unsent.
    request.transport.close()
    return response


def build_app() -> web.Application:
    app = web.Application()
    app.router.add_get("/api/items", _items)
    app.router.add_get("/api/greeting", _greeting)
    app.router.add_get("/api/broken", _broken_json)
    app.router.add_get("/api/error", _server_error)
    app.router.add_get("/files/report.pdf", _report)
    app.router.add_get("/files/missing.pdf", _missing_report)
    app.router.add_get("/files/blob.bin", _chunked_blob)
    app.router.add_get("/files/slow.pdf", _slow_report)
    app.router.add_get("/files/truncated.pdf", _truncated_report)
    return app


@pytest_asyncio.fixture()
async def http_server():
    async with TestServer(build_app()) as server:
        yield server


@pytest.fixture()
def base_url(http_server: TestServer) -> str:
    return str(http_server.make_url("/"))
