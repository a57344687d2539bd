"""
The session handle owning one active configuration and the components built
from it.
"""

import logging
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import aiohttp

from cacheflow.api.client import HttpTransport
from cacheflow.core.orchestrator import ApiCall, RequestOrchestrator
from cacheflow.listeners import ResultListener
from cacheflow.media.downloader import Downloader
from cacheflow.models.config import CacheFlowConfig
from cacheflow.models.outcome import Outcome
from cacheflow.models.stats import CacheStats
from cacheflow.storage.cache import CacheStore
from cacheflow.storage.database import SqliteStore
from cacheflow.utils.path import get_data_dir

log = logging.getLogger(__name__)

DOWNLOADS_DIR_NAME = "downloads"


class CacheFlow:
    """
    A configured caching session.

    Holds the immutable configuration, the HTTP transport, the cache store and
    the download coordinator, and exposes the request operations. Create one
    with `initialize()` and pass it wherever requests are made.
    """

    def __init__(
        self,
        config: CacheFlowConfig,
        transport: HttpTransport,
        store: SqliteStore,
        data_dir: Path,
    ):
        self.config = config
        self.transport = transport
        self.store = store
        self.data_dir = data_dir
        self.stats = CacheStats()
        self.cache = CacheStore(store)
        self.downloader = Downloader(data_dir / DOWNLOADS_DIR_NAME)
        self.orchestrator = RequestOrchestrator(
            config, self.cache, self.downloader, self.stats
        )

    @property
    def downloads_dir(self) -> Path:
        return self.downloader.downloads_dir

    def perform_request(
        self,
        key: str,
        call: ApiCall,
        listener: ResultListener | None = None,
        result_type: Any = None,
    ) -> AsyncIterator[Outcome]:
        """Runs `call` through the cache and returns the lazy outcome sequence."""
        return self.orchestrator.perform_request(key, call, listener, result_type)

    async def execute(
        self,
        key: str,
        call: ApiCall,
        listener: ResultListener | None = None,
        result_type: Any = None,
    ) -> Outcome:
        return await self.orchestrator.execute(key, call, listener, result_type)

    def fetch(
        self,
        path: str,
        listener: ResultListener | None = None,
        result_type: Any = None,
    ) -> AsyncIterator[Outcome]:
        """
        GETs `path` with the session's transport, keyed by its absolute URL.

        Downloadable content types are streamed to the downloads directory.
        """
        url = self.transport.url_for(path)
        return self.perform_request(
            url, lambda: self.transport.fetch(url), listener, result_type
        )

    async def clear_cache(self, key: str | None = None) -> Outcome:
        """Clears the entry for `key`, or the whole cache when `key` is None."""
        return await self.orchestrator.clear_cache(key)

    async def close(self) -> None:
        await self.transport.close()

    async def __aenter__(self) -> "CacheFlow":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def initialize(
    config: CacheFlowConfig,
    base_url: str = "",
    data_dir: Path | None = None,
    session: aiohttp.ClientSession | None = None,
    headers: dict[str, str] | None = None,
) -> CacheFlow:
    """
    Builds a CacheFlow session.

    Args:
        config: The configuration that stays active for the session's lifetime.
        base_url: Base URL relative request paths are resolved against.
        data_dir: Directory for the cache database and downloads. Defaults to
            the per-user data directory.
        session: Optional aiohttp session to use instead of an owned one.
        headers: Default headers for the owned session.

    Calling this again creates a new, independent session; nothing is shared
    with earlier ones except the files in `data_dir`.
    """
    data_dir = data_dir or get_data_dir()
    transport = HttpTransport(
        base_url,
        session=session,
        max_connections=config.max_connections,
        timeout=config.request_timeout,
        error_model=config.error_model,
        headers=headers,
    )
    store = SqliteStore(data_dir)
    log.debug(
        f"Initialized CacheFlow session (data dir: {data_dir}, base URL: {base_url!r})"
    )
    return CacheFlow(config, transport, store, data_dir)
