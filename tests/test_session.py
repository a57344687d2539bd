"""End-to-end tests for initialize() and the CacheFlow session handle."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest
from conftest import FILE_PAYLOAD, RecordingListener

from cacheflow import CacheFlowConfig, FileSuccess, Loading, Success, initialize
from cacheflow.api.response import ApiResponse


class TestInitialize:
    @pytest.mark.asyncio
    async def test_builds_independent_sessions(self, tmp_path: Path) -> None:
        first = initialize(CacheFlowConfig(), data_dir=tmp_path / "a")
        second = initialize(
            CacheFlowConfig(ttl=timedelta(seconds=5)), data_dir=tmp_path / "b"
        )
        try:
            assert first.config is not second.config
            assert first.store.db_path != second.store.db_path
            assert first.downloads_dir == tmp_path / "a" / "downloads"
        finally:
            await first.close()
            await second.close()

    @pytest.mark.asyncio
    async def test_transport_uses_config(self, tmp_path: Path) -> None:
        config = CacheFlowConfig(max_connections=3, request_timeout=5.0)
        async with initialize(config, "https://api.example.com", tmp_path) as flow:
            assert flow.transport.max_connections == 3
            assert flow.transport.timeout == 5.0
            assert flow.transport.base_url == "https://api.example.com"


class TestFetch:
    @pytest.mark.asyncio
    async def test_json_then_cached(self, base_url: str, tmp_path: Path) -> None:
        async with initialize(CacheFlowConfig(), base_url, tmp_path) as flow:
            first = [o async for o in flow.fetch("/api/items")]
            second = [o async for o in flow.fetch("/api/items")]

            assert first == [Loading(), Success({"items": [1, 2, 3]})]
            assert second == first
            assert flow.stats.cache_hits == 1
            assert flow.stats.cache_writes == 2

            entry = await flow.cache.get(flow.transport.url_for("/api/items"))
            assert entry is not None

    @pytest.mark.asyncio
    async def test_file_download(self, base_url: str, tmp_path: Path) -> None:
        listener = RecordingListener()
        async with initialize(CacheFlowConfig(), base_url, tmp_path) as flow:
            outcome = await flow.execute(
                flow.transport.url_for("/files/report.pdf"),
                lambda: flow.transport.fetch("/files/report.pdf"),
                listener,
            )

        assert isinstance(outcome, FileSuccess)
        assert outcome.data == tmp_path / "downloads" / "report.pdf"
        assert outcome.data.read_bytes() == FILE_PAYLOAD
        assert listener.calls[0] == ("loading", None)
        assert listener.calls[-1] == ("file", outcome.data)

    @pytest.mark.asyncio
    async def test_clear_cache(self, tmp_path: Path) -> None:
        async with initialize(CacheFlowConfig(), data_dir=tmp_path) as flow:

            async def call() -> ApiResponse:
                return ApiResponse(200, {"Content-Type": "application/json"}, [1])

            await flow.execute("k", call)
            assert await flow.store.count() == 1
            assert await flow.clear_cache() == Success(None)
            assert await flow.store.count() == 0
