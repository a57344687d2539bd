"""
Handles streaming of file-typed HTTP response bodies to local storage,
reporting progress as the bytes arrive.
"""

import asyncio
import logging
import os
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import aiofiles

from cacheflow.api.response import FileBody
from cacheflow.exceptions import NetworkError
from cacheflow.utils.path import create_dir

log = logging.getLogger(__name__)

UNKNOWN_PROGRESS = -1


@dataclass(frozen=True)
class DownloadProgress:
    """Percentage complete in [0, 100], or -1 when the total size is unknown."""

    percentage: int


@dataclass(frozen=True)
class DownloadComplete:
    path: Path
    size_bytes: int


@dataclass(frozen=True)
class DownloadFailed:
    error: Exception

    @property
    def message(self) -> str:
        return str(self.error) or "Download failed"


DownloadEvent = Union[DownloadProgress, DownloadComplete, DownloadFailed]


def compute_percentage(bytes_read: int, total_bytes: int | None) -> int:
    if not total_bytes or total_bytes <= 0:
        return UNKNOWN_PROGRESS
    return min(100, bytes_read * 100 // total_bytes)


class Downloader:
    """
    Streams response bodies into the downloads directory in fixed-size chunks.

    The copy loop runs as a background task and hands its events to the caller
    through a queue, so callers observe zero or more `DownloadProgress` events
    followed by exactly one `DownloadComplete` or `DownloadFailed`.
    """

    CHUNK_SIZE = 8 * 1024

    def __init__(self, downloads_dir: Path, chunk_size: int = CHUNK_SIZE):
        self.downloads_dir = downloads_dir
        self.chunk_size = chunk_size

    def destination_for(self, file_name: str) -> Path:
        return self.downloads_dir / file_name

    async def stream(
        self, body: FileBody, file_name: str
    ) -> AsyncIterator[DownloadEvent]:
        """
        Copies `body` to `<downloads_dir>/<file_name>` and yields its events.

        An existing file with the same name is overwritten. The body is released
        once the copy ends, whatever the result.
        """
        if not body.ok:
            body.release()
            message = f"Failed to download file: HTTP {body.status}"
            log.error(message)
            yield DownloadFailed(NetworkError(message, body.status))
            return

        destination = self.destination_for(file_name)
        events: asyncio.Queue[DownloadEvent] = asyncio.Queue()
        copy_task = asyncio.create_task(self._copy(body, destination, events))
        try:
            while True:
                event = await events.get()
                yield event
                if not isinstance(event, DownloadProgress):
                    break
        finally:
            if not copy_task.done():
                copy_task.cancel()
            await asyncio.gather(copy_task, return_exceptions=True)
            body.release()

    async def _copy(
        self, body: FileBody, destination: Path, events: asyncio.Queue
    ) -> None:
        """Background copy loop; always finishes with exactly one terminal event."""
        total_bytes = body.content_length
        bytes_read = 0
        last_percentage: int | None = None
        try:
            await asyncio.to_thread(create_dir, destination.parent)
            async with aiofiles.open(destination, "wb") as f:
                async for chunk in body.iter_chunks(self.chunk_size):
                    await f.write(chunk)
                    bytes_read += len(chunk)
                    percentage = compute_percentage(bytes_read, total_bytes)
                    if percentage != last_percentage:
                        last_percentage = percentage
                        events.put_nowait(DownloadProgress(percentage))
                await f.flush()
        except Exception as e:
            log.error(f"Error during file download of '{destination.name}': {e}")
            await self._discard_partial(destination)
            events.put_nowait(DownloadFailed(e))
            return
        except asyncio.CancelledError:
            await self._discard_partial(destination)
            raise

        log.info(f"Download complete: {destination}")
        events.put_nowait(DownloadComplete(destination, bytes_read))

    @staticmethod
    async def _discard_partial(destination: Path) -> None:
        """Removes a partially written file; a failed removal is only logged."""
        try:
            await asyncio.to_thread(os.remove, destination)
        except FileNotFoundError:
            pass
        except OSError as e:
            log.warning(f"Could not remove partial download '{destination}': {e}")
