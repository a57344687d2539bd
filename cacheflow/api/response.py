"""
Response types produced by the transport and consumed by the orchestrator.
"""

from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from typing import Any

import aiohttp


class FileBody:
    """
    A response body that has not been read yet and is meant to be streamed to
    disk. Wraps an open aiohttp response; whoever consumes it must call
    `release()`.
    """

    def __init__(self, response: aiohttp.ClientResponse):
        self._response = response

    @property
    def status(self) -> int:
        return self._response.status

    @property
    def ok(self) -> bool:
        return 200 <= self._response.status < 300

    @property
    def content_length(self) -> int | None:
        return self._response.content_length

    @property
    def url(self) -> str:
        return str(self._response.url)

    def iter_chunks(self, chunk_size: int) -> AsyncIterator[bytes]:
        return self._response.content.iter_chunked(chunk_size)

    def release(self) -> None:
        """Returns the underlying connection to the pool."""
        if not self._response.closed:
            self._response.release()

    def __repr__(self) -> str:
        return f"FileBody(url={self.url!r}, status={self.status})"


@dataclass
class ApiResponse:
    """The result of one HTTP call: status, headers and an already-read body."""

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def content_type(self) -> str | None:
        return self.header("Content-Type")

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    @property
    def is_file(self) -> bool:
        return isinstance(self.body, FileBody)
