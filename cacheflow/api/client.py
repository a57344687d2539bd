"""
Async HTTP transport producing `ApiResponse` objects for the orchestrator.
"""

import logging
import time
from typing import Any
from urllib.parse import urljoin

import aiohttp
from pydantic import BaseModel, ValidationError

from cacheflow.exceptions import NetworkError, ParseError
from cacheflow.utils.content_types import is_downloadable_content, is_json_content

from .response import ApiResponse, FileBody

log = logging.getLogger(__name__)


class HttpTransport:
    """
    Async client bound to a base URL.

    Features:
    - Connection pooling through a shared aiohttp session
    - Bodies read according to their content type (JSON, text, bytes)
    - Streamed `FileBody` responses for downloadable content
    - Error bodies parsed into an optional error model
    """

    def __init__(
        self,
        base_url: str,
        session: aiohttp.ClientSession | None = None,
        max_connections: int = 8,
        timeout: float = 60.0,
        error_model: type[BaseModel] | None = None,
        headers: dict[str, str] | None = None,
    ):
        """
        Initializes the transport.

        Args:
            base_url: Base URL relative request paths are resolved against.
            session: An externally owned session to use instead of creating one.
                It is never closed by this transport.
            max_connections: Connection pool size for the owned session.
            timeout: Total timeout in seconds for a single request.
            error_model: Optional model that error response bodies are parsed into.
            headers: Default headers sent with every request.
        """
        self.base_url = base_url
        self.max_connections = max_connections
        self.timeout = timeout
        self.error_model = error_model
        self._headers = headers or {}
        self._session = session
        self._owns_session = session is None

    async def _initialize_session(self) -> aiohttp.ClientSession:
        """Ensures an active aiohttp session is available."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=self.max_connections * 2,
                limit_per_host=self.max_connections,
                ttl_dns_cache=300,
                enable_cleanup_closed=True,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                headers={"Accept-Encoding": "gzip, deflate", **self._headers},
                timeout=aiohttp.ClientTimeout(
                    total=self.timeout, sock_connect=15, sock_read=self.timeout
                ),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Gracefully closes the aiohttp session if this transport created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    def url_for(self, path: str) -> str:
        """Resolves `path` against the base URL; absolute URLs pass through."""
        if "://" in path or not self.base_url:
            return path
        return urljoin(self.base_url.rstrip("/") + "/", path.lstrip("/"))

    async def request(self, method: str, path: str, **kwargs: Any) -> ApiResponse:
        """Performs a request and reads the whole body before returning."""
        return await self._send(method, path, stream=False, **kwargs)

    async def get(self, path: str, **kwargs: Any) -> ApiResponse:
        return await self.request("GET", path, **kwargs)

    async def stream(self, path: str, **kwargs: Any) -> ApiResponse:
        """
        Opens a GET request whose body is left unread as a `FileBody`.

        The status is not checked here; the download coordinator reports it.
        """
        return await self._send("GET", path, stream=True, **kwargs)

    async def fetch(self, path: str, **kwargs: Any) -> ApiResponse:
        """
        Opens a GET request and decides from the content type whether to stream
        the body (downloadable content) or read it.
        """
        return await self._send("GET", path, stream=None, **kwargs)

    async def _send(
        self, method: str, path: str, stream: bool | None, **kwargs: Any
    ) -> ApiResponse:
        session = await self._initialize_session()
        url = self.url_for(path)
        start_time = time.monotonic()

        response = await session.request(method, url, **kwargs)
        duration_ms = (time.monotonic() - start_time) * 1000
        log.debug(
            f"{method} {url} -> {response.status} "
            f"({response.content_type}, {duration_ms:.0f} ms)"
        )

        headers = dict(response.headers)
        wants_stream = stream
        if wants_stream is None:
            wants_stream = response.ok and is_downloadable_content(
                response.headers.get("Content-Type")
            )

        if wants_stream:
            return ApiResponse(
                status=response.status,
                headers=headers,
                body=FileBody(response),
                url=str(response.url),
            )

        try:
            if response.status >= 400:
                raise await self._error_from_response(response)
            body = await self._read_body(response)
        finally:
            response.release()

        return ApiResponse(
            status=response.status, headers=headers, body=body, url=str(response.url)
        )

    async def _read_body(self, response: aiohttp.ClientResponse) -> Any:
        """Reads the body as JSON, text or bytes depending on its content type."""
        content_type = response.headers.get("Content-Type")
        if response.status == 204:
            return None
        if is_json_content(content_type):
            raw = await response.text()
            if not raw.strip():
                return None
            return await response.json(content_type=None)
        if response.content_type.startswith("text/"):
            return await response.text()
        return await response.read()

    async def _error_from_response(
        self, response: aiohttp.ClientResponse
    ) -> NetworkError | ParseError:
        """Builds the exception describing an error response."""
        fallback = f"HTTP {response.status} {response.reason or ''}".strip()
        try:
            error_body = await response.text()
        except (aiohttp.ClientError, UnicodeDecodeError) as e:
            log.debug(f"Could not read error body for {response.url}: {e}")
            return NetworkError(f"Something went wrong: {fallback}", response.status)

        if self.error_model is None:
            return NetworkError(f"Something went wrong: {fallback}", response.status)

        try:
            error = self.error_model.model_validate_json(error_body)
        except ValidationError:
            return ParseError(f"Something went wrong: {fallback}")
        return NetworkError(f"{fallback}: {error}", response.status)
