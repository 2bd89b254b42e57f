"""
HTTP transport capability for the speed-test orchestrator.

The orchestrator only needs one operation -- send a request, get the
status and body back -- so that is all :class:`Transport` asks for.
:class:`AiohttpTransport` is the real implementation; tests pass in-process
fakes.  Every failure leaves this module as a ``NetworkError`` subclass.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

import aiohttp
from yarl import URL

from .constants import CHUNK_SIZE, COMMON_HEADERS, CONNECT_TIMEOUT
from .errors import (
    BodyEncodingError,
    InvalidURLError,
    NetworkError,
    NoConnectionError,
    ParsingError,
    RequestTimeoutError,
    UnknownNetworkError,
    error_for_status,
)

LOGGER = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Capability
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TransportResponse:
    status: int
    body: bytes = b""
    elapsed: float = 0.0    # seconds, request start to last body byte


class Transport(Protocol):
    async def request(
        self,
        method: str,
        url: str,
        *,
        data: Optional[bytes] = None,
        params: Optional[Mapping[str, str]] = None,
    ) -> TransportResponse: ...


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

def map_client_error(exc: BaseException) -> NetworkError:
    """Translate an aiohttp / socket exception into the error taxonomy."""
    if isinstance(exc, NetworkError):
        return exc
    if isinstance(exc, aiohttp.InvalidURL):
        return InvalidURLError(f"Invalid URL: {exc}")
    if isinstance(exc, (asyncio.TimeoutError, aiohttp.ServerTimeoutError)):
        return RequestTimeoutError("Request timed out")
    if isinstance(exc, (aiohttp.ClientPayloadError, aiohttp.ContentTypeError)):
        return ParsingError(f"Malformed response: {exc}")
    if isinstance(
        exc,
        (
            aiohttp.ClientConnectorError,
            aiohttp.ServerDisconnectedError,
            aiohttp.ClientOSError,
            ConnectionError,
        ),
    ):
        return NoConnectionError(f"Cannot reach backend: {exc}")
    return UnknownNetworkError(exc)


def validate_url(url: str) -> URL:
    """Parse *url*; only absolute http(s) addresses are usable."""
    try:
        parsed = URL(url)
    except (TypeError, ValueError) as exc:
        raise InvalidURLError(f"Invalid URL {url!r}: {exc}") from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise InvalidURLError(f"Invalid URL {url!r}: expected http(s)://host[:port]")
    return parsed


# ---------------------------------------------------------------------------
# aiohttp implementation
# ---------------------------------------------------------------------------

class AiohttpTransport:
    """
    Transport over a single ``aiohttp.ClientSession``.

    The session is created on first use; close it with :meth:`close` or by
    using the transport as an async context manager.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    # -- Context manager ----------------------------------------------------

    async def __aenter__(self) -> AiohttpTransport:
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        await self.close()

    async def close(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    # -- Internal helpers ---------------------------------------------------

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout, connect=CONNECT_TIMEOUT)
            self._session = aiohttp.ClientSession(headers=COMMON_HEADERS, timeout=timeout)
        return self._session

    # -- Public methods -----------------------------------------------------

    async def request(
        self,
        method: str,
        url: str,
        *,
        data: Optional[bytes] = None,
        params: Optional[Mapping[str, str]] = None,
    ) -> TransportResponse:
        target = validate_url(url)
        if data is not None and not isinstance(data, (bytes, bytearray, memoryview)):
            raise BodyEncodingError(f"Request body must be bytes, got {type(data).__name__}")

        session = self._ensure_session()
        headers: Any = None
        if data is not None:
            headers = {"Content-Type": "application/octet-stream"}

        start = time.perf_counter()
        try:
            async with session.request(
                method, target, data=data, params=params, headers=headers
            ) as resp:
                error = error_for_status(resp.status)
                if error is not None:
                    raise error
                chunks = []
                while True:
                    chunk = await resp.content.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    chunks.append(chunk)
                body = b"".join(chunks)
        except NetworkError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            raise map_client_error(exc) from exc

        elapsed = time.perf_counter() - start
        LOGGER.debug("%s %s -> %d bytes in %.3fs", method, target, len(body), elapsed)
        return TransportResponse(status=resp.status, body=body, elapsed=elapsed)
