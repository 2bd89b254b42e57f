"""
Error types.

Transport failures are ``NetworkError`` subclasses; they are carried as
values inside phase outcomes and never abort a full speed-test run.
``ConfigurationError`` and ``SpeedTestInProgressError`` are caller contract
violations and are always raised.
"""
from __future__ import annotations

from typing import Optional


class NetHealthError(Exception):
    """Base exception for all nethealth errors."""


class ConnectivityError(NetHealthError):
    """The OS connectivity query failed."""


# ---------------------------------------------------------------------------
# Transport taxonomy
# ---------------------------------------------------------------------------

class NetworkError(NetHealthError):
    """A request to the speed-test backend failed."""

    kind = "unknown"


class InvalidURLError(NetworkError):
    """The backend address cannot be turned into a request URL."""

    kind = "invalid_url"


class ParsingError(NetworkError):
    """The backend answered with something we could not interpret."""

    kind = "parsing"


class RequestTimeoutError(NetworkError):
    """The request or the whole phase ran out of time."""

    kind = "timeout"


class NoConnectionError(NetworkError):
    """The backend could not be reached at all."""

    kind = "no_connection"


class UnauthorizedError(NetworkError):
    """HTTP 401."""

    kind = "unauthorized"

    def __init__(self, message: str = "Unauthorized (401)") -> None:
        self.status = 401
        super().__init__(message)


class HTTPStatusError(NetworkError):
    """Non-success HTTP status."""

    def __init__(self, status: int, message: Optional[str] = None) -> None:
        self.status = status
        super().__init__(message or f"HTTP {status}")


class ClientHTTPError(HTTPStatusError):
    """4xx response (other than 401)."""

    kind = "client_error"


class ServerHTTPError(HTTPStatusError):
    """5xx response."""

    kind = "server_error"


class BodyEncodingError(NetworkError):
    """The request body could not be encoded."""

    kind = "body_encoding"


class UnknownNetworkError(NetworkError):
    """Any other failure; the original exception is kept in ``underlying``."""

    kind = "unknown"

    def __init__(self, underlying: BaseException) -> None:
        self.underlying = underlying
        super().__init__(str(underlying) or type(underlying).__name__)


# ---------------------------------------------------------------------------
# Usage errors
# ---------------------------------------------------------------------------

class ConfigurationError(NetHealthError, ValueError):
    """The orchestrator was invoked with an unusable configuration."""


class SpeedTestInProgressError(NetHealthError, RuntimeError):
    """A run was requested while another run on the same manager is active."""


def error_for_status(status: int) -> Optional[NetworkError]:
    """Map an HTTP status to a taxonomy error, or ``None`` for success."""
    if status < 400:
        return None
    if status == 401:
        return UnauthorizedError()
    if status < 500:
        return ClientHTTPError(status)
    return ServerHTTPError(status)
