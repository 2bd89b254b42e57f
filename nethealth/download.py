"""
Download phase.

Requests ``download_size`` bytes from the download endpoint and derives
the speed from the bytes actually received and the wall-clock time.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict

from .config import SpeedTestConfig
from .errors import ParsingError
from .stats import calculate_mbps
from .transport import Transport

LOGGER = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SpeedTestResult:
    """Throughput of one transfer phase (download or upload)."""

    speed_mbps: float
    bytes_transferred: int
    duration_ms: float

    @classmethod
    def from_transfer(cls, bytes_transferred: int, elapsed_seconds: float) -> SpeedTestResult:
        return cls(
            speed_mbps=calculate_mbps(bytes_transferred, elapsed_seconds),
            bytes_transferred=bytes_transferred,
            duration_ms=elapsed_seconds * 1000,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "speed_mbps": round(self.speed_mbps, 2),
            "bytes_transferred": self.bytes_transferred,
            "duration_ms": round(self.duration_ms, 2),
        }


# ---------------------------------------------------------------------------
# Tester
# ---------------------------------------------------------------------------

class DownloadTester:
    """Single-request download measurement."""

    def __init__(self, transport: Transport, config: SpeedTestConfig) -> None:
        self.transport = transport
        self.config = config

    async def run(self) -> SpeedTestResult:
        url = self.config.download_url
        params = {"size": str(self.config.download_size)}

        start = time.perf_counter()
        response = await self.transport.request("GET", url, params=params)
        elapsed = time.perf_counter() - start

        received = len(response.body)
        if received == 0:
            raise ParsingError("Download endpoint returned an empty body")

        result = SpeedTestResult.from_transfer(received, elapsed)
        LOGGER.debug(
            "Download: %d bytes in %.3fs (%.2f Mbps)",
            received, elapsed, result.speed_mbps,
        )
        return result
