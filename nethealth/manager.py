"""
Speed-test orchestration.

Runs ping, download and upload against one backend, strictly in that
order.  Each phase is timed and bounded by its own timeout, and its
result is kept as an :class:`~nethealth.outcome.Outcome` so that one failed
phase never prevents the next one from running.

Usage::

    async with SpeedTestManager(SpeedTestConfig(base_url="http://host:8080")) as manager:
        result = await manager.perform_full_test()
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, TypeVar

from .config import SpeedTestConfig
from .download import DownloadTester, SpeedTestResult
from .errors import (
    NetworkError,
    RequestTimeoutError,
    SpeedTestInProgressError,
    UnknownNetworkError,
)
from .latency import PingResult, PingTester
from .outcome import Outcome
from .snapshot import utc_now
from .transport import AiohttpTransport, Transport
from .upload import UploadTester

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# State / result
# ---------------------------------------------------------------------------

class RunPhase(str, Enum):
    IDLE = "idle"
    PING = "ping"
    DOWNLOAD = "download"
    UPLOAD = "upload"
    AGGREGATED = "aggregated"


@dataclass(frozen=True)
class FullTestResult:
    """Outcome of every phase of one run."""

    ping: Outcome[PingResult]
    download: Outcome[SpeedTestResult]
    upload: Outcome[SpeedTestResult]
    total_duration_ms: float
    started_at: datetime

    @property
    def is_successful(self) -> bool:
        return self.ping.is_success and self.download.is_success and self.upload.is_success

    def to_dict(self) -> Dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "total_duration_ms": round(self.total_duration_ms, 2),
            "is_successful": self.is_successful,
            "ping": self.ping.to_dict(),
            "download": self.download.to_dict(),
            "upload": self.upload.to_dict(),
        }


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------

class SpeedTestManager:
    """
    Three-phase speed test against one configured backend.

    Only one run (full or single-phase) may be active per instance; a
    second concurrent call raises :class:`SpeedTestInProgressError`.
    """

    def __init__(
        self,
        config: SpeedTestConfig,
        transport: Optional[Transport] = None,
    ) -> None:
        self.config = config
        self._owns_transport = transport is None
        self._transport: Transport = transport or AiohttpTransport()
        self._testers: Optional[Tuple[PingTester, DownloadTester, UploadTester]] = None
        self._running = False
        self.phase = RunPhase.IDLE
        self.on_phase: Optional[Callable[[RunPhase], None]] = None

    # -- Context manager ----------------------------------------------------

    async def __aenter__(self) -> SpeedTestManager:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        await self.close()

    async def close(self) -> None:
        """Close the transport if this manager created it."""
        if self._owns_transport and isinstance(self._transport, AiohttpTransport):
            await self._transport.close()

    @property
    def is_running(self) -> bool:
        return self._running

    # -- Public methods -----------------------------------------------------

    async def perform_full_test(self) -> FullTestResult:
        """Run ping, download and upload in order and aggregate the outcomes."""
        ping_tester, download_tester, upload_tester = self._prepare()
        self._begin()
        started_at = utc_now()
        start = time.perf_counter()
        try:
            ping = await self._run_phase(RunPhase.PING, ping_tester.run)
            download = await self._run_phase(RunPhase.DOWNLOAD, download_tester.run)
            upload = await self._run_phase(RunPhase.UPLOAD, upload_tester.run)
            total_ms = (time.perf_counter() - start) * 1000
            self._set_phase(RunPhase.AGGREGATED)
        finally:
            self._running = False

        result = FullTestResult(
            ping=ping,
            download=download,
            upload=upload,
            total_duration_ms=total_ms,
            started_at=started_at,
        )
        LOGGER.info(
            "Speed test finished in %.0f ms (ping=%s download=%s upload=%s)",
            total_ms,
            _status(ping), _status(download), _status(upload),
        )
        return result

    async def run_ping_test(self) -> Outcome[PingResult]:
        ping_tester, _, _ = self._prepare()
        return await self._run_single(RunPhase.PING, ping_tester.run)

    async def run_download_test(self) -> Outcome[SpeedTestResult]:
        _, download_tester, _ = self._prepare()
        return await self._run_single(RunPhase.DOWNLOAD, download_tester.run)

    async def run_upload_test(self) -> Outcome[SpeedTestResult]:
        _, _, upload_tester = self._prepare()
        return await self._run_single(RunPhase.UPLOAD, upload_tester.run)

    # -- Internals ----------------------------------------------------------

    def _prepare(self) -> Tuple[PingTester, DownloadTester, UploadTester]:
        """Fail fast on a bad configuration, then build the phase testers once."""
        self.config.validate()
        if self._testers is None:
            self._testers = (
                PingTester(self._transport, self.config),
                DownloadTester(self._transport, self.config),
                UploadTester(self._transport, self.config),
            )
        return self._testers

    def _begin(self) -> None:
        # Check-and-set happens without an await in between.
        if self._running:
            raise SpeedTestInProgressError("A speed test is already running on this manager")
        self._running = True

    def _set_phase(self, phase: RunPhase) -> None:
        self.phase = phase
        if self.on_phase:
            self.on_phase(phase)

    async def _run_single(
        self,
        phase: RunPhase,
        measure: Callable[[], Awaitable[T]],
    ) -> Outcome[T]:
        self._begin()
        try:
            return await self._run_phase(phase, measure)
        finally:
            self._running = False
            self._set_phase(RunPhase.IDLE)

    async def _run_phase(
        self,
        phase: RunPhase,
        measure: Callable[[], Awaitable[T]],
    ) -> Outcome[T]:
        self._set_phase(phase)
        start = time.perf_counter()
        try:
            value = await asyncio.wait_for(measure(), timeout=self.config.phase_timeout)
        except asyncio.TimeoutError:
            error: NetworkError = RequestTimeoutError(
                f"{phase.value} phase exceeded {self.config.phase_timeout:.1f}s"
            )
        except NetworkError as exc:
            error = exc
        except OSError as exc:
            error = UnknownNetworkError(exc)
        except Exception as exc:
            LOGGER.debug("%s phase raised %r", phase.value, exc, exc_info=True)
            error = UnknownNetworkError(exc)
        else:
            LOGGER.debug(
                "%s phase ok in %.0f ms", phase.value, (time.perf_counter() - start) * 1000
            )
            return Outcome.success(value)

        LOGGER.warning("%s phase failed: %s", phase.value, error)
        return Outcome.failure(error)


def _status(outcome: Outcome[Any]) -> str:
    return "ok" if outcome.is_success else outcome.error.kind  # type: ignore[union-attr]
