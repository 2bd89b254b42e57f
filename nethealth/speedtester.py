"""
Speed-measurement capability used by ``NetworkHealth.detailed_snapshot``.

:class:`MockSpeedTester` returns fixed profiles without touching the
network; :class:`LiveSpeedTester` measures against a real backend through
:class:`~nethealth.manager.SpeedTestManager`.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Dict, NamedTuple, Optional, Protocol

from .errors import NetworkError
from .manager import SpeedTestManager


@dataclass(frozen=True)
class SpeedMeasurement:
    download_speed_mbps: float
    upload_speed_mbps: Optional[float] = None
    latency_seconds: Optional[float] = None


class SpeedTester(Protocol):
    async def measure_speed(self) -> SpeedMeasurement: ...


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

class MockProfile(NamedTuple):
    download_mbps: float
    upload_mbps: float
    latency_ms: float


PROFILES: Dict[str, MockProfile] = {
    "excellent_5g": MockProfile(100.0, 50.0, 15.0),
    "good_lte": MockProfile(20.0, 10.0, 50.0),
    "moderate_3g": MockProfile(3.0, 1.0, 150.0),
    "poor_2g": MockProfile(0.3, 0.1, 500.0),
    "excellent_wifi": MockProfile(150.0, 75.0, 10.0),
    "slow_wifi": MockProfile(2.0, 1.0, 200.0),
}


class MockSpeedTester:
    """Deterministic tester: always reports the same numbers (or error)."""

    def __init__(
        self,
        download_mbps: float,
        upload_mbps: float,
        latency_ms: float,
        delay: float = 0.0,
        error: Optional[NetworkError] = None,
    ) -> None:
        self.download_mbps = download_mbps
        self.upload_mbps = upload_mbps
        self.latency_ms = latency_ms
        self.delay = delay
        self.error = error
        self.calls = 0

    @classmethod
    def from_profile(cls, name: str, delay: float = 0.0) -> MockSpeedTester:
        try:
            profile = PROFILES[name]
        except KeyError:
            raise ValueError(
                f"Unknown profile {name!r} (choose from: {', '.join(PROFILES)})"
            ) from None
        return cls(*profile, delay=delay)

    async def measure_speed(self) -> SpeedMeasurement:
        self.calls += 1
        if self.delay > 0:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return SpeedMeasurement(
            download_speed_mbps=self.download_mbps,
            upload_speed_mbps=self.upload_mbps,
            latency_seconds=self.latency_ms / 1000,
        )


# ---------------------------------------------------------------------------
# Live
# ---------------------------------------------------------------------------

class LiveSpeedTester:
    """
    Runs a full test and reports it as a measurement.

    The download phase must succeed (its error is raised otherwise); upload
    and latency are included when their phases succeeded.
    """

    def __init__(self, manager: SpeedTestManager) -> None:
        self.manager = manager

    async def measure_speed(self) -> SpeedMeasurement:
        result = await self.manager.perform_full_test()
        download = result.download.unwrap()
        return SpeedMeasurement(
            download_speed_mbps=download.speed_mbps,
            upload_speed_mbps=result.upload.map(lambda r: r.speed_mbps),
            latency_seconds=result.ping.map(lambda r: r.latency_seconds),
        )
