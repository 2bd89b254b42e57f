"""
Ping phase.

Issues ``ping_count`` sequential GET round trips to the ping endpoint.
The reported RTT is the best sample; jitter is the mean absolute
difference between consecutive samples and is only reported when more
than one sample was taken.  Any transport error fails the whole phase.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .config import SpeedTestConfig
from .stats import calculate_jitter
from .transport import Transport

LOGGER = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PingResult:
    """Aggregated round-trip data for one ping phase."""

    rtt_ms: float
    duration_ms: float
    jitter_ms: Optional[float] = None
    samples: Tuple[float, ...] = field(default_factory=tuple)

    @property
    def latency_seconds(self) -> float:
        return self.rtt_ms / 1000

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rtt_ms": round(self.rtt_ms, 3),
            "jitter_ms": None if self.jitter_ms is None else round(self.jitter_ms, 3),
            "duration_ms": round(self.duration_ms, 2),
            "samples": [round(s, 3) for s in self.samples],
        }


# ---------------------------------------------------------------------------
# Tester
# ---------------------------------------------------------------------------

class PingTester:
    """Measure round-trip time to the backend's ping endpoint."""

    def __init__(self, transport: Transport, config: SpeedTestConfig) -> None:
        self.transport = transport
        self.config = config

    async def run(self) -> PingResult:
        url = self.config.ping_url
        samples: List[float] = []

        start = time.perf_counter()
        for _ in range(self.config.ping_count):
            sent = time.perf_counter()
            await self.transport.request("GET", url)
            samples.append((time.perf_counter() - sent) * 1000)
        duration_ms = (time.perf_counter() - start) * 1000

        jitter = calculate_jitter(samples) if len(samples) > 1 else None
        result = PingResult(
            rtt_ms=min(samples),
            duration_ms=duration_ms,
            jitter_ms=jitter,
            samples=tuple(samples),
        )
        LOGGER.debug("Ping: %d samples, best %.1f ms", len(samples), result.rtt_ms)
        return result
