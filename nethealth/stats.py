"""
Measurement arithmetic and formatting.

Pure functions -- no I/O, no side effects.
"""
from __future__ import annotations

import statistics
from typing import Sequence


# ---------------------------------------------------------------------------
# Arithmetic
# ---------------------------------------------------------------------------

def calculate_mbps(bytes_transferred: int, elapsed_seconds: float) -> float:
    """``bits / seconds / 1e6``; zero when no time elapsed."""
    if elapsed_seconds <= 0:
        return 0.0
    return (bytes_transferred * 8) / elapsed_seconds / 1_000_000


def calculate_jitter(samples: Sequence[float]) -> float:
    """Mean absolute difference between consecutive samples (Ookla method)."""
    if len(samples) < 2:
        return 0.0
    diffs = [abs(samples[i] - samples[i - 1]) for i in range(1, len(samples))]
    return statistics.mean(diffs)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def format_speed(speed_mbps: float) -> str:
    """Human-readable speed string."""
    if speed_mbps >= 1000:
        return f"{speed_mbps / 1000:.2f} Gbps"
    return f"{speed_mbps:.2f} Mbps"


def format_latency(latency_ms: float) -> str:
    """Human-readable latency string."""
    if latency_ms >= 1000:
        return f"{latency_ms / 1000:.2f} s"
    return f"{latency_ms:.1f} ms"


def format_bytes(count: int) -> str:
    """Decimal byte units, as network tools usually print them."""
    if count >= 1_000_000_000:
        return f"{count / 1_000_000_000:.2f} GB"
    if count >= 1_000_000:
        return f"{count / 1_000_000:.1f} MB"
    if count >= 1_000:
        return f"{count / 1_000:.1f} KB"
    return f"{count} B"


def format_duration(duration_ms: float) -> str:
    return f"{duration_ms / 1000:.2f} s"
