"""
Network quality classification.

Turns a measured download speed (or, when nothing was measured, the raw
connection flags) into one of five ordered quality levels.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional, Tuple

from .constants import EXCELLENT_MBPS, GOOD_MBPS, MODERATE_MBPS


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class NetworkQuality(str, Enum):
    """Connection usability, totally ordered from OFFLINE to EXCELLENT."""

    OFFLINE = "offline"
    POOR = "poor"
    MODERATE = "moderate"
    GOOD = "good"
    EXCELLENT = "excellent"

    # str comparisons would order alphabetically; compare by level instead.

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, NetworkQuality):
            return NotImplemented
        return _ORDER.index(self) < _ORDER.index(other)

    def __le__(self, other: object) -> bool:
        if not isinstance(other, NetworkQuality):
            return NotImplemented
        return _ORDER.index(self) <= _ORDER.index(other)

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, NetworkQuality):
            return NotImplemented
        return _ORDER.index(self) > _ORDER.index(other)

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, NetworkQuality):
            return NotImplemented
        return _ORDER.index(self) >= _ORDER.index(other)

    def is_at_least(self, other: NetworkQuality) -> bool:
        return self >= other

    def next_higher(self) -> Optional[NetworkQuality]:
        """The level directly above this one, or None for EXCELLENT."""
        idx = _ORDER.index(self)
        return _ORDER[idx + 1] if idx + 1 < len(_ORDER) else None

    @property
    def label(self) -> str:
        return self.value.capitalize()


_ORDER: List[NetworkQuality] = [
    NetworkQuality.OFFLINE,
    NetworkQuality.POOR,
    NetworkQuality.MODERATE,
    NetworkQuality.GOOD,
    NetworkQuality.EXCELLENT,
]


class ConnectionType(str, Enum):
    WIFI = "wifi"
    CELLULAR = "cellular"
    ETHERNET = "ethernet"
    OTHER = "other"
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        return {
            ConnectionType.WIFI: "Wi-Fi",
            ConnectionType.CELLULAR: "Cellular",
            ConnectionType.ETHERNET: "Ethernet",
            ConnectionType.OTHER: "Other",
            ConnectionType.UNKNOWN: "Unknown",
        }[self]


# ---------------------------------------------------------------------------
# Measured branch
# ---------------------------------------------------------------------------

_THRESHOLDS: List[Tuple[float, NetworkQuality]] = [
    (EXCELLENT_MBPS, NetworkQuality.EXCELLENT),
    (GOOD_MBPS, NetworkQuality.GOOD),
    (MODERATE_MBPS, NetworkQuality.MODERATE),
    (0.0, NetworkQuality.POOR),
]


def quality_for_speed(download_speed_mbps: float) -> NetworkQuality:
    """First threshold the speed reaches, top-down."""
    for threshold, quality in _THRESHOLDS:
        if download_speed_mbps >= threshold:
            return quality
    return NetworkQuality.POOR


# ---------------------------------------------------------------------------
# Estimated branch
# ---------------------------------------------------------------------------

_BASE_ESTIMATE = {
    ConnectionType.ETHERNET: NetworkQuality.EXCELLENT,
    ConnectionType.WIFI: NetworkQuality.GOOD,
    ConnectionType.CELLULAR: NetworkQuality.MODERATE,
    ConnectionType.OTHER: NetworkQuality.MODERATE,
    ConnectionType.UNKNOWN: NetworkQuality.MODERATE,
}


def estimate_quality(
    connection_type: ConnectionType,
    is_expensive: bool = False,
    is_constrained: bool = False,
) -> NetworkQuality:
    """
    Guess a quality level for a connected path that was not measured.

    This is a heuristic, not a measurement:

    * ethernet starts at EXCELLENT, Wi-Fi at GOOD, everything else at
      MODERATE;
    * a constrained (data-saver) path is capped at MODERATE;
    * an expensive Wi-Fi path is a tethered hotspot and is capped at
      MODERATE.
    """
    quality = _BASE_ESTIMATE[connection_type]
    if is_constrained:
        quality = min(quality, NetworkQuality.MODERATE)
    if is_expensive and connection_type is ConnectionType.WIFI:
        quality = min(quality, NetworkQuality.MODERATE)
    return quality


def classify(
    download_speed_mbps: Optional[float],
    connected: bool,
    connection_type: ConnectionType = ConnectionType.UNKNOWN,
    is_expensive: bool = False,
    is_constrained: bool = False,
) -> NetworkQuality:
    """
    Classify a path.

    Offline wins over everything; a measured speed uses the threshold
    table; otherwise the estimate from :func:`estimate_quality` is used.
    """
    if not connected:
        return NetworkQuality.OFFLINE
    if download_speed_mbps is not None:
        return quality_for_speed(download_speed_mbps)
    return estimate_quality(connection_type, is_expensive, is_constrained)
