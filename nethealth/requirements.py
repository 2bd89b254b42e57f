"""
Requirement checks.

Maps an operation class to the minimum quality it needs and compares it
with a snapshot.  The recommendation is picked from a fixed set so that no
transport detail ever reaches the user.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict

from .quality import ConnectionType, NetworkQuality
from .snapshot import NetworkSnapshot


# ---------------------------------------------------------------------------
# Requirements
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NetworkRequirement:
    """A named operation class and the minimum quality it needs."""

    name: str
    minimum_quality: NetworkQuality

    BASIC_BROWSING: ClassVar[NetworkRequirement]
    IMAGE_LOADING: ClassVar[NetworkRequirement]
    VIDEO_STREAMING: ClassVar[NetworkRequirement]
    LARGE_DOWNLOAD: ClassVar[NetworkRequirement]
    LARGE_UPLOAD: ClassVar[NetworkRequirement]

    @classmethod
    def custom(cls, quality: NetworkQuality) -> NetworkRequirement:
        return cls(name="custom", minimum_quality=quality)

    @classmethod
    def named(cls, name: str) -> NetworkRequirement:
        """
        Look up a built-in requirement by name, or build a custom one when
        *name* is a quality level.
        """
        key = name.strip().lower().replace("-", "_")
        if key in _BUILTIN:
            return _BUILTIN[key]
        try:
            return cls.custom(NetworkQuality(key))
        except ValueError:
            choices = ", ".join(list(_BUILTIN) + [q.value for q in NetworkQuality])
            raise ValueError(f"Unknown requirement {name!r} (choose from: {choices})") from None


NetworkRequirement.BASIC_BROWSING = NetworkRequirement("basic_browsing", NetworkQuality.MODERATE)
NetworkRequirement.IMAGE_LOADING = NetworkRequirement("image_loading", NetworkQuality.MODERATE)
NetworkRequirement.VIDEO_STREAMING = NetworkRequirement("video_streaming", NetworkQuality.GOOD)
NetworkRequirement.LARGE_DOWNLOAD = NetworkRequirement("large_download", NetworkQuality.EXCELLENT)
NetworkRequirement.LARGE_UPLOAD = NetworkRequirement("large_upload", NetworkQuality.EXCELLENT)

_BUILTIN: Dict[str, NetworkRequirement] = {
    r.name: r
    for r in (
        NetworkRequirement.BASIC_BROWSING,
        NetworkRequirement.IMAGE_LOADING,
        NetworkRequirement.VIDEO_STREAMING,
        NetworkRequirement.LARGE_DOWNLOAD,
        NetworkRequirement.LARGE_UPLOAD,
    )
}


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

class Recommendation(str, Enum):
    SUFFICIENT = "sufficient"
    SWITCH_TO_WIFI = "switch_to_wifi"
    NO_CONNECTION = "no_connection"
    TRY_FASTER_CONNECTION = "try_faster_connection"

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES = {
    Recommendation.SUFFICIENT:
        "Connection quality is sufficient for this operation.",
    Recommendation.SWITCH_TO_WIFI:
        "Cellular connection is just below what this operation needs. "
        "Switch to Wi-Fi for a better experience.",
    Recommendation.NO_CONNECTION:
        "No network connection. Check that Wi-Fi or mobile data is enabled.",
    Recommendation.TRY_FASTER_CONNECTION:
        "Connection is too slow for this operation. Try a faster network.",
}


def recommend(
    current: NetworkQuality,
    required: NetworkQuality,
    connection_type: ConnectionType,
    is_expensive: bool,
) -> Recommendation:
    """Decision table; the first matching row wins."""
    if current is NetworkQuality.OFFLINE and required is not NetworkQuality.OFFLINE:
        return Recommendation.NO_CONNECTION
    if current.is_at_least(required):
        return Recommendation.SUFFICIENT
    if (
        current.next_higher() is required
        and connection_type is ConnectionType.CELLULAR
        and is_expensive
    ):
        return Recommendation.SWITCH_TO_WIFI
    return Recommendation.TRY_FASTER_CONNECTION


# ---------------------------------------------------------------------------
# Check
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HealthCheckResult:
    passed: bool
    current_quality: NetworkQuality
    required_quality: NetworkQuality
    recommendation: str
    requirement: NetworkRequirement

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requirement": self.requirement.name,
            "passed": self.passed,
            "current_quality": self.current_quality.value,
            "required_quality": self.required_quality.value,
            "recommendation": self.recommendation,
        }


def check_requirement(
    requirement: NetworkRequirement,
    snapshot: NetworkSnapshot,
) -> HealthCheckResult:
    required = requirement.minimum_quality
    advice = recommend(
        snapshot.quality,
        required,
        snapshot.connection_type,
        snapshot.is_expensive,
    )
    return HealthCheckResult(
        passed=snapshot.quality.is_at_least(required),
        current_quality=snapshot.quality,
        required_quality=required,
        recommendation=advice.message,
        requirement=requirement,
    )
