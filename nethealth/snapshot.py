"""Point-in-time network state."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .connectivity import ConnectionState
from .quality import ConnectionType, NetworkQuality, classify


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class NetworkSnapshot:
    """
    Immutable network state.

    ``quality`` is OFFLINE exactly when no usable path exists.  The speed
    and latency fields are only present when a measurement was taken, and
    each may be absent independently of the others.
    """

    quality: NetworkQuality
    connection_type: ConnectionType
    is_expensive: bool
    is_constrained: bool
    interface_name: Optional[str]
    timestamp: datetime
    download_speed_mbps: Optional[float] = None
    upload_speed_mbps: Optional[float] = None
    latency_seconds: Optional[float] = None

    # -- Constructors -------------------------------------------------------

    @classmethod
    def from_state(
        cls,
        state: ConnectionState,
        timestamp: Optional[datetime] = None,
        download_speed_mbps: Optional[float] = None,
        upload_speed_mbps: Optional[float] = None,
        latency_seconds: Optional[float] = None,
    ) -> NetworkSnapshot:
        # Measurements are meaningless without a path.
        if not state.connected:
            download_speed_mbps = upload_speed_mbps = latency_seconds = None

        quality = classify(
            download_speed_mbps,
            state.connected,
            state.connection_type,
            state.is_expensive,
            state.is_constrained,
        )
        return cls(
            quality=quality,
            connection_type=state.connection_type,
            is_expensive=state.is_expensive,
            is_constrained=state.is_constrained,
            interface_name=state.interface_name,
            timestamp=timestamp or utc_now(),
            download_speed_mbps=download_speed_mbps,
            upload_speed_mbps=upload_speed_mbps,
            latency_seconds=latency_seconds,
        )

    # -- Derived ------------------------------------------------------------

    @property
    def is_online(self) -> bool:
        return self.quality is not NetworkQuality.OFFLINE

    @property
    def is_good_quality(self) -> bool:
        return self.quality.is_at_least(NetworkQuality.GOOD)

    @property
    def has_measurement(self) -> bool:
        return self.download_speed_mbps is not None

    @property
    def latency_ms(self) -> Optional[float]:
        if self.latency_seconds is None:
            return None
        return self.latency_seconds * 1000

    # -- Serialisation ------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quality": self.quality.value,
            "connection_type": self.connection_type.value,
            "is_expensive": self.is_expensive,
            "is_constrained": self.is_constrained,
            "interface_name": self.interface_name,
            "timestamp": self.timestamp.isoformat(),
            "download_speed_mbps": self.download_speed_mbps,
            "upload_speed_mbps": self.upload_speed_mbps,
            "latency_seconds": self.latency_seconds,
        }
