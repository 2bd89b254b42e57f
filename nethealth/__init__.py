"""Network health library -- quality classification, snapshots, and speed tests."""

from .config import SpeedTestConfig
from .connectivity import (
    ConnectionState,
    ConnectivitySource,
    ManualConnectivitySource,
    PsutilConnectivitySource,
)
from .download import SpeedTestResult
from .errors import (
    BodyEncodingError,
    ClientHTTPError,
    ConfigurationError,
    ConnectivityError,
    InvalidURLError,
    NetHealthError,
    NetworkError,
    NoConnectionError,
    ParsingError,
    RequestTimeoutError,
    ServerHTTPError,
    SpeedTestInProgressError,
    UnauthorizedError,
    UnknownNetworkError,
)
from .health import NetworkHealth, SnapshotStream
from .latency import PingResult
from .manager import FullTestResult, RunPhase, SpeedTestManager
from .outcome import Outcome
from .quality import ConnectionType, NetworkQuality, classify, estimate_quality
from .requirements import HealthCheckResult, NetworkRequirement, Recommendation
from .snapshot import NetworkSnapshot
from .speedtester import (
    PROFILES,
    LiveSpeedTester,
    MockSpeedTester,
    SpeedMeasurement,
    SpeedTester,
)
from .transport import AiohttpTransport, Transport, TransportResponse

__all__ = [
    "AiohttpTransport",
    "BodyEncodingError",
    "ClientHTTPError",
    "ConfigurationError",
    "ConnectionState",
    "ConnectionType",
    "ConnectivityError",
    "ConnectivitySource",
    "FullTestResult",
    "HealthCheckResult",
    "InvalidURLError",
    "LiveSpeedTester",
    "ManualConnectivitySource",
    "MockSpeedTester",
    "NetHealthError",
    "NetworkError",
    "NetworkHealth",
    "NetworkQuality",
    "NetworkRequirement",
    "NetworkSnapshot",
    "NoConnectionError",
    "Outcome",
    "PROFILES",
    "ParsingError",
    "PingResult",
    "PsutilConnectivitySource",
    "Recommendation",
    "RequestTimeoutError",
    "RunPhase",
    "ServerHTTPError",
    "SnapshotStream",
    "SpeedMeasurement",
    "SpeedTestConfig",
    "SpeedTestInProgressError",
    "SpeedTestManager",
    "SpeedTestResult",
    "SpeedTester",
    "Transport",
    "TransportResponse",
    "UnauthorizedError",
    "UnknownNetworkError",
    "classify",
    "estimate_quality",
]
