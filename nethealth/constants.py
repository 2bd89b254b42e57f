"""
Shared constants used across all nethealth modules.

Centralises thresholds, endpoint paths, and tunables so they live in
exactly one place.
"""

# ---------------------------------------------------------------------------
# HTTP headers
# ---------------------------------------------------------------------------

USER_AGENT = "nethealth/0.1 (+https://github.com/nethealth/nethealth)"

COMMON_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "*/*",
    "Accept-Encoding": "identity",
}

# ---------------------------------------------------------------------------
# Speed-test backend
# ---------------------------------------------------------------------------

DEFAULT_BASE_URL = "http://localhost:8080"
PING_PATH = "/ping"
DOWNLOAD_PATH = "/download"
UPLOAD_PATH = "/upload"

# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------

DEFAULT_PING_COUNT = 5
MIN_PING_COUNT = 1
MAX_PING_COUNT = 100

DEFAULT_PHASE_TIMEOUT = 30.0     # seconds per ping / download / upload phase
MIN_PHASE_TIMEOUT = 0.1
MAX_PHASE_TIMEOUT = 600.0

CONNECT_TIMEOUT = 5.0            # TCP connect limit inside the transport
POLL_INTERVAL = 1.0              # connectivity re-query period while watched

# ---------------------------------------------------------------------------
# Data transfer
# ---------------------------------------------------------------------------

CHUNK_SIZE = 64 * 1024
DOWNLOAD_SIZE = 10_000_000       # 10 MB requested from the download endpoint
UPLOAD_SIZE = 5_000_000          # 5 MB posted to the upload endpoint
MIN_TRANSFER_SIZE = 1
MAX_TRANSFER_SIZE = 1_000_000_000

# ---------------------------------------------------------------------------
# Quality thresholds (download Mbps, evaluated top-down)
# ---------------------------------------------------------------------------

EXCELLENT_MBPS = 50.0
GOOD_MBPS = 10.0
MODERATE_MBPS = 1.0

# ---------------------------------------------------------------------------
# Snapshot history
# ---------------------------------------------------------------------------

HISTORY_WINDOW = 10
