"""
User configuration file support and the speed-test configuration struct.

Reads/writes ``~/.nethealth/config.json``.

Supported keys::

    base_url = "http://localhost:8080"   # speed-test backend
    ping_path = "/ping"
    download_path = "/download"
    upload_path = "/upload"
    ping_count = 5
    download_size = 10000000             # bytes requested
    upload_size = 5000000                # bytes posted
    phase_timeout = 30.0                 # seconds per phase
    csv_file = ""                        # auto-append CSV path
"""
from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .constants import (
    DEFAULT_BASE_URL,
    DEFAULT_PHASE_TIMEOUT,
    DEFAULT_PING_COUNT,
    DOWNLOAD_PATH,
    DOWNLOAD_SIZE,
    MAX_PHASE_TIMEOUT,
    MAX_PING_COUNT,
    MAX_TRANSFER_SIZE,
    MIN_PHASE_TIMEOUT,
    MIN_PING_COUNT,
    MIN_TRANSFER_SIZE,
    PING_PATH,
    UPLOAD_PATH,
    UPLOAD_SIZE,
)
from .errors import ConfigurationError

_CONFIG_DIR = os.path.join(Path.home(), ".nethealth")
_CONFIG_FILE = "config.json"


def _config_path() -> str:
    return os.path.join(_CONFIG_DIR, _CONFIG_FILE)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULTS: Dict[str, Any] = {
    "base_url": DEFAULT_BASE_URL,
    "ping_path": PING_PATH,
    "download_path": DOWNLOAD_PATH,
    "upload_path": UPLOAD_PATH,
    "ping_count": DEFAULT_PING_COUNT,
    "download_size": DOWNLOAD_SIZE,
    "upload_size": UPLOAD_SIZE,
    "phase_timeout": DEFAULT_PHASE_TIMEOUT,
    "csv_file": "",
}


# ---------------------------------------------------------------------------
# Speed-test configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SpeedTestConfig:
    """Backend address plus the fixed relative endpoint paths and tunables."""

    base_url: Optional[str]
    ping_path: str = PING_PATH
    download_path: str = DOWNLOAD_PATH
    upload_path: str = UPLOAD_PATH
    ping_count: int = DEFAULT_PING_COUNT
    download_size: int = DOWNLOAD_SIZE
    upload_size: int = UPLOAD_SIZE
    phase_timeout: float = DEFAULT_PHASE_TIMEOUT

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SpeedTestConfig:
        return cls(
            base_url=data.get("base_url") or None,
            ping_path=data.get("ping_path", PING_PATH),
            download_path=data.get("download_path", DOWNLOAD_PATH),
            upload_path=data.get("upload_path", UPLOAD_PATH),
            ping_count=int(data.get("ping_count", DEFAULT_PING_COUNT)),
            download_size=int(data.get("download_size", DOWNLOAD_SIZE)),
            upload_size=int(data.get("upload_size", UPLOAD_SIZE)),
            phase_timeout=float(data.get("phase_timeout", DEFAULT_PHASE_TIMEOUT)),
        )

    # -- Derived URLs -------------------------------------------------------

    def endpoint(self, path: str) -> str:
        if not self.base_url:
            raise ConfigurationError("No speed-test backend address configured")
        return self.base_url.rstrip("/") + "/" + path.lstrip("/")

    @property
    def ping_url(self) -> str:
        return self.endpoint(self.ping_path)

    @property
    def download_url(self) -> str:
        return self.endpoint(self.download_path)

    @property
    def upload_url(self) -> str:
        return self.endpoint(self.upload_path)

    # -- Validation ---------------------------------------------------------

    def validate(self) -> None:
        """Raise ``ConfigurationError`` on an unusable configuration."""
        if not self.base_url or not self.base_url.strip():
            raise ConfigurationError("No speed-test backend address configured")
        if not MIN_PING_COUNT <= self.ping_count <= MAX_PING_COUNT:
            raise ConfigurationError(
                f"Ping count must be between {MIN_PING_COUNT} and {MAX_PING_COUNT}"
            )
        for label, size in (("Download", self.download_size), ("Upload", self.upload_size)):
            if not MIN_TRANSFER_SIZE <= size <= MAX_TRANSFER_SIZE:
                raise ConfigurationError(
                    f"{label} size must be between {MIN_TRANSFER_SIZE} and {MAX_TRANSFER_SIZE} bytes"
                )
        if not MIN_PHASE_TIMEOUT <= self.phase_timeout <= MAX_PHASE_TIMEOUT:
            raise ConfigurationError(
                f"Phase timeout must be between {MIN_PHASE_TIMEOUT} and {MAX_PHASE_TIMEOUT} s"
            )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Read / Write
# ---------------------------------------------------------------------------

def load_config() -> Dict[str, Any]:
    """Load config from disk, returning defaults for missing keys."""
    path = _config_path()
    config = dict(DEFAULTS)

    if not os.path.isfile(path):
        return config

    try:
        with open(path, encoding="utf-8") as fh:
            user = json.load(fh)
        if isinstance(user, dict):
            config.update(user)
    except (json.JSONDecodeError, IOError):
        pass  # corrupt file; use defaults

    return config


def save_config(config: Dict[str, Any]) -> str:
    """Write *config* to disk.  Returns the file path."""
    path = _config_path()
    os.makedirs(os.path.dirname(path), exist_ok=True)

    with open(path, "w", encoding="utf-8") as fh:
        json.dump(config, fh, indent=2, ensure_ascii=False)

    return path


def get_config_value(key: str) -> Any:
    """Get a single config value."""
    return load_config().get(key, DEFAULTS.get(key))


def set_config_value(key: str, value: Any) -> str:
    """Set a single config value and persist.  Returns file path."""
    config = load_config()
    config[key] = value
    return save_config(config)


def config_path() -> str:
    """Return the config file path (for display purposes)."""
    return _config_path()
