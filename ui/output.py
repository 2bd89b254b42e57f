"""
Output formatting -- JSON export, plain text, and CSV.
"""
from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from nethealth.manager import FullTestResult
from nethealth.snapshot import NetworkSnapshot


def create_result_json(
    result: Optional[FullTestResult] = None,
    snapshot: Optional[NetworkSnapshot] = None,
    backend: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a JSON-serialisable dict from a test result and/or snapshot."""
    payload: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if backend:
        payload["backend"] = backend
    if snapshot is not None:
        payload["snapshot"] = snapshot.to_dict()
    if result is not None:
        payload.update(result.to_dict())
    return payload


def save_json(result: Dict[str, Any], filepath: str) -> None:
    """Write *result* to *filepath* atomically (write-tmp then rename)."""
    dir_path = os.path.dirname(filepath) or "."
    tmp = os.path.join(dir_path, f".tmp_{os.path.basename(filepath)}")

    try:
        with open(tmp, "w", encoding="utf-8") as fh:
            json.dump(result, fh, indent=2, ensure_ascii=False)
        os.replace(tmp, filepath)
    except (IOError, OSError) as exc:
        # Clean up partial temp file
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise IOError(f"Failed to save JSON to {filepath}: {exc}") from exc


# ---------------------------------------------------------------------------
# Plain-text / CSV helpers
# ---------------------------------------------------------------------------

def format_text_result(result: FullTestResult) -> str:
    def _line(label: str, text: Optional[str], error: Any) -> str:
        return f"{label}: {text}" if text is not None else f"{label}: failed ({error})"

    ping = result.ping.map(lambda p: f"{p.rtt_ms:.1f} ms")
    download = result.download.map(lambda r: f"{r.speed_mbps:.2f} Mbps")
    upload = result.upload.map(lambda r: f"{r.speed_mbps:.2f} Mbps")
    return "\n".join([
        _line("Ping", ping, result.ping.error),
        _line("Download", download, result.download.error),
        _line("Upload", upload, result.upload.error),
        f"Total: {result.total_duration_ms / 1000:.2f} s",
    ])


def _csv_escape(value: str) -> str:
    if any(ch in value for ch in (",", '"', "\n")):
        return '"' + value.replace('"', '""') + '"'
    return value


def format_csv_header() -> str:
    return "timestamp,backend,quality,ping_ms,jitter_ms,download_mbps,upload_mbps,successful"


def format_csv_row(
    backend: str,
    result: FullTestResult,
    snapshot: Optional[NetworkSnapshot] = None,
) -> str:
    def _num(value: Optional[float], digits: int) -> str:
        return "" if value is None else f"{value:.{digits}f}"

    ts = result.started_at.isoformat()
    quality = snapshot.quality.value if snapshot else ""
    return ",".join([
        ts,
        _csv_escape(backend),
        quality,
        _num(result.ping.map(lambda p: p.rtt_ms), 1),
        _num(result.ping.map(lambda p: p.jitter_ms), 2),
        _num(result.download.map(lambda r: r.speed_mbps), 2),
        _num(result.upload.map(lambda r: r.speed_mbps), 2),
        "1" if result.is_successful else "0",
    ])
