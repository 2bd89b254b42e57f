"""
Snapshot and test-result history.

``SnapshotHistory`` keeps the most recent snapshots of a monitoring
session in memory.  Full speed-test results are stored as JSON-lines in
``~/.nethealth/history.jsonl``.  Each line is a self-contained JSON object
with a timestamp, so the file can be appended to safely.
"""
from __future__ import annotations

import json
import os
from collections import deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional

from .constants import HISTORY_WINDOW
from .quality import NetworkQuality
from .snapshot import NetworkSnapshot


# ---------------------------------------------------------------------------
# In-memory window
# ---------------------------------------------------------------------------

_LEVELS = list(NetworkQuality)


class SnapshotHistory:
    """Rolling window of the last *limit* snapshots, oldest first."""

    def __init__(self, limit: int = HISTORY_WINDOW) -> None:
        self._items: Deque[NetworkSnapshot] = deque(maxlen=limit)

    def append(self, snapshot: NetworkSnapshot) -> None:
        self._items.append(snapshot)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    @property
    def latest(self) -> Optional[NetworkSnapshot]:
        return self._items[-1] if self._items else None

    def average_quality(self) -> Optional[NetworkQuality]:
        """Level nearest to the mean position in the window, rounded down."""
        if not self._items:
            return None
        mean = sum(_LEVELS.index(s.quality) for s in self._items) / len(self._items)
        return _LEVELS[int(mean)]

    def transitions(self) -> int:
        """How many times the quality changed between consecutive snapshots."""
        items = list(self._items)
        return sum(1 for a, b in zip(items, items[1:]) if a.quality is not b.quality)


# ---------------------------------------------------------------------------
# Persisted results
# ---------------------------------------------------------------------------

_DEFAULT_DIR = os.path.join(Path.home(), ".nethealth")
_DEFAULT_FILE = "history.jsonl"
_MAX_DISPLAY = 20  # show last N entries in --history


def _history_path() -> str:
    return os.path.join(_DEFAULT_DIR, _DEFAULT_FILE)


def save_result(result: Dict[str, Any]) -> str:
    """Append *result* as a single JSON line.  Returns the file path."""
    path = _history_path()
    os.makedirs(os.path.dirname(path), exist_ok=True)

    record = dict(result)
    if "timestamp" not in record:
        record["timestamp"] = datetime.now(timezone.utc).isoformat()

    with open(path, "a", encoding="utf-8") as fh:
        fh.write(json.dumps(record, ensure_ascii=False) + "\n")

    return path


def load_history(limit: int = _MAX_DISPLAY) -> List[Dict[str, Any]]:
    """Return the most recent *limit* results, newest last."""
    path = _history_path()
    if not os.path.isfile(path):
        return []

    entries: List[Dict[str, Any]] = []
    with open(path, encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            try:
                entries.append(json.loads(line))
            except json.JSONDecodeError:
                continue  # skip corrupt lines

    return entries[-limit:]
