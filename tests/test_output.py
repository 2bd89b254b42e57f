"""Unit tests for ui.output -- JSON creation, text and CSV formatting."""

import json
import os
import tempfile
import unittest
from datetime import datetime, timezone

from nethealth.connectivity import ConnectionState
from nethealth.download import SpeedTestResult
from nethealth.errors import RequestTimeoutError
from nethealth.latency import PingResult
from nethealth.manager import FullTestResult
from nethealth.outcome import Outcome
from nethealth.quality import ConnectionType
from nethealth.snapshot import NetworkSnapshot
from ui.output import (
    _csv_escape,
    create_result_json,
    format_csv_header,
    format_csv_row,
    format_text_result,
    save_json,
)

STARTED = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)


def make_result(download_ok=True):
    download = (
        Outcome.success(SpeedTestResult(speed_mbps=100.0, bytes_transferred=12_500_000, duration_ms=1000.0))
        if download_ok
        else Outcome.failure(RequestTimeoutError("download phase exceeded 30.0s"))
    )
    return FullTestResult(
        ping=Outcome.success(PingResult(rtt_ms=15.0, duration_ms=80.0, jitter_ms=2.0, samples=(15.0, 17.0))),
        download=download,
        upload=Outcome.success(SpeedTestResult(speed_mbps=50.0, bytes_transferred=6_250_000, duration_ms=1000.0)),
        total_duration_ms=2080.0,
        started_at=STARTED,
    )


class TestCreateResultJson(unittest.TestCase):
    def test_basic_structure(self):
        r = create_result_json(make_result(), backend="http://host:8080")
        self.assertIn("timestamp", r)
        self.assertEqual(r["backend"], "http://host:8080")
        self.assertTrue(r["is_successful"])
        self.assertEqual(r["ping"]["result"]["rtt_ms"], 15.0)
        self.assertEqual(r["download"]["result"]["speed_mbps"], 100.0)
        self.assertNotIn("snapshot", r)

    def test_failed_phase(self):
        r = create_result_json(make_result(download_ok=False))
        self.assertFalse(r["is_successful"])
        self.assertEqual(r["download"]["error"]["kind"], "timeout")
        self.assertNotIn("backend", r)

    def test_snapshot_only(self):
        snap = NetworkSnapshot.from_state(
            ConnectionState(connected=True, connection_type=ConnectionType.ETHERNET)
        )
        r = create_result_json(snapshot=snap)
        self.assertEqual(r["snapshot"]["quality"], "excellent")
        self.assertNotIn("ping", r)

    def test_serialisable(self):
        json.dumps(create_result_json(make_result(download_ok=False)))


class TestSaveJson(unittest.TestCase):
    def test_roundtrip(self):
        data = {"key": "value", "number": 42}
        with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            path = f.name
        try:
            save_json(data, path)
            with open(path) as fh:
                loaded = json.load(fh)
            self.assertEqual(loaded, data)
        finally:
            os.unlink(path)

    def test_atomic_no_partial(self):
        # If the directory doesn't exist, it should raise, not leave a temp file
        with self.assertRaises(IOError):
            save_json({"a": 1}, "/nonexistent/dir/file.json")


class TestFormatTextResult(unittest.TestCase):
    def test_contains_values(self):
        text = format_text_result(make_result())
        self.assertIn("Ping: 15.0 ms", text)
        self.assertIn("Download: 100.00 Mbps", text)
        self.assertIn("Upload: 50.00 Mbps", text)
        self.assertIn("Total: 2.08 s", text)

    def test_failed_phase(self):
        text = format_text_result(make_result(download_ok=False))
        self.assertIn("Download: failed (download phase exceeded 30.0s)", text)


class TestCsvEscape(unittest.TestCase):
    """CSV fields with commas must be quoted to avoid corruption."""

    def test_plain_value(self):
        self.assertEqual(_csv_escape("http://host:8080"), "http://host:8080")

    def test_value_with_comma(self):
        self.assertEqual(_csv_escape("a,b"), '"a,b"')

    def test_value_with_quotes(self):
        self.assertEqual(_csv_escape('say "hi"'), '"say ""hi"""')

    def test_value_with_newline(self):
        self.assertEqual(_csv_escape("a\nb"), '"a\nb"')


class TestCsvHelpers(unittest.TestCase):
    def test_header(self):
        h = format_csv_header()
        self.assertTrue(h.startswith("timestamp,"))
        self.assertIn("download_mbps", h)

    def test_row(self):
        row = format_csv_row("http://host", make_result())
        parts = row.split(",")
        self.assertEqual(len(parts), len(format_csv_header().split(",")))
        self.assertEqual(parts[0], STARTED.isoformat())
        self.assertEqual(parts[2], "")
        self.assertEqual(parts[3], "15.0")
        self.assertEqual(parts[5], "100.00")
        self.assertEqual(parts[-1], "1")

    def test_row_failed_phase_is_blank(self):
        snap = NetworkSnapshot.from_state(ConnectionState(connected=True, connection_type=ConnectionType.WIFI))
        parts = format_csv_row("http://host", make_result(download_ok=False), snap).split(",")
        self.assertEqual(parts[2], "good")
        self.assertEqual(parts[5], "")
        self.assertEqual(parts[-1], "0")


if __name__ == "__main__":
    unittest.main()
