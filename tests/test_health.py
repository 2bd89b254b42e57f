"""Tests for nethealth.snapshot and nethealth.health -- snapshots and checks."""

import dataclasses
import unittest
from datetime import datetime, timezone

import aiohttp

from nethealth.connectivity import ConnectionState, ManualConnectivitySource
from nethealth.errors import ConnectivityError, RequestTimeoutError, SpeedTestInProgressError
from nethealth.health import NetworkHealth
from nethealth.quality import ConnectionType, NetworkQuality
from nethealth.requirements import NetworkRequirement, Recommendation
from nethealth.snapshot import NetworkSnapshot
from nethealth.speedtester import MockSpeedTester

WIFI = ConnectionState(connected=True, connection_type=ConnectionType.WIFI, interface_name="wlan0")
CELLULAR = ConnectionState(
    connected=True,
    connection_type=ConnectionType.CELLULAR,
    is_expensive=True,
    interface_name="wwan0",
)
OFFLINE = ConnectionState(connected=False)


class BrokenSource(ManualConnectivitySource):
    def current_state(self):
        raise ConnectivityError("interface table unavailable")


class RaisingTester:
    def __init__(self, error):
        self.error = error

    async def measure_speed(self):
        raise self.error


class TestNetworkSnapshot(unittest.TestCase):
    def test_from_state_estimates(self):
        s = NetworkSnapshot.from_state(WIFI)
        self.assertIs(s.quality, NetworkQuality.GOOD)
        self.assertIs(s.connection_type, ConnectionType.WIFI)
        self.assertEqual(s.interface_name, "wlan0")
        self.assertFalse(s.has_measurement)
        self.assertIsNone(s.latency_ms)

    def test_offline_drops_measurements(self):
        s = NetworkSnapshot.from_state(OFFLINE, download_speed_mbps=80.0, latency_seconds=0.01)
        self.assertIs(s.quality, NetworkQuality.OFFLINE)
        self.assertIsNone(s.download_speed_mbps)
        self.assertIsNone(s.latency_seconds)
        self.assertFalse(s.is_online)

    def test_measured(self):
        s = NetworkSnapshot.from_state(CELLULAR, download_speed_mbps=55.0, latency_seconds=0.02)
        self.assertIs(s.quality, NetworkQuality.EXCELLENT)
        self.assertTrue(s.is_good_quality)
        self.assertAlmostEqual(s.latency_ms, 20.0)

    def test_frozen(self):
        s = NetworkSnapshot.from_state(WIFI)
        with self.assertRaises(dataclasses.FrozenInstanceError):
            s.quality = NetworkQuality.POOR  # type: ignore[misc]

    def test_explicit_timestamp(self):
        ts = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        s = NetworkSnapshot.from_state(WIFI, timestamp=ts)
        self.assertEqual(s.timestamp, ts)
        self.assertEqual(s.to_dict()["timestamp"], ts.isoformat())

    def test_to_dict(self):
        d = NetworkSnapshot.from_state(CELLULAR).to_dict()
        self.assertEqual(d["quality"], "moderate")
        self.assertEqual(d["connection_type"], "cellular")
        self.assertTrue(d["is_expensive"])
        self.assertIsNone(d["download_speed_mbps"])


class TestSnapshot(unittest.TestCase):
    def test_idempotent_without_change(self):
        health = NetworkHealth(ManualConnectivitySource(WIFI))
        a = health.snapshot()
        b = health.snapshot()
        self.assertEqual(dataclasses.replace(a, timestamp=b.timestamp), b)

    def test_source_failure_reports_offline(self):
        health = NetworkHealth(BrokenSource())
        with self.assertLogs("nethealth.health", level="WARNING"):
            s = health.snapshot()
        self.assertIs(s.quality, NetworkQuality.OFFLINE)

    def test_follows_source(self):
        source = ManualConnectivitySource(WIFI)
        health = NetworkHealth(source)
        self.assertIs(health.snapshot().quality, NetworkQuality.GOOD)
        source.set_state(OFFLINE)
        self.assertIs(health.snapshot().quality, NetworkQuality.OFFLINE)


class TestDetailedSnapshot(unittest.IsolatedAsyncioTestCase):
    async def test_excellent_profile(self):
        health = NetworkHealth(ManualConnectivitySource(WIFI))
        s = await health.detailed_snapshot(MockSpeedTester(100.0, 50.0, 15.0))
        self.assertIs(s.quality, NetworkQuality.EXCELLENT)
        self.assertEqual(s.download_speed_mbps, 100.0)
        self.assertEqual(s.upload_speed_mbps, 50.0)
        self.assertAlmostEqual(s.latency_seconds, 0.015)

    async def test_poor_profile(self):
        health = NetworkHealth(ManualConnectivitySource(CELLULAR))
        s = await health.detailed_snapshot(MockSpeedTester.from_profile("poor_2g"))
        self.assertIs(s.quality, NetworkQuality.POOR)
        self.assertLess(s.download_speed_mbps, 1.0)

    async def test_measurement_failure_degrades_to_poor(self):
        health = NetworkHealth(ManualConnectivitySource(WIFI))
        tester = MockSpeedTester(100.0, 50.0, 15.0, error=RequestTimeoutError("slow"))
        with self.assertLogs("nethealth.health", level="WARNING"):
            s = await health.detailed_snapshot(tester)
        self.assertIs(s.quality, NetworkQuality.POOR)
        self.assertIsNone(s.download_speed_mbps)
        self.assertIsNone(s.upload_speed_mbps)
        self.assertIsNone(s.latency_seconds)
        self.assertTrue(s.is_online)

    async def test_client_error_degrades_to_poor(self):
        health = NetworkHealth(ManualConnectivitySource(WIFI))
        tester = RaisingTester(aiohttp.ClientPayloadError("truncated body"))
        with self.assertLogs("nethealth.health", level="WARNING"):
            s = await health.detailed_snapshot(tester)
        self.assertIs(s.quality, NetworkQuality.POOR)
        self.assertIsNone(s.download_speed_mbps)

    async def test_usage_error_is_raised(self):
        health = NetworkHealth(ManualConnectivitySource(WIFI))
        with self.assertRaises(SpeedTestInProgressError):
            await health.detailed_snapshot(RaisingTester(SpeedTestInProgressError("busy")))

    async def test_offline_skips_measurement(self):
        health = NetworkHealth(ManualConnectivitySource(OFFLINE))
        tester = MockSpeedTester.from_profile("excellent_5g")
        s = await health.detailed_snapshot(tester)
        self.assertIs(s.quality, NetworkQuality.OFFLINE)
        self.assertEqual(tester.calls, 0)

    async def test_measurement_overrides_estimate(self):
        # Ethernet would be estimated EXCELLENT; the measurement wins.
        ethernet = ConnectionState(connected=True, connection_type=ConnectionType.ETHERNET)
        health = NetworkHealth(ManualConnectivitySource(ethernet))
        s = await health.detailed_snapshot(MockSpeedTester.from_profile("moderate_3g"))
        self.assertIs(s.quality, NetworkQuality.MODERATE)


class TestCheck(unittest.TestCase):
    def test_video_streaming_on_cellular(self):
        health = NetworkHealth(ManualConnectivitySource(CELLULAR))
        result = health.check(NetworkRequirement.VIDEO_STREAMING)
        self.assertFalse(result.passed)
        self.assertIs(result.required_quality, NetworkQuality.GOOD)
        self.assertEqual(result.recommendation, Recommendation.SWITCH_TO_WIFI.message)

    def test_check_given_snapshot(self):
        health = NetworkHealth(ManualConnectivitySource(OFFLINE))
        snapshot = NetworkSnapshot.from_state(WIFI, download_speed_mbps=120.0)
        result = health.check(NetworkRequirement.LARGE_DOWNLOAD, snapshot)
        self.assertTrue(result.passed)

    def test_is_good_enough_for(self):
        health = NetworkHealth(ManualConnectivitySource(WIFI))
        self.assertTrue(health.is_good_enough_for(NetworkRequirement.BASIC_BROWSING))
        self.assertFalse(health.is_good_enough_for(NetworkRequirement.LARGE_UPLOAD))


class TestMockSpeedTester(unittest.IsolatedAsyncioTestCase):
    async def test_profile(self):
        tester = MockSpeedTester.from_profile("good_lte")
        m = await tester.measure_speed()
        self.assertEqual(m.download_speed_mbps, 20.0)
        self.assertAlmostEqual(m.latency_seconds, 0.05)
        self.assertEqual(tester.calls, 1)

    def test_unknown_profile(self):
        with self.assertRaises(ValueError):
            MockSpeedTester.from_profile("carrier_pigeon")


if __name__ == "__main__":
    unittest.main()
