"""Tests for nethealth.config -- persistence and the speed-test configuration."""

import json
import os
import tempfile
import unittest
from unittest import mock

from nethealth.config import (
    DEFAULTS,
    SpeedTestConfig,
    get_config_value,
    load_config,
    save_config,
    set_config_value,
)
from nethealth.constants import DEFAULT_BASE_URL, MAX_PING_COUNT, MIN_PHASE_TIMEOUT
from nethealth.errors import ConfigurationError


class TestConfigDefaults(unittest.TestCase):
    def test_defaults_have_required_keys(self):
        for key in ("base_url", "ping_path", "download_path", "upload_path", "ping_count",
                    "download_size", "upload_size", "phase_timeout", "csv_file"):
            self.assertIn(key, DEFAULTS)

    def test_default_backend(self):
        self.assertEqual(DEFAULTS["base_url"], DEFAULT_BASE_URL)


class TestLoadSaveConfig(unittest.TestCase):
    def test_load_defaults_when_missing(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.json")
            with mock.patch("nethealth.config._config_path", return_value=path):
                cfg = load_config()
                self.assertEqual(cfg["ping_count"], 5)
                self.assertEqual(cfg["base_url"], DEFAULT_BASE_URL)

    def test_save_and_load(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "sub", "config.json")
            with mock.patch("nethealth.config._config_path", return_value=path):
                save_config({"base_url": "http://speed.lan:9000", "ping_count": 8})
                cfg = load_config()
                self.assertEqual(cfg["base_url"], "http://speed.lan:9000")
                self.assertEqual(cfg["ping_count"], 8)
                # Defaults still present
                self.assertEqual(cfg["upload_path"], "/upload")

    def test_corrupt_file_returns_defaults(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.json")
            with open(path, "w") as f:
                f.write("NOT JSON")
            with mock.patch("nethealth.config._config_path", return_value=path):
                cfg = load_config()
                self.assertEqual(cfg, DEFAULTS)

    def test_non_dict_file_returns_defaults(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.json")
            with open(path, "w") as f:
                json.dump([1, 2, 3], f)
            with mock.patch("nethealth.config._config_path", return_value=path):
                self.assertEqual(load_config(), DEFAULTS)

    def test_get_set_value(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.json")
            with mock.patch("nethealth.config._config_path", return_value=path):
                set_config_value("phase_timeout", 12.5)
                self.assertEqual(get_config_value("phase_timeout"), 12.5)
                self.assertEqual(get_config_value("csv_file"), "")


class TestSpeedTestConfig(unittest.TestCase):
    def test_endpoints(self):
        cfg = SpeedTestConfig(base_url="http://host:8080/")
        self.assertEqual(cfg.ping_url, "http://host:8080/ping")
        self.assertEqual(cfg.download_url, "http://host:8080/download")
        self.assertEqual(cfg.upload_url, "http://host:8080/upload")

    def test_endpoint_with_base_path(self):
        cfg = SpeedTestConfig(base_url="https://example.com/speed", ping_path="/health")
        self.assertEqual(cfg.ping_url, "https://example.com/speed/health")

    def test_endpoint_without_base(self):
        with self.assertRaises(ConfigurationError):
            SpeedTestConfig(base_url=None).ping_url

    def test_from_dict(self):
        cfg = SpeedTestConfig.from_dict(dict(DEFAULTS, ping_count="7", phase_timeout="3"))
        self.assertEqual(cfg.ping_count, 7)
        self.assertEqual(cfg.phase_timeout, 3.0)
        self.assertEqual(cfg.base_url, DEFAULT_BASE_URL)

    def test_from_dict_empty_base(self):
        self.assertIsNone(SpeedTestConfig.from_dict({"base_url": ""}).base_url)

    def test_validate_ok(self):
        SpeedTestConfig(base_url="http://host").validate()

    def test_validate_errors(self):
        bad = [
            SpeedTestConfig(base_url=None),
            SpeedTestConfig(base_url="   "),
            SpeedTestConfig(base_url="http://h", ping_count=0),
            SpeedTestConfig(base_url="http://h", ping_count=MAX_PING_COUNT + 1),
            SpeedTestConfig(base_url="http://h", download_size=0),
            SpeedTestConfig(base_url="http://h", upload_size=0),
            SpeedTestConfig(base_url="http://h", phase_timeout=MIN_PHASE_TIMEOUT / 2),
        ]
        for cfg in bad:
            with self.subTest(cfg=cfg):
                with self.assertRaises(ConfigurationError):
                    cfg.validate()

    def test_to_dict(self):
        d = SpeedTestConfig(base_url="http://h").to_dict()
        self.assertEqual(d["base_url"], "http://h")
        self.assertIn("phase_timeout", d)


if __name__ == "__main__":
    unittest.main()
