#!/usr/bin/env python3
"""
Unit tests for configuration loading, resolution and unit detection.
"""

import json
import logging
import os
import shutil
import tempfile
import unittest

from gpsdash.config import Config, ConfigValidator, parse_source_spec, resolve_config
from gpsdash.exceptions import ConfigurationError
from gpsdash.formatting import DegreeFormat
from gpsdash.telemetry import DisplayMode
from gpsdash.units import UnitSystem, detect_unit_system
from gpsdash.utils import error_handler


class TestParseSourceSpec(unittest.TestCase):
    """Test cases for server[:port[:device]] parsing."""

    def test_empty(self):
        self.assertEqual(parse_source_spec(None), ("localhost", 2947, None))
        self.assertEqual(parse_source_spec(""), ("localhost", 2947, None))

    def test_host_only(self):
        self.assertEqual(parse_source_spec("gps.local"), ("gps.local", 2947, None))

    def test_host_port_device(self):
        self.assertEqual(parse_source_spec("gps.local:3000:/dev/ttyUSB0"),
                         ("gps.local", 3000, "/dev/ttyUSB0"))

    def test_empty_components_keep_defaults(self):
        self.assertEqual(parse_source_spec("::/dev/ttyACM0"), ("localhost", 2947, "/dev/ttyACM0"))

    def test_ipv6(self):
        self.assertEqual(parse_source_spec("[::1]:2948"), ("::1", 2948, None))
        self.assertEqual(parse_source_spec("[fe80::1]"), ("fe80::1", 2947, None))

    def test_bad_port(self):
        with self.assertRaises(ConfigurationError):
            parse_source_spec("host:abc")
        with self.assertRaises(ConfigurationError):
            parse_source_spec("host:70000")

    def test_unterminated_ipv6(self):
        with self.assertRaises(ConfigurationError):
            parse_source_spec("[::1:2947")


class TestDetectUnitSystem(unittest.TestCase):
    """Test cases for locale-based unit detection."""

    def test_gpsd_units_wins(self):
        env = {"GPSD_UNITS": "nautical", "LANG": "en_US.UTF-8"}
        self.assertIs(detect_unit_system(env), UnitSystem.NAUTICAL)

    def test_us_locale(self):
        self.assertIs(detect_unit_system({"LANG": "en_US.UTF-8"}), UnitSystem.IMPERIAL)
        self.assertIs(detect_unit_system({"LANG": "C"}), UnitSystem.IMPERIAL)
        self.assertIs(detect_unit_system({"LANG": "POSIX"}), UnitSystem.IMPERIAL)

    def test_other_locale(self):
        self.assertIs(detect_unit_system({"LANG": "de_DE.UTF-8"}), UnitSystem.METRIC)

    def test_measurement_overrides_lang(self):
        env = {"LC_MEASUREMENT": "en_GB.UTF-8", "LANG": "en_US.UTF-8"}
        self.assertIs(detect_unit_system(env), UnitSystem.METRIC)

    def test_bad_gpsd_units_ignored(self):
        env = {"GPSD_UNITS": "furlongs", "LANG": "fr_FR"}
        self.assertIs(detect_unit_system(env), UnitSystem.METRIC)

    def test_nothing_set(self):
        self.assertIsNone(detect_unit_system({}))

    def test_parse_short_forms(self):
        self.assertIs(UnitSystem.parse("i"), UnitSystem.IMPERIAL)
        self.assertIs(UnitSystem.parse("n"), UnitSystem.NAUTICAL)
        self.assertIs(UnitSystem.parse("m"), UnitSystem.METRIC)
        with self.assertRaises(ValueError):
            UnitSystem.parse("x")


class TestConfigValidator(unittest.TestCase):
    """Test cases for ConfigValidator."""

    def test_display(self):
        self.assertTrue(ConfigValidator.validate_display_settings({"degree_format": "s"}))
        self.assertFalse(ConfigValidator.validate_display_settings({"degree_format": "q"}))
        self.assertFalse(ConfigValidator.validate_display_settings({"units": "cubits"}))
        self.assertFalse(ConfigValidator.validate_display_settings({"mode": "radar"}))
        self.assertFalse(ConfigValidator.validate_display_settings({"silent": "yes"}))
        self.assertFalse(ConfigValidator.validate_display_settings({"degree_format": 5}))
        self.assertFalse(ConfigValidator.validate_display_settings({"units": 3}))

    def test_source(self):
        self.assertTrue(ConfigValidator.validate_source_settings({"host": "a", "port": 1}))
        self.assertFalse(ConfigValidator.validate_source_settings({"port": 0}))
        self.assertFalse(ConfigValidator.validate_source_settings({"port": True}))
        self.assertFalse(ConfigValidator.validate_source_settings({"host": ""}))

    def test_logging(self):
        self.assertTrue(ConfigValidator.validate_logging_settings({"level": "debug"}))
        self.assertFalse(ConfigValidator.validate_logging_settings({"level": "LOUD"}))


class TestResolveConfig(unittest.TestCase):
    """Test cases for the defaults, file, locale, command-line order."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.config_path = os.path.join(self.temp_dir, "gpsdash.json")
        error_handler.clear()

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def write_config(self, data):
        with open(self.config_path, 'w') as f:
            json.dump(data, f)

    def test_defaults(self):
        config = resolve_config(Config(), environ={})
        self.assertIs(config.degree_format, DegreeFormat.DECIMAL)
        self.assertFalse(config.magnetic)
        self.assertFalse(config.silent)
        self.assertIs(config.mode, DisplayMode.POSITION)
        self.assertIs(config.units.system, UnitSystem.IMPERIAL)
        self.assertEqual((config.host, config.port, config.device), ("localhost", 2947, None))
        self.assertIsNone(config.log_file)
        self.assertEqual(config.log_level, logging.INFO)

    def test_locale_detection(self):
        config = resolve_config(Config(), environ={"LANG": "de_DE.UTF-8"})
        self.assertIs(config.units.system, UnitSystem.METRIC)

    def test_file_overrides_defaults(self):
        self.write_config({
            "display": {"degree_format": "m", "units": "nautical", "magnetic": True},
            "source": {"host": "gps.local", "port": 3000},
            "logging": {"level": "DEBUG", "file": "/tmp/gpsdash.log"}
        })
        config = resolve_config(Config(self.config_path), environ={"LANG": "de_DE"})
        self.assertIs(config.degree_format, DegreeFormat.DEGREES_MINUTES)
        self.assertIs(config.units.system, UnitSystem.NAUTICAL)
        self.assertTrue(config.magnetic)
        self.assertEqual((config.host, config.port), ("gps.local", 3000))
        self.assertEqual(config.log_level, logging.DEBUG)
        self.assertEqual(config.log_file, "/tmp/gpsdash.log")

    def test_command_line_overrides_file(self):
        self.write_config({"display": {"degree_format": "m", "units": "nautical"},
                           "source": {"host": "gps.local", "port": 3000}})
        overrides = {"degree_format": "s", "units": "m", "silent": True,
                     "mode": "attitude", "source": ":4000:/dev/ttyUSB1",
                     "magnetic": None}
        config = resolve_config(Config(self.config_path), overrides, environ={})
        self.assertIs(config.degree_format, DegreeFormat.DEGREES_MINUTES_SECONDS)
        self.assertIs(config.units.system, UnitSystem.METRIC)
        self.assertTrue(config.silent)
        self.assertIs(config.mode, DisplayMode.ATTITUDE)
        self.assertEqual((config.host, config.port, config.device),
                         ("gps.local", 4000, "/dev/ttyUSB1"))

    def test_unknown_keys_ignored(self):
        self.write_config({"display": {"colour": "green"}, "extra": 1})
        config = resolve_config(Config(self.config_path), environ={})
        self.assertIs(config.degree_format, DegreeFormat.DECIMAL)

    def test_missing_file_uses_defaults(self):
        config = resolve_config(Config(os.path.join(self.temp_dir, "absent.json")), environ={})
        self.assertEqual(config.port, 2947)
        self.assertEqual(error_handler.get_error_summary()["total_errors"], 1)

    def test_file_is_never_written(self):
        path = os.path.join(self.temp_dir, "absent.json")
        resolve_config(Config(path), environ={})
        self.assertFalse(os.path.exists(path))

    def test_invalid_json(self):
        with open(self.config_path, 'w') as f:
            f.write("{not json")
        with self.assertRaises(ConfigurationError):
            resolve_config(Config(self.config_path), environ={})

    def test_not_an_object(self):
        self.write_config([1, 2, 3])
        with self.assertRaises(ConfigurationError):
            resolve_config(Config(self.config_path), environ={})

    def test_invalid_value(self):
        self.write_config({"display": {"degree_format": "z"}})
        with self.assertRaises(ConfigurationError):
            resolve_config(Config(self.config_path), environ={})

    def test_non_text_display_values(self):
        for display in ({"degree_format": 5}, {"units": 3}):
            self.write_config({"display": display})
            with self.assertRaises(ConfigurationError):
                resolve_config(Config(self.config_path), environ={})

    def test_invalid_override(self):
        with self.assertRaises(ConfigurationError):
            resolve_config(Config(), {"units": "cubits"}, environ={})


if __name__ == '__main__':
    unittest.main()
