#!/usr/bin/env python3
"""
Unit tests for error recording and value helpers.
"""

import logging
import unittest
from unittest.mock import patch

from gpsdash.utils import (ComponentType, ErrorHandler, ErrorSeverity, handle_exception,
                           is_absent, safe_float, safe_int, setup_logging)


class TestErrorHandler(unittest.TestCase):
    """Test cases for ErrorHandler."""

    def setUp(self):
        self.handler = ErrorHandler(max_errors=5)

    def test_repeats_collapse(self):
        for _ in range(3):
            self.handler.handle_error(ComponentType.SOURCE, ErrorSeverity.HIGH,
                                      "GPS hung up", error_code="SOURCE_GONE")
        self.assertEqual(len(self.handler.errors), 1)
        self.assertEqual(self.handler.errors[0].count, 3)

    def test_summary(self):
        self.handler.handle_error(ComponentType.SOURCE, ErrorSeverity.CRITICAL, "timeout")
        self.handler.handle_error(ComponentType.CONFIG, ErrorSeverity.LOW, "missing file")
        summary = self.handler.get_error_summary()
        self.assertEqual(summary["total_errors"], 2)
        self.assertEqual(summary["critical_errors"], 1)
        self.assertEqual(summary["by_component"], {"source": 1, "config": 1})
        self.assertEqual(summary["last_error"]["message"], "missing file")

    def test_max_errors(self):
        for index in range(8):
            self.handler.handle_error(ComponentType.RENDERER, ErrorSeverity.MEDIUM, f"e{index}")
        self.assertEqual(len(self.handler.errors), 5)
        self.assertEqual(self.handler.errors[0].message, "e3")

    def test_log_level_follows_severity(self):
        with self.assertLogs('gpsdash.utils', level='DEBUG') as logs:
            self.handler.handle_error(ComponentType.LAYOUT, ErrorSeverity.CRITICAL, "too small")
        self.assertTrue(logs.output[0].startswith("CRITICAL:"))

    def test_clear(self):
        self.handler.handle_error(ComponentType.SOURCE, ErrorSeverity.LOW, "x")
        self.handler.clear()
        self.assertEqual(self.handler.errors, [])
        self.assertIsNone(self.handler.get_error_summary()["last_error"])


class TestHandleException(unittest.TestCase):
    """Test cases for the handle_exception decorator."""

    @patch('gpsdash.utils.error_handler')
    def test_records_and_reraises(self, mock_handler):
        @handle_exception(ComponentType.RENDERER)
        def draw():
            """Draw something."""
            raise ValueError("bad value")

        with self.assertRaises(ValueError):
            draw()
        self.assertEqual(draw.__name__, "draw")
        self.assertEqual(draw.__doc__, "Draw something.")
        kwargs = mock_handler.handle_error.call_args[1]
        self.assertIs(kwargs["component"], ComponentType.RENDERER)
        self.assertIn("bad value", kwargs["message"])

    def test_passes_result_through(self):
        @handle_exception(ComponentType.RENDERER)
        def add(a, b):
            return a + b

        self.assertEqual(add(2, 3), 5)


class TestValueHelpers(unittest.TestCase):
    """Test cases for the absent-value helpers."""

    def test_is_absent(self):
        self.assertTrue(is_absent(None))
        self.assertTrue(is_absent(float('nan')))
        self.assertTrue(is_absent(float('-inf')))
        self.assertTrue(is_absent("12"))
        self.assertFalse(is_absent(0))
        self.assertFalse(is_absent(-12.5))

    def test_safe_float(self):
        self.assertEqual(safe_float("1.5"), 1.5)
        self.assertIsNone(safe_float("abc"))
        self.assertIsNone(safe_float("nan"))
        self.assertEqual(safe_float(None, 0.0), 0.0)

    def test_safe_int(self):
        self.assertEqual(safe_int("7"), 7)
        self.assertEqual(safe_int(7.9), 7)
        self.assertEqual(safe_int(None), 0)
        self.assertEqual(safe_int("x", -1), -1)


class TestSetupLogging(unittest.TestCase):
    """Test cases for setup_logging."""

    @patch('gpsdash.utils.logging.basicConfig')
    def test_no_console_by_default(self, mock_basic):
        setup_logging()
        handlers = mock_basic.call_args[1]["handlers"]
        self.assertEqual(len(handlers), 1)
        self.assertIsInstance(handlers[0], logging.NullHandler)

    @patch('gpsdash.utils.logging.basicConfig')
    @patch('gpsdash.utils.logging.FileHandler')
    def test_file_handler(self, mock_file_handler, mock_basic):
        setup_logging("/tmp/gpsdash-test.log", logging.DEBUG)
        mock_file_handler.assert_called_once_with("/tmp/gpsdash-test.log")
        self.assertEqual(mock_basic.call_args[1]["level"], logging.DEBUG)


if __name__ == '__main__':
    unittest.main()
