#!/usr/bin/env python3
"""
Unit tests for the gpsd JSON client.

The socket is replaced with a mock; no gpsd is needed.
"""

import errno
import json
import unittest
from unittest.mock import MagicMock, patch

from gpsdash.exceptions import SourceConnectError, SourceGoneError, SourceReadError
from gpsdash.gpsd_client import GpsdClient
from gpsdash.telemetry import AttitudeSnapshot, DisplayMode, FixMode, TelemetrySnapshot

TPV = {"class": "TPV", "mode": 3, "time": "2024-01-02T03:04:05.500Z",
       "lat": 37.4275, "lon": -122.1697, "altMSL": 30.0, "alt": 45.0,
       "track": 90.5, "speed": 1.25, "climb": -0.5, "epx": 4.0, "epy": 5.0,
       "epv": 8.0, "epd": 2.0, "eps": 0.3}

SKY = {"class": "SKY", "satellites": [
    {"PRN": 5, "el": 45, "az": 120, "ss": 38.0, "used": True},
    {"PRN": 12, "el": 10, "az": 300, "ss": 20.0, "used": False},
]}


def line(report):
    return (json.dumps(report) + "\r\n").encode("ascii")


class ClientTestCase(unittest.TestCase):

    def make_client(self, chunks=(), mode=DisplayMode.POSITION):
        client = GpsdClient("localhost", 2947, mode)
        client.socket = MagicMock()
        client.socket.recv.side_effect = list(chunks)
        client.connected = True
        return client


class TestApplyReport(ClientTestCase):
    """Test cases for folding reports into the running fix."""

    def test_tpv(self):
        client = self.make_client()
        client.apply_report(TPV)
        fix = client.fix
        self.assertTrue(fix.online)
        self.assertIs(fix.mode, FixMode.FIX_3D)
        self.assertEqual((fix.latitude, fix.longitude), (37.4275, -122.1697))
        self.assertEqual(fix.altitude, 30.0)
        self.assertEqual(fix.track, 90.5)
        self.assertEqual(fix.eps, 0.3)
        self.assertAlmostEqual(fix.time, 1704164645.5)

    def test_tpv_time_fraction_widths(self):
        client = self.make_client()
        for stamp in ("2024-01-02T03:04:05.50Z", "2024-01-02T03:04:05.5Z",
                      "2024-01-02T03:04:05.500000000Z"):
            client.apply_report({"class": "TPV", "mode": 3, "time": stamp})
            self.assertAlmostEqual(client.fix.time, 1704164645.5)

    def test_tpv_falls_back_to_alt(self):
        client = self.make_client()
        client.apply_report({"class": "TPV", "mode": 3, "alt": 12.0})
        self.assertEqual(client.fix.altitude, 12.0)

    def test_tpv_missing_fields_are_absent(self):
        client = self.make_client()
        client.apply_report(TPV)
        client.apply_report({"class": "TPV", "mode": 1})
        self.assertIs(client.fix.mode, FixMode.NO_FIX)
        self.assertIsNone(client.fix.latitude)
        self.assertIsNone(client.fix.time)

    def test_sky(self):
        client = self.make_client()
        client.apply_report(SKY)
        self.assertEqual(client.fix.satellites_visible, 2)
        first = client.fix.satellites[0]
        self.assertEqual((first.prn, first.elevation, first.azimuth), (5, 45, 120))
        self.assertTrue(first.used)
        self.assertFalse(client.fix.satellites[1].used)

    def test_sky_without_satellites_keeps_skyview(self):
        client = self.make_client()
        client.apply_report(SKY)
        client.apply_report({"class": "SKY", "hdop": 1.1})
        self.assertEqual(client.fix.satellites_visible, 2)

    def test_att(self):
        client = self.make_client(mode=DisplayMode.ATTITUDE)
        client.apply_report({"class": "DEVICE", "path": "/dev/ttyUSB0", "driver": "TrueNorth"})
        client.apply_report({"class": "ATT", "heading": 271.5, "pitch": 1.5, "roll": -0.5,
                             "dip": 60.0})
        self.assertTrue(client.attitude.online)
        self.assertEqual(client.attitude.heading, 271.5)
        self.assertEqual(client.attitude.receiver_type, "TrueNorth")

    def test_device_deactivated(self):
        client = self.make_client()
        client.apply_report(TPV)
        client.apply_report({"class": "DEVICE", "path": "/dev/ttyUSB0", "activated": 0})
        self.assertFalse(client.fix.online)

    def test_no_devices(self):
        client = self.make_client()
        client.apply_report(TPV)
        client.apply_report({"class": "DEVICES", "devices": []})
        self.assertFalse(client.fix.online)

    def test_unknown_class_ignored(self):
        client = self.make_client()
        client.apply_report({"class": "VERSION", "release": "3.25"})
        self.assertEqual(client.fix, TelemetrySnapshot())


class TestRead(ClientTestCase):
    """Test cases for reading from the socket."""

    def test_one_report_per_read(self):
        client = self.make_client([line(TPV) + line(SKY)])
        first = client.read()
        self.assertIsInstance(first, TelemetrySnapshot)
        self.assertEqual(first.satellites_visible, 0)
        self.assertEqual(first.raw_line, json.dumps(TPV))
        self.assertTrue(client.waiting(0.0))

        second = client.read()
        self.assertEqual(second.satellites_visible, 2)
        self.assertEqual(second.latitude, 37.4275)
        self.assertEqual(client.report_count, 2)
        client.socket.recv.assert_called_once()

    def test_partial_report(self):
        data = line(TPV)
        client = self.make_client([data[:10], data[10:]])
        partial = client.read()
        self.assertIsNone(partial.raw_line)
        complete = client.read()
        self.assertEqual(complete.mode, FixMode.FIX_3D)

    def test_attitude_mode_returns_attitude(self):
        client = self.make_client([line({"class": "ATT", "heading": 10.0})],
                                  mode=DisplayMode.ATTITUDE)
        snapshot = client.read()
        self.assertIsInstance(snapshot, AttitudeSnapshot)
        self.assertEqual(snapshot.heading, 10.0)

    def test_peer_closed(self):
        client = self.make_client([b""])
        with self.assertRaises(SourceGoneError):
            client.read()
        self.assertFalse(client.connected)

    def test_socket_error_carries_errno(self):
        client = self.make_client([ConnectionResetError(errno.ECONNRESET, "reset")])
        with self.assertRaises(SourceReadError) as ctx:
            client.read()
        self.assertEqual(ctx.exception.errno, errno.ECONNRESET)

    def test_malformed_json(self):
        client = self.make_client([b"{not json}\n"])
        with self.assertRaises(SourceReadError) as ctx:
            client.read()
        self.assertEqual(ctx.exception.errno, errno.EBADMSG)

    def test_read_after_close(self):
        client = self.make_client()
        client.close()
        with self.assertRaises(SourceGoneError):
            client.read()

    @patch('gpsdash.gpsd_client.select.select')
    def test_waiting_uses_select(self, mock_select):
        client = self.make_client()
        mock_select.return_value = ([], [], [])
        self.assertFalse(client.waiting(0.5))
        mock_select.assert_called_once_with([client.socket], [], [], 0.5)


class TestSession(unittest.TestCase):
    """Test cases for connect, stream and close."""

    @patch('gpsdash.gpsd_client.socket.create_connection')
    def test_connect_and_stream(self, mock_create):
        sock = MagicMock()
        mock_create.return_value = sock
        client = GpsdClient("gps.local", 3000)
        client.connect()
        client.stream("/dev/ttyUSB0")

        mock_create.assert_called_once_with(("gps.local", 3000), timeout=10.0)
        self.assertTrue(client.connected)
        sent = sock.sendall.call_args[0][0].decode("ascii")
        self.assertTrue(sent.startswith("?WATCH="))
        watch = json.loads(sent[len("?WATCH="):].rstrip(";\n"))
        self.assertEqual(watch, {"enable": True, "json": True, "device": "/dev/ttyUSB0"})

    @patch('gpsdash.gpsd_client.socket.create_connection')
    def test_connect_failure(self, mock_create):
        mock_create.side_effect = ConnectionRefusedError(errno.ECONNREFUSED, "refused")
        client = GpsdClient()
        with self.assertRaises(SourceConnectError):
            client.connect()
        self.assertFalse(client.connected)

    def test_close_is_idempotent(self):
        client = GpsdClient()
        sock = MagicMock()
        client.socket = sock
        client.close()
        client.close()
        sock.close.assert_called_once()
        self.assertIsNone(client.socket)


if __name__ == '__main__':
    unittest.main()
