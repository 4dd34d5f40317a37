"""
Telemetry sources

Defines the interface the dashboard loop uses to talk to a location-data
service and a concrete client for gpsd's JSON protocol.
"""

import errno
import json
import logging
import re
import select
import socket
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, Optional

from .exceptions import SourceConnectError, SourceGoneError, SourceReadError
from .telemetry import (AttitudeSnapshot, DisplayMode, FixMode, SatelliteInfo, Snapshot,
                        TelemetrySnapshot)
from .utils import safe_float, safe_int

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 2947

# fromisoformat before 3.11 only takes 3 or 6 fractional digits
_FRACTION = re.compile(r"\.(\d+)")


class TelemetrySource(ABC):
    """
    Abstract base class for telemetry sources

    Defines the session lifecycle the dashboard loop relies on: open,
    enable streaming, wait for readiness with a timeout, read one update,
    and close.
    """

    def __init__(self, name: str):
        self.name = name
        self.connected = False
        self.report_count = 0

    @abstractmethod
    def connect(self) -> None:
        """
        Open the session

        Raises:
            SourceConnectError: If the service cannot be reached
        """
        pass

    @abstractmethod
    def stream(self, device: Optional[str] = None) -> None:
        """Ask the service to start streaming updates"""
        pass

    @abstractmethod
    def waiting(self, timeout: float) -> bool:
        """Block up to timeout seconds; True when data is ready to read"""
        pass

    @abstractmethod
    def read(self) -> Snapshot:
        """
        Consume one update

        Raises:
            SourceGoneError: If the peer closed the session
            SourceReadError: On transport or protocol errors
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the session"""
        pass


def _parse_time(value: Any) -> Optional[float]:
    """gpsd reports time as ISO-8601 text; very old servers send a float."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return safe_float(value)
    try:
        text = str(value).replace("Z", "+00:00")
        text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
        return datetime.fromisoformat(text).timestamp()
    except ValueError:
        logger.debug(f"Unparseable report time: {value}")
        return None


class GpsdClient(TelemetrySource):
    """
    gpsd JSON protocol client

    Each read consumes one JSON report and folds it into the running fix,
    so the snapshot handed to the renderer always reflects the latest TPV,
    SKY and ATT reports seen.
    """

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT,
                 mode: DisplayMode = DisplayMode.POSITION, connect_timeout: float = 10.0):
        super().__init__(f"gpsd@{host}:{port}")
        self.host = host
        self.port = port
        self.mode = mode
        self.connect_timeout = connect_timeout
        self.socket: Optional[socket.socket] = None
        self.buffer = b""
        self.fix = TelemetrySnapshot()
        self.attitude = AttitudeSnapshot()

    def connect(self) -> None:
        try:
            self.socket = socket.create_connection((self.host, self.port),
                                                   timeout=self.connect_timeout)
            self.socket.settimeout(None)
        except OSError as e:
            self.socket = None
            raise SourceConnectError(
                f"no gpsd running or network error: {e.errno}, {e.strerror or e}"
            ) from e
        self.connected = True
        logger.info(f"Connected to gpsd at {self.host}:{self.port}")

    def stream(self, device: Optional[str] = None) -> None:
        watch: Dict[str, Any] = {"enable": True, "json": True}
        if device:
            watch["device"] = device
        command = f"?WATCH={json.dumps(watch)};\n"
        try:
            self.socket.sendall(command.encode("ascii"))
        except OSError as e:
            raise SourceReadError(f"could not enable streaming: {e}", errno=e.errno) from e
        logger.debug(f"Sent {command.strip()}")

    def waiting(self, timeout: float) -> bool:
        if b"\n" in self.buffer:
            return True
        if self.socket is None:
            return False
        readable, _, _ = select.select([self.socket], [], [], timeout)
        return bool(readable)

    def read(self) -> Snapshot:
        if self.socket is None:
            raise SourceGoneError("GPS session is closed")

        if b"\n" not in self.buffer:
            try:
                data = self.socket.recv(8192)
            except OSError as e:
                raise SourceReadError(f"socket error: {e}", errno=e.errno) from e
            if not data:
                self.connected = False
                raise SourceGoneError()
            self.buffer += data

        if b"\n" not in self.buffer:
            # Partial report; nothing new to show yet
            return self._current(raw_line=None)

        line, _, self.buffer = self.buffer.partition(b"\n")
        text = line.decode("utf-8", errors="replace").strip()
        if not text:
            return self._current(raw_line=None)

        try:
            report = json.loads(text)
        except ValueError as e:
            raise SourceReadError(f"malformed report: {e}", errno=errno.EBADMSG) from e
        if not isinstance(report, dict):
            raise SourceReadError(f"unexpected report: {text[:40]}", errno=errno.EBADMSG)

        self.report_count += 1
        self.apply_report(report)
        return self._current(raw_line=text)

    def apply_report(self, report: Dict[str, Any]) -> None:
        """Fold one decoded gpsd report into the running state."""
        report_class = report.get("class")

        if report_class == "TPV":
            self.fix = replace(
                self.fix,
                online=True,
                mode=FixMode.from_value(report.get("mode")),
                time=_parse_time(report.get("time")),
                latitude=safe_float(report.get("lat")),
                longitude=safe_float(report.get("lon")),
                altitude=safe_float(report.get("altMSL", report.get("alt"))),
                track=safe_float(report.get("track")),
                speed=safe_float(report.get("speed")),
                climb=safe_float(report.get("climb")),
                epx=safe_float(report.get("epx")),
                epy=safe_float(report.get("epy")),
                epv=safe_float(report.get("epv")),
                epd=safe_float(report.get("epd")),
                eps=safe_float(report.get("eps")),
            )
        elif report_class == "SKY":
            if "satellites" not in report:
                return
            satellites = tuple(
                SatelliteInfo(
                    prn=safe_int(sat.get("PRN")),
                    elevation=safe_int(sat.get("el")),
                    azimuth=safe_int(sat.get("az")),
                    signal_strength=safe_float(sat.get("ss"), 0.0),
                    used=bool(sat.get("used", False)),
                )
                for sat in report.get("satellites") or []
            )
            self.fix = replace(self.fix, online=True, satellites=satellites,
                               satellites_visible=len(satellites))
        elif report_class == "ATT":
            self.attitude = replace(
                self.attitude,
                online=True,
                time=_parse_time(report.get("time")),
                heading=safe_float(report.get("heading")),
                pitch=safe_float(report.get("pitch")),
                roll=safe_float(report.get("roll")),
                dip=safe_float(report.get("dip")),
            )
        elif report_class == "DEVICE":
            if "activated" in report and not report["activated"]:
                logger.info(f"Device {report.get('path')} went offline")
                self.fix = replace(self.fix, online=False)
                self.attitude = replace(self.attitude, online=False)
            elif report.get("driver"):
                self.attitude = replace(self.attitude, receiver_type=report["driver"])
        elif report_class == "DEVICES":
            if not report.get("devices"):
                self.fix = replace(self.fix, online=False)
                self.attitude = replace(self.attitude, online=False)
        elif report_class == "ERROR":
            logger.warning(f"gpsd error: {report.get('message')}")

    def _current(self, raw_line: Optional[str]) -> Snapshot:
        if self.mode is DisplayMode.ATTITUDE:
            return replace(self.attitude, raw_line=raw_line)
        return replace(self.fix, raw_line=raw_line)

    def close(self) -> None:
        if self.socket is not None:
            try:
                self.socket.close()
            except OSError as e:
                logger.debug(f"Error closing gpsd socket: {e}")
            self.socket = None
        self.connected = False
        logger.info("Closed gpsd session")
