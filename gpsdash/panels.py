"""
Panel rendering

Builds the data, satellite and raw-log panels for a layout and fills in
the value text for each snapshot. Field labels are written once when the
panels are created; each render pass only rewrites the value columns.
"""

import logging
import time
from typing import List, Optional

from .fix_state import FixStateTracker
from .formatting import (DegreeFormat, NOT_AVAILABLE, OPTIONAL_VALUE_WIDTH, VALUE_WIDTH,
                         fit, format_altitude, format_climb, format_degrees,
                         format_distance_error, format_heading, format_latitude,
                         format_locator, format_longitude, format_number, format_speed,
                         format_speed_error, format_time, format_time_offset,
                         format_track_error)
from .layout import LayoutGeometry
from .satellites import SATELLITE_HEADER, format_satellite, select_satellites
from .telemetry import AttitudeSnapshot, DisplayMode, FixMode, Snapshot, TelemetrySnapshot
from .units import UnitPreference
from .utils import ComponentType, handle_exception

logger = logging.getLogger(__name__)

# Columns of the field labels and values inside the data panel
DATAWIN_DESC_OFFSET = 5
DATAWIN_VALUE_OFFSET = 17
DATAWIN_OPTIONAL_VALUE_OFFSET = DATAWIN_VALUE_OFFSET + 5

POSITION_LABELS = ["Time:", "Latitude:", "Longitude:", "Altitude:",
                   "Speed:", "Heading:", "Climb:", "Status:"]

OPTIONAL_LABELS = ["Longitude Err:", "Latitude Err:", "Altitude Err:",
                   "Course Err:", "Speed Err:", "Time offset:", "Grid Square:"]

ATTITUDE_LABELS = ["Time:", "Heading:", "Pitch:", "Roll:", "Dip:", "Rcvr Type:"]


class PanelRenderer:
    """Creates the dashboard panels and draws snapshots into them."""

    def __init__(self, screen, units: UnitPreference,
                 degree_format: DegreeFormat = DegreeFormat.DECIMAL,
                 magnetic: bool = False,
                 tracker: Optional[FixStateTracker] = None):
        self.screen = screen
        self.units = units
        self.degree_format = degree_format
        self.magnetic = magnetic
        self.tracker = tracker or FixStateTracker()

        self.geometry: Optional[LayoutGeometry] = None
        self.data_panel = None
        self.satellite_panel = None
        self.log_panel = None

    def build(self, geometry: LayoutGeometry) -> None:
        """Create panels for a layout and write their static labels."""
        self.geometry = geometry
        self.data_panel = self.screen.new_panel(geometry.window_length, geometry.data_width, 0, 0)

        if geometry.mode is DisplayMode.POSITION:
            self.satellite_panel = self.screen.new_panel(
                geometry.window_length, geometry.satellite_width, 0, geometry.data_width)
        if geometry.has_log:
            self.log_panel = self.screen.new_log_panel(
                geometry.log_height, geometry.cols, geometry.window_length)

        self.screen.refresh()

        if geometry.mode is DisplayMode.ATTITUDE:
            labels = ATTITUDE_LABELS
        else:
            labels = list(POSITION_LABELS)
            if geometry.show_optional:
                labels += OPTIONAL_LABELS
        for row, label in enumerate(labels, start=1):
            self.data_panel.write(row, DATAWIN_DESC_OFFSET, label)
        self.data_panel.draw_border()

        if self.satellite_panel is not None:
            self.satellite_panel.write(1, 1, SATELLITE_HEADER)
            self.satellite_panel.draw_border()

        for panel in self.panels():
            panel.refresh()
        logger.debug(f"Built {len(self.panels())} panels for {geometry.cols}x{geometry.rows}")

    def teardown(self) -> None:
        """Drop all panels and blank the screen."""
        self.data_panel = None
        self.satellite_panel = None
        self.log_panel = None
        self.geometry = None
        self.screen.clear()

    def panels(self) -> List:
        return [panel for panel in (self.data_panel, self.satellite_panel, self.log_panel)
                if panel is not None]

    @handle_exception(ComponentType.RENDERER)
    def render(self, snapshot: Snapshot, silent: bool = False,
               now: Optional[float] = None) -> None:
        """Draw one snapshot and refresh every touched panel."""
        if self.geometry is None:
            raise RuntimeError("render() called before build()")
        if now is None:
            now = time.time()

        if isinstance(snapshot, AttitudeSnapshot):
            self._render_attitude(snapshot)
        else:
            self._render_position(snapshot, now)

        if not silent and snapshot.raw_line is not None:
            self.append_log(snapshot.raw_line)

        for panel in self.panels():
            panel.refresh()

    def _value(self, row: int, text: str) -> None:
        self.data_panel.write(row, DATAWIN_VALUE_OFFSET, text, VALUE_WIDTH)

    def _optional_value(self, row: int, text: str) -> None:
        self.data_panel.write(row, DATAWIN_OPTIONAL_VALUE_OFFSET, text, OPTIONAL_VALUE_WIDTH)

    def _render_position(self, snapshot: TelemetrySnapshot, now: float) -> None:
        units = self.units
        has_2d = snapshot.mode >= FixMode.FIX_2D
        has_3d = snapshot.mode >= FixMode.FIX_3D
        blank = fit(NOT_AVAILABLE, VALUE_WIDTH)

        self.tracker.update(snapshot.online, snapshot.mode, now)

        self._render_satellites(snapshot)

        self._value(1, format_time(snapshot.time))
        self._value(2, format_latitude(snapshot.latitude, self.degree_format) if has_2d else blank)
        self._value(3, format_longitude(snapshot.longitude, self.degree_format) if has_2d else blank)
        self._value(4, format_altitude(snapshot.altitude, units) if has_3d else blank)
        self._value(5, format_speed(snapshot.speed, units) if has_2d else blank)
        self._value(6, format_heading(snapshot.track, snapshot.latitude, snapshot.longitude,
                                      self.magnetic) if has_2d else blank)
        self._value(7, format_climb(snapshot.climb, units) if has_3d else blank)
        self._value(8, self.tracker.status_text(now))

        if not self.geometry.show_optional:
            return

        self._optional_value(9, format_distance_error(snapshot.epx, units))
        self._optional_value(10, format_distance_error(snapshot.epy, units))
        self._optional_value(11, format_distance_error(snapshot.epv, units))
        self._optional_value(12, format_track_error(snapshot.epd))
        self._optional_value(13, format_speed_error(snapshot.eps, units))
        self._optional_value(14, format_time_offset(snapshot.time, now))
        self._optional_value(15, format_locator(snapshot.latitude, snapshot.longitude))

    def _render_satellites(self, snapshot: TelemetrySnapshot) -> None:
        if self.satellite_panel is None:
            return
        width = self.geometry.satellite_width - 3
        rows = select_satellites(snapshot.satellites, snapshot.satellites_visible,
                                 self.geometry.display_sats)
        for row, sat in rows:
            self.satellite_panel.write(row + 2, 1, format_satellite(sat, width))

    def _render_attitude(self, snapshot: AttitudeSnapshot) -> None:
        self._value(1, format_time(snapshot.time))
        self._value(2, format_degrees(snapshot.heading))
        self._value(3, format_number(snapshot.pitch))
        self._value(4, format_number(snapshot.roll))
        self._value(5, format_number(snapshot.dip))
        self._value(6, fit(snapshot.receiver_type or NOT_AVAILABLE, VALUE_WIDTH))

    def append_log(self, raw_line: str) -> None:
        """Append one raw protocol line to the log panel, if there is one."""
        if self.log_panel is None:
            return
        self.log_panel.append_line(raw_line.rstrip())

    def clear_log(self) -> None:
        if self.log_panel is None:
            return
        self.log_panel.erase()
        self.log_panel.refresh()
