"""
Panel layout planning

Decides how tall the data and satellite panels are, whether there is room
left for the scrolling raw-log panel, and how many satellite rows fit,
given the terminal size and the display mode.
"""

import logging
from dataclasses import dataclass

from .exceptions import UnusableTerminalError
from .telemetry import DisplayMode

logger = logging.getLogger(__name__)

# Box drawn around the data panel
DATAWIN_OVERHEAD = 2

# Box around the satellite panel plus its column header line
SATWIN_OVERHEAD = 3

DATAWIN_GPS_FIELDS = 8
DATAWIN_OPTIONAL_FIELDS = 7
DATAWIN_COMPASS_FIELDS = 6

DATAWIN_WIDTH = 45
SATELLITES_WIDTH = 35

MIN_GPS_DATAWIN_SIZE = DATAWIN_GPS_FIELDS + DATAWIN_OVERHEAD
MAX_GPS_DATAWIN_SIZE = DATAWIN_GPS_FIELDS + DATAWIN_OPTIONAL_FIELDS + DATAWIN_OVERHEAD
MIN_COMPASS_DATAWIN_SIZE = DATAWIN_COMPASS_FIELDS + DATAWIN_OVERHEAD


@dataclass(frozen=True)
class LayoutGeometry:
    """Panel geometry for one terminal size"""
    rows: int
    cols: int
    mode: DisplayMode
    window_length: int
    data_width: int
    satellite_width: int
    has_log: bool
    display_sats: int

    @property
    def show_optional(self) -> bool:
        """Whether the optional field block fits in the data panel."""
        return (self.mode is DisplayMode.POSITION and
                self.window_length >= MAX_GPS_DATAWIN_SIZE)

    @property
    def log_height(self) -> int:
        return self.rows - self.window_length if self.has_log else 0


def minimum_rows(mode: DisplayMode) -> int:
    """Smallest terminal height the given mode can run in."""
    if mode is DisplayMode.ATTITUDE:
        return MIN_COMPASS_DATAWIN_SIZE
    return MIN_GPS_DATAWIN_SIZE


def plan(rows: int, cols: int, mode: DisplayMode = DisplayMode.POSITION) -> LayoutGeometry:
    """
    Compute panel geometry for a terminal

    The log panel is given up first, then the optional fields; below the
    minimum size the terminal is unusable.

    Args:
        rows: Terminal height
        cols: Terminal width
        mode: Display mode

    Returns:
        LayoutGeometry for the terminal

    Raises:
        UnusableTerminalError: If the terminal is shorter than the minimum
    """
    if mode is DisplayMode.ATTITUDE:
        if rows > MIN_COMPASS_DATAWIN_SIZE:
            window_length, has_log = MIN_COMPASS_DATAWIN_SIZE, True
        elif rows == MIN_COMPASS_DATAWIN_SIZE:
            window_length, has_log = MIN_COMPASS_DATAWIN_SIZE, False
        else:
            raise UnusableTerminalError(MIN_COMPASS_DATAWIN_SIZE, rows)

        geometry = LayoutGeometry(rows=rows, cols=cols, mode=mode,
                                  window_length=window_length,
                                  data_width=DATAWIN_WIDTH, satellite_width=0,
                                  has_log=has_log, display_sats=0)
    else:
        if rows > MAX_GPS_DATAWIN_SIZE:
            window_length, has_log = MAX_GPS_DATAWIN_SIZE, True
        elif rows == MAX_GPS_DATAWIN_SIZE:
            window_length, has_log = MAX_GPS_DATAWIN_SIZE, False
        elif rows > MIN_GPS_DATAWIN_SIZE:
            window_length, has_log = MIN_GPS_DATAWIN_SIZE, True
        elif rows == MIN_GPS_DATAWIN_SIZE:
            window_length, has_log = MIN_GPS_DATAWIN_SIZE, False
        else:
            raise UnusableTerminalError(MIN_GPS_DATAWIN_SIZE, rows)

        geometry = LayoutGeometry(rows=rows, cols=cols, mode=mode,
                                  window_length=window_length,
                                  data_width=DATAWIN_WIDTH,
                                  satellite_width=SATELLITES_WIDTH,
                                  has_log=has_log,
                                  display_sats=window_length - SATWIN_OVERHEAD - int(has_log))

    logger.debug(f"Layout for {cols}x{rows}: {geometry}")
    return geometry
