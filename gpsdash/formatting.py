"""
Field formatting for the data panel

Every function here turns one telemetry value into display text. Results
are padded or truncated to a fixed column width so that redrawing a field
always overwrites whatever was there before.
"""

import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from .magnetic import true_to_magnetic
from .units import UnitPreference
from .utils import is_absent

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "n/a"

# Width of a value in the mandatory block and in the optional block
VALUE_WIDTH = 27
OPTIONAL_VALUE_WIDTH = 22


class DegreeFormat(Enum):
    """Supported latitude/longitude display formats"""
    DECIMAL = "d"                   # DDD.dddddd
    DEGREES_MINUTES = "m"           # DDD MM.mmmm'
    DEGREES_MINUTES_SECONDS = "s"   # DDD MM' SS.sss"

    @classmethod
    def parse(cls, value: str) -> "DegreeFormat":
        text = (value or "").strip().lower()[:1]
        for fmt in cls:
            if fmt.value == text:
                return fmt
        raise ValueError(f"Unknown degree format: {value}")


class FieldKind(Enum):
    """Kinds of values the data panel knows how to show"""
    LATITUDE = "latitude"
    LONGITUDE = "longitude"
    ALTITUDE = "altitude"
    SPEED = "speed"
    CLIMB = "climb"
    DISTANCE_ERROR = "distance_error"
    SPEED_ERROR = "speed_error"
    TRACK_ERROR = "track_error"
    TIME = "time"
    TIME_OFFSET = "time_offset"
    DEGREES = "degrees"
    NUMBER = "number"


def fit(text: str, width: int) -> str:
    """Pad or truncate text to exactly width characters."""
    return text[:width].ljust(width)


def deg_to_str(fmt: DegreeFormat, degrees: float) -> str:
    """
    Format an unsigned angle

    Args:
        fmt: Degree display format
        degrees: Angle in [0, 360]

    Returns:
        Angle text, or "nan" if the angle is out of range
    """
    if is_absent(degrees) or degrees < 0 or degrees > 360:
        return "nan"

    if fmt is DegreeFormat.DECIMAL:
        whole, frac = divmod(int(round(degrees * 1000000)), 1000000)
        return f"{whole:3d}.{frac:06d}"

    if fmt is DegreeFormat.DEGREES_MINUTES:
        whole, rest = divmod(int(round(degrees * 600000)), 600000)
        minutes, frac = divmod(rest, 10000)
        return f"{whole:3d} {minutes:02d}.{frac:04d}'"

    whole, rest = divmod(int(round(degrees * 3600000)), 3600000)
    minutes, rest = divmod(rest, 60000)
    seconds, millis = divmod(rest, 1000)
    return f"{whole:3d} {minutes:02d}' {seconds:02d}.{millis:03d}\""


def format_latitude(latitude: Optional[float], fmt: DegreeFormat,
                    width: int = VALUE_WIDTH) -> str:
    if is_absent(latitude):
        return fit(NOT_AVAILABLE, width)
    hemisphere = 'S' if latitude < 0 else 'N'
    return fit(f"{deg_to_str(fmt, abs(latitude))} {hemisphere}", width)


def format_longitude(longitude: Optional[float], fmt: DegreeFormat,
                     width: int = VALUE_WIDTH) -> str:
    if is_absent(longitude):
        return fit(NOT_AVAILABLE, width)
    hemisphere = 'W' if longitude < 0 else 'E'
    return fit(f"{deg_to_str(fmt, abs(longitude))} {hemisphere}", width)


def format_altitude(altitude: Optional[float], units: UnitPreference,
                    width: int = VALUE_WIDTH) -> str:
    if is_absent(altitude):
        return fit(NOT_AVAILABLE, width)
    return fit(f"{altitude * units.altitude_factor:.1f} {units.altitude_units}", width)


def format_speed(speed: Optional[float], units: UnitPreference,
                 width: int = VALUE_WIDTH) -> str:
    if is_absent(speed):
        return fit(NOT_AVAILABLE, width)
    return fit(f"{speed * units.speed_factor:.1f} {units.speed_units}", width)


def format_climb(climb: Optional[float], units: UnitPreference,
                 width: int = VALUE_WIDTH) -> str:
    """Rate of climb in altitude units per minute."""
    if is_absent(climb):
        return fit(NOT_AVAILABLE, width)
    return fit(f"{climb * units.altitude_factor * 60:.1f} {units.altitude_units}/min", width)


def format_heading(track: Optional[float], latitude: Optional[float] = None,
                   longitude: Optional[float] = None, magnetic: bool = False,
                   width: int = VALUE_WIDTH) -> str:
    """
    Format a course over ground

    In magnetic mode the heading is corrected for local magnetic variation
    when the position allows it, and falls back to the true heading
    otherwise. The suffix always says which one is shown.
    """
    if is_absent(track):
        return fit(NOT_AVAILABLE, width)
    if magnetic:
        magnetic_heading = true_to_magnetic(latitude, longitude, track)
        if magnetic_heading is not None:
            return fit(f"{magnetic_heading:.1f} deg (mag)", width)
    return fit(f"{track:.1f} deg (true)", width)


def format_distance_error(error: Optional[float], units: UnitPreference,
                          width: int = OPTIONAL_VALUE_WIDTH) -> str:
    if is_absent(error):
        return fit(NOT_AVAILABLE, width)
    return fit(f"+/- {int(error * units.altitude_factor)} {units.altitude_units}", width)


def format_speed_error(error: Optional[float], units: UnitPreference,
                       width: int = OPTIONAL_VALUE_WIDTH) -> str:
    if is_absent(error):
        return fit(NOT_AVAILABLE, width)
    return fit(f"+/- {int(error * units.speed_factor)} {units.speed_units}", width)


def format_track_error(error: Optional[float], width: int = OPTIONAL_VALUE_WIDTH) -> str:
    if is_absent(error):
        return fit(NOT_AVAILABLE, width)
    return fit(f"+/- {int(error)} deg", width)


def unix_to_iso8601(timestamp: float) -> str:
    """Seconds since the epoch as an ISO-8601 UTC string with milliseconds."""
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def format_time(timestamp: Optional[float], width: int = VALUE_WIDTH) -> str:
    if is_absent(timestamp):
        return fit(NOT_AVAILABLE, width)
    try:
        return fit(unix_to_iso8601(timestamp), width)
    except (OverflowError, OSError, ValueError) as e:
        logger.debug(f"Unrepresentable fix time {timestamp}: {e}")
        return fit(NOT_AVAILABLE, width)


def format_time_offset(timestamp: Optional[float], now: Optional[float] = None,
                       width: int = OPTIONAL_VALUE_WIDTH) -> str:
    """Local clock minus fix time, in seconds."""
    if is_absent(timestamp):
        return fit(NOT_AVAILABLE, width)
    if now is None:
        now = time.time()
    return fit(f"{now - timestamp:.3f}", width)


def format_degrees(value: Optional[float], width: int = VALUE_WIDTH) -> str:
    if is_absent(value):
        return fit(NOT_AVAILABLE, width)
    return fit(f"{value:.1f} degrees", width)


def format_number(value: Optional[float], width: int = VALUE_WIDTH) -> str:
    if is_absent(value):
        return fit(NOT_AVAILABLE, width)
    return fit(f"{value:.1f}", width)


def format_field(value: Optional[float], kind: FieldKind, units: UnitPreference,
                 degree_format: DegreeFormat = DegreeFormat.DECIMAL,
                 width: Optional[int] = None) -> str:
    """Format a single value of the given kind to a fixed width."""
    optional_kinds = (FieldKind.DISTANCE_ERROR, FieldKind.SPEED_ERROR,
                      FieldKind.TRACK_ERROR, FieldKind.TIME_OFFSET)
    if width is None:
        width = OPTIONAL_VALUE_WIDTH if kind in optional_kinds else VALUE_WIDTH

    if kind is FieldKind.LATITUDE:
        return format_latitude(value, degree_format, width)
    elif kind is FieldKind.LONGITUDE:
        return format_longitude(value, degree_format, width)
    elif kind is FieldKind.ALTITUDE:
        return format_altitude(value, units, width)
    elif kind is FieldKind.SPEED:
        return format_speed(value, units, width)
    elif kind is FieldKind.CLIMB:
        return format_climb(value, units, width)
    elif kind is FieldKind.DISTANCE_ERROR:
        return format_distance_error(value, units, width)
    elif kind is FieldKind.SPEED_ERROR:
        return format_speed_error(value, units, width)
    elif kind is FieldKind.TRACK_ERROR:
        return format_track_error(value, width)
    elif kind is FieldKind.TIME:
        return format_time(value, width)
    elif kind is FieldKind.TIME_OFFSET:
        return format_time_offset(value, width=width)
    elif kind is FieldKind.DEGREES:
        return format_degrees(value, width)
    else:
        return format_number(value, width)


def maidenhead(latitude: float, longitude: float) -> str:
    """Format a position as a 6-character Maidenhead locator"""
    # Shift both axes to positive values
    adj_lon = min(max(longitude + 180, 0.0), 359.999999)
    adj_lat = min(max(latitude + 90, 0.0), 179.999999)

    # Field
    field_lon = chr(ord('A') + int(adj_lon / 20))
    field_lat = chr(ord('A') + int(adj_lat / 10))

    # Square
    square_lon = str(int((adj_lon % 20) / 2))
    square_lat = str(int(adj_lat % 10))

    # Subsquare
    subsq_lon = chr(ord('a') + int((adj_lon % 2) * 12))
    subsq_lat = chr(ord('a') + int((adj_lat % 1) * 24))

    return f"{field_lon}{field_lat}{square_lon}{square_lat}{subsq_lon}{subsq_lat}"


def format_locator(latitude: Optional[float], longitude: Optional[float],
                   width: int = OPTIONAL_VALUE_WIDTH) -> str:
    if is_absent(latitude) or is_absent(longitude):
        return fit(NOT_AVAILABLE, width)
    return fit(maidenhead(latitude, longitude), width)
