"""
gpsdash - live terminal dashboard for gpsd

Renders streaming position fixes, the satellite skyview and the raw gpsd
report log in panels sized to the terminal, re-planning the layout when
the terminal is resized.
"""

__version__ = "1.0.0"

from .exceptions import (DashboardError, ConfigurationError, UnusableTerminalError, SourceError,
                         SourceConnectError, SourceTimeoutError, SourceGoneError, SourceReadError)
from .telemetry import FixMode, DisplayMode, SatelliteInfo, TelemetrySnapshot, AttitudeSnapshot
from .units import UnitSystem, UnitPreference, detect_unit_system
from .formatting import DegreeFormat, FieldKind, format_field, deg_to_str, maidenhead
from .layout import LayoutGeometry, plan, minimum_rows
from .satellites import select_satellites
from .fix_state import FixState, FixStateTracker
from .panels import PanelRenderer
from .gpsd_client import TelemetrySource, GpsdClient
from .config import Config, DashboardConfig, resolve_config, parse_source_spec
from .dashboard import DashboardLoop, DashboardState, DashboardResult, ExitReason, LoopState

__all__ = [
    "DashboardError",
    "ConfigurationError",
    "UnusableTerminalError",
    "SourceError",
    "SourceConnectError",
    "SourceTimeoutError",
    "SourceGoneError",
    "SourceReadError",
    "FixMode",
    "DisplayMode",
    "SatelliteInfo",
    "TelemetrySnapshot",
    "AttitudeSnapshot",
    "UnitSystem",
    "UnitPreference",
    "detect_unit_system",
    "DegreeFormat",
    "FieldKind",
    "format_field",
    "deg_to_str",
    "maidenhead",
    "LayoutGeometry",
    "plan",
    "minimum_rows",
    "select_satellites",
    "FixState",
    "FixStateTracker",
    "PanelRenderer",
    "TelemetrySource",
    "GpsdClient",
    "Config",
    "DashboardConfig",
    "resolve_config",
    "parse_source_spec",
    "DashboardLoop",
    "DashboardState",
    "DashboardResult",
    "ExitReason",
    "LoopState",
]
