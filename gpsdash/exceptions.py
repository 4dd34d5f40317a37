"""
Exception classes for the gpsdash terminal dashboard

This module defines the exceptions raised by the layout planner, the
configuration layer and the telemetry source so the dashboard loop can
route every fatal condition through a single teardown path.
"""

from typing import Optional


class DashboardError(Exception):
    """Base exception for all dashboard errors"""
    pass


class ConfigurationError(DashboardError):
    """Raised when there are configuration validation errors"""
    pass


class UnusableTerminalError(DashboardError):
    """Raised when the terminal is smaller than the minimum layout"""

    def __init__(self, min_rows: int, rows: int, min_cols: int = 80):
        self.min_rows = min_rows
        self.rows = rows
        self.min_cols = min_cols
        super().__init__(
            f"Your screen must be at least {min_cols}x{min_rows} to run gpsdash."
        )


class SourceError(DashboardError):
    """Base exception for telemetry source failures"""
    pass


class SourceConnectError(SourceError):
    """Raised when the session to the location-data service cannot be opened"""
    pass


class SourceTimeoutError(SourceError):
    """Raised when no data arrived for the whole watchdog window"""

    def __init__(self, empty_polls: int):
        self.empty_polls = empty_polls
        super().__init__(f"GPS timeout after {empty_polls} empty polls")


class SourceGoneError(SourceError):
    """Raised when the peer closed the session"""

    def __init__(self, message: str = "GPS hung up"):
        super().__init__(message)


class SourceReadError(SourceError):
    """Raised when a transport or protocol error occurs during a read"""

    def __init__(self, message: str = "GPS read returned error", errno: Optional[int] = None):
        self.errno = errno
        super().__init__(message)
