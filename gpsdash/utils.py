"""
Shared utilities and helper functions for the gpsdash dashboard.
"""

import functools
import logging
import math
import time
import traceback
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorSeverity(Enum):
    """How bad a recorded error is."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ComponentType(Enum):
    """Part of the dashboard an error came from."""
    SOURCE = "source"
    LAYOUT = "layout"
    RENDERER = "renderer"
    CONFIG = "config"


_LOG_LEVELS = {
    ErrorSeverity.LOW: logging.INFO,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


@dataclass
class ErrorRecord:
    """One distinct error and how often it has been seen."""
    component: ComponentType
    severity: ErrorSeverity
    message: str
    error_code: Optional[str] = None
    details: Optional[str] = None
    first_seen: float = field(default_factory=time.time)
    last_seen: float = field(default_factory=time.time)
    count: int = 1

    @property
    def key(self) -> str:
        return f"{self.component.value}:{self.error_code or self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "component": self.component.value,
            "severity": self.severity.value,
            "message": self.message,
            "error_code": self.error_code,
            "first_seen": self.first_seen,
            "last_seen": self.last_seen,
            "count": self.count,
        }


class ErrorHandler:
    """
    Central record of errors seen while the dashboard runs

    curses owns the terminal, so errors cannot simply be printed; they are
    logged and kept here. Repeats of the same component/code pair bump a
    counter on the existing record instead of adding a new one, and only
    the most recently seen max_errors records are retained.
    """

    def __init__(self, max_errors: int = 100):
        self.max_errors = max_errors
        self._records: "OrderedDict[str, ErrorRecord]" = OrderedDict()
        self.logger = logging.getLogger(__name__)

    @property
    def errors(self) -> List[ErrorRecord]:
        """Records, least recently seen first."""
        return list(self._records.values())

    def handle_error(self, component: ComponentType, severity: ErrorSeverity,
                     message: str, error_code: Optional[str] = None,
                     details: Optional[str] = None) -> ErrorRecord:
        """Record an error and log it at a level matching its severity."""
        record = ErrorRecord(component, severity, message, error_code, details)
        existing = self._records.pop(record.key, None)
        if existing is not None:
            existing.count += 1
            existing.last_seen = record.last_seen
            existing.severity = severity
            existing.message = message
            record = existing
        self._records[record.key] = record

        while len(self._records) > self.max_errors:
            self._records.popitem(last=False)

        level = _LOG_LEVELS[severity]
        self.logger.log(level, f"[{component.value}] {message}")
        if details:
            self.logger.log(level, f"[{component.value}] {details}")
        return record

    def get_critical_errors(self) -> List[ErrorRecord]:
        return [record for record in self._records.values()
                if record.severity is ErrorSeverity.CRITICAL]

    def get_error_summary(self) -> Dict[str, Any]:
        """Counts per component plus the most recent record."""
        by_component: Dict[str, int] = {}
        for record in self._records.values():
            name = record.component.value
            by_component[name] = by_component.get(name, 0) + record.count

        latest = next(reversed(self._records.values()), None)
        return {
            "total_errors": len(self._records),
            "critical_errors": len(self.get_critical_errors()),
            "by_component": by_component,
            "last_error": latest.to_dict() if latest else None,
        }

    def clear(self) -> None:
        self._records.clear()


# Process-wide error record
error_handler = ErrorHandler()


def setup_logging(log_file: Optional[str] = None, level: int = logging.INFO,
                  console: bool = False) -> None:
    """Configure the root logger.

    Console output is off unless asked for; curses owns the terminal while
    the dashboard runs. Without a log file or console, records are dropped.
    """
    handlers: List[logging.Handler] = []
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    if console:
        handlers.append(logging.StreamHandler())
    if not handlers:
        handlers.append(logging.NullHandler())

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def handle_exception(component: ComponentType, func_name: Optional[str] = None):
    """Decorator that records any exception with the error handler and re-raises it."""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                error_handler.handle_error(
                    component=component,
                    severity=ErrorSeverity.HIGH,
                    message=f"{func_name or func.__name__} failed: {e}",
                    details=traceback.format_exc()
                )
                raise
        return wrapper
    return decorator


def is_absent(value: Any) -> bool:
    """True when a telemetry value is missing (None, NaN or infinite)."""
    if value is None:
        return True
    try:
        return not math.isfinite(value)
    except TypeError:
        return True


def safe_float(value: Any, default: Optional[float] = None) -> Optional[float]:
    """Convert to a finite float, or return default."""
    if value is None:
        return default
    try:
        result = float(value)
    except (ValueError, TypeError):
        return default
    return result if math.isfinite(result) else default


def safe_int(value: Any, default: int = 0) -> int:
    """Convert to int, or return default."""
    if value is None:
        return default
    try:
        return int(value)
    except (ValueError, TypeError, OverflowError):
        return default
