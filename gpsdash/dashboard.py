"""
Dashboard control loop

A single-threaded loop that alternates between a bounded wait on the
telemetry source and a non-blocking keyboard check. Resize and termination
signals only set flags; the loop acts on them between iterations. Every
exit path goes through the same teardown, which restores the terminal and
closes the source session.
"""

import curses
import logging
import signal
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from .exceptions import (SourceError, SourceGoneError, SourceReadError, SourceTimeoutError,
                         UnusableTerminalError)
from .formatting import DegreeFormat
from .gpsd_client import TelemetrySource
from .layout import LayoutGeometry, plan
from .panels import PanelRenderer
from .telemetry import DisplayMode
from .units import UnitPreference
from .utils import ComponentType, ErrorSeverity, error_handler

logger = logging.getLogger(__name__)

# Seconds each readiness poll may block
POLL_TIMEOUT = 0.5

# Consecutive empty polls tolerated before the source is declared dead
MAX_EMPTY_POLLS = 240

# Seconds the "screen too small" message stays up before exiting
UNUSABLE_TERMINAL_DELAY = 5.0

TERMINATION_SIGNALS = ("SIGINT", "SIGHUP", "SIGTERM")


class LoopState(Enum):
    """States of the control loop"""
    RUNNING = "running"
    RESIZING = "resizing"
    TERMINATING = "terminating"


class ExitReason(Enum):
    """Why the loop stopped"""
    QUIT = "quit"
    SIGNAL = "signal"
    SOURCE_GONE = "source_gone"
    READ_ERROR = "read_error"
    TIMEOUT = "timeout"
    UNUSABLE_TERMINAL = "unusable_terminal"


@dataclass
class DashboardState:
    """Mutable display state owned by the loop"""
    units: UnitPreference
    degree_format: DegreeFormat = DegreeFormat.DECIMAL
    magnetic: bool = False
    silent: bool = False
    mode: DisplayMode = DisplayMode.POSITION
    geometry: Optional[LayoutGeometry] = None


class PendingEvents:
    """Flags set from signal handlers and consumed by the loop"""

    def __init__(self):
        self.resize = False
        self.terminate_signal: Optional[int] = None

    def on_resize(self, signum, frame) -> None:
        self.resize = True

    def on_terminate(self, signum, frame) -> None:
        self.terminate_signal = signum


@dataclass
class DashboardResult:
    """Outcome of a dashboard run"""
    reason: ExitReason
    error: Optional[Exception] = None
    signal: Optional[int] = None

    @property
    def exit_status(self) -> int:
        return 0 if self.reason in (ExitReason.QUIT, ExitReason.SIGNAL) else 1

    @property
    def message(self) -> Optional[str]:
        if self.reason is ExitReason.SOURCE_GONE:
            return "GPS hung up."
        if self.reason is ExitReason.READ_ERROR:
            return "GPS read returned error"
        if self.reason is ExitReason.TIMEOUT:
            return "GPS timeout"
        if self.reason is ExitReason.SIGNAL:
            return f"caught signal {int(self.signal)}"
        if self.reason is ExitReason.UNUSABLE_TERMINAL:
            return str(self.error)
        return None


class DashboardLoop:
    """
    Drives the dashboard from start-up to teardown

    Args:
        source: Connected telemetry source with streaming enabled
        screen: Terminal surface (CursesScreen or a compatible object)
        state: Initial display state
        renderer: Panel renderer; built from state when omitted
        clock: Time source used for status timing
    """

    def __init__(self, source: TelemetrySource, screen, state: DashboardState,
                 renderer: Optional[PanelRenderer] = None,
                 clock: Callable[[], float] = time.time):
        self.source = source
        self.screen = screen
        self.state = state
        self.clock = clock
        self.renderer = renderer or PanelRenderer(screen, state.units, state.degree_format,
                                                  state.magnetic)
        self.events = PendingEvents()
        self.loop_state = LoopState.RUNNING
        self.state_history: List[LoopState] = [LoopState.RUNNING]
        self.empty_polls = 0
        self.result: Optional[DashboardResult] = None
        self._saved_handlers: Dict[int, object] = {}

    def _transition(self, new_state: LoopState) -> None:
        if new_state is self.loop_state:
            return
        logger.debug(f"Loop state {self.loop_state.name} -> {new_state.name}")
        self.loop_state = new_state
        self.state_history.append(new_state)

    def _terminate(self, result: DashboardResult) -> None:
        self.result = result
        self._transition(LoopState.TERMINATING)

    def install_signal_handlers(self) -> None:
        """Route termination and resize signals into the pending-event flags."""
        for name in TERMINATION_SIGNALS:
            signum = getattr(signal, name, None)
            if signum is not None:
                self._saved_handlers[signum] = signal.signal(signum, self.events.on_terminate)
        signum = getattr(signal, "SIGWINCH", None)
        if signum is not None:
            self._saved_handlers[signum] = signal.signal(signum, self.events.on_resize)

    def restore_signal_handlers(self) -> None:
        for signum, handler in self._saved_handlers.items():
            signal.signal(signum, handler)
        self._saved_handlers.clear()

    def start(self) -> None:
        """Plan the first layout and build the panels."""
        rows, cols = self.screen.size()
        self._apply_layout(rows, cols)

    def _apply_layout(self, rows: int, cols: int) -> None:
        try:
            geometry = plan(rows, cols, self.state.mode)
        except UnusableTerminalError as e:
            self.screen.show_message(str(e), UNUSABLE_TERMINAL_DELAY)
            raise
        self.state.geometry = geometry
        self.renderer.build(geometry)

    def resize(self) -> None:
        """Tear down the panels and rebuild them for the new terminal size."""
        self._transition(LoopState.RESIZING)
        self.events.resize = False
        self.renderer.teardown()
        rows, cols = self.screen.resize()
        logger.info(f"Terminal resized to {cols}x{rows}")
        self._apply_layout(rows, cols)
        self._transition(LoopState.RUNNING)

    def step(self) -> None:
        """
        Run one loop iteration

        Raises:
            UnusableTerminalError: If a resize left too little room
            SourceTimeoutError: After too many consecutive empty polls
            SourceGoneError: If the source closed the session
            SourceReadError: On a failed read
        """
        if self.events.terminate_signal is not None:
            self._terminate(DashboardResult(ExitReason.SIGNAL,
                                            signal=self.events.terminate_signal))
            return
        if self.events.resize:
            self.resize()

        if self.source.waiting(POLL_TIMEOUT):
            self.empty_polls = 0
            snapshot = self.source.read()
            self.renderer.render(snapshot, silent=self.state.silent, now=self.clock())
        else:
            self.empty_polls += 1
            if self.empty_polls > MAX_EMPTY_POLLS:
                raise SourceTimeoutError(self.empty_polls)

        self.handle_key(self.screen.read_key())

    def handle_key(self, key: int) -> None:
        if key == ord('q'):
            self._terminate(DashboardResult(ExitReason.QUIT))
        elif key == ord('s'):
            self.state.silent = not self.state.silent
            logger.debug(f"Log silence {'on' if self.state.silent else 'off'}")
        elif key == ord('c'):
            self.renderer.clear_log()
        elif key == curses.KEY_RESIZE:
            self.events.resize = True

    def run(self, install_signals: bool = True) -> DashboardResult:
        """Run until quit, a signal or a fatal error, then tear down."""
        if install_signals:
            self.install_signal_handlers()
        try:
            self.start()
            while self.loop_state is not LoopState.TERMINATING:
                self.step()
        except UnusableTerminalError as e:
            self._fail(ExitReason.UNUSABLE_TERMINAL, e)
        except SourceTimeoutError as e:
            self._fail(ExitReason.TIMEOUT, e)
        except SourceGoneError as e:
            self._fail(ExitReason.SOURCE_GONE, e)
        except SourceReadError as e:
            reason = ExitReason.READ_ERROR if e.errno is not None else ExitReason.SOURCE_GONE
            self._fail(reason, e)
        except SourceError as e:
            self._fail(ExitReason.READ_ERROR, e)
        except KeyboardInterrupt:
            self._terminate(DashboardResult(ExitReason.SIGNAL, signal=signal.SIGINT))
        finally:
            self.shutdown()

        logger.info(f"Dashboard stopped: {self.result.reason.value}")
        return self.result

    def _fail(self, reason: ExitReason, error: Exception) -> None:
        component = (ComponentType.LAYOUT if reason is ExitReason.UNUSABLE_TERMINAL
                     else ComponentType.SOURCE)
        error_handler.handle_error(
            component,
            ErrorSeverity.CRITICAL,
            str(error),
            error_code=reason.name,
            details=f"empty_polls={self.empty_polls}"
        )
        self._terminate(DashboardResult(reason, error=error))

    def shutdown(self) -> None:
        """Restore the terminal and close the session. Safe to call twice."""
        self._transition(LoopState.TERMINATING)
        try:
            self.screen.restore()
        finally:
            self.source.close()
            self.restore_signal_handlers()

        summary = error_handler.get_error_summary()
        if summary["total_errors"]:
            logger.info(f"Errors this session: {summary['by_component']}, "
                        f"last: {summary['last_error']['message']}")
