"""
Terminal surface built on curses.

The dashboard only needs a handful of operations: create bordered panels,
write padded text at a row and column, append to a scrolling log, poll the
keyboard without blocking, and follow terminal resizes. This module maps
those onto curses windows.
"""

import curses
import logging
import os
import sys
import time
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

logger = logging.getLogger(__name__)


class Panel:
    """A bordered rectangular region of the screen."""

    def __init__(self, window, height: int, width: int):
        self.window = window
        self.height = height
        self.width = width

    def write(self, row: int, col: int, text: str, width: Optional[int] = None) -> None:
        """Write text at (row, col), padded or truncated to width."""
        if width is not None:
            text = text[:width].ljust(width)
        try:
            self.window.addstr(row, col, text)
        except curses.error:
            # Writing into the bottom-right cell always reports an error
            pass

    def draw_border(self) -> None:
        self.window.border(0, 0, 0, 0, 0, 0, 0, 0)

    def erase(self) -> None:
        self.window.erase()

    def refresh(self) -> None:
        self.window.refresh()


class LogPanel(Panel):
    """Unbordered scrolling panel for raw protocol lines."""

    def __init__(self, window, height: int, width: int):
        super().__init__(window, height, width)
        self.window.scrollok(True)
        self.window.setscrreg(0, height - 1)

    def append_line(self, text: str) -> None:
        text = text[:self.width * self.height]
        # A line filling whole rows already leaves the cursor on a fresh row
        if not text or len(text) % self.width:
            text += "\n"
        try:
            self.window.addstr(text)
        except curses.error:
            pass


class CursesScreen:
    """Owns the curses standard screen and hands out panels."""

    def __init__(self, stdscr):
        self.stdscr = stdscr

    def setup(self) -> None:
        """Initialize curses input settings."""
        try:
            curses.curs_set(0)
        except curses.error:
            logger.debug("Terminal cannot hide the cursor")
        curses.noecho()
        self.stdscr.nodelay(True)
        self.stdscr.keypad(True)

    def size(self) -> Tuple[int, int]:
        rows, cols = self.stdscr.getmaxyx()
        return rows, cols

    def new_panel(self, height: int, width: int, y: int, x: int) -> Panel:
        return Panel(curses.newwin(height, width, y, x), height, width)

    def new_log_panel(self, height: int, width: int, y: int) -> LogPanel:
        return LogPanel(curses.newwin(height, width, y, 0), height, width)

    def read_key(self) -> int:
        """Pending keystroke, or -1 if there is none."""
        return self.stdscr.getch()

    def clear(self) -> None:
        self.stdscr.erase()
        self.stdscr.refresh()

    def refresh(self) -> None:
        self.stdscr.refresh()

    def show_message(self, message: str, delay: float = 0.0) -> None:
        """Show a message at the top-left corner and optionally wait."""
        self.stdscr.erase()
        try:
            self.stdscr.addstr(0, 0, message)
        except curses.error:
            pass
        self.stdscr.refresh()
        if delay > 0:
            time.sleep(delay)

    def resize(self) -> Tuple[int, int]:
        """Adopt the current terminal size after a resize notification."""
        try:
            cols, rows = os.get_terminal_size(sys.__stdout__.fileno())
            curses.resizeterm(rows, cols)
        except (OSError, ValueError, curses.error) as e:
            logger.debug(f"Could not query terminal size directly: {e}")
            curses.update_lines_cols()
        return self.size()

    def restore(self) -> None:
        """Put the terminal back the way it was. Safe to call twice."""
        if curses.isendwin():
            return
        self.stdscr.keypad(False)
        curses.echo()
        curses.nocbreak()
        curses.endwin()


@contextmanager
def open_screen() -> Iterator[CursesScreen]:
    """Start curses and guarantee the terminal is restored on exit."""
    stdscr = curses.initscr()
    screen = CursesScreen(stdscr)
    try:
        curses.cbreak()
        screen.setup()
        yield screen
    finally:
        screen.restore()
