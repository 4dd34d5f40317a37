"""
In-memory terminal surface used by the tests.

Mirrors the panel/screen operations of gpsdash.screen so rendering and the
control loop can be exercised without curses or a real terminal.
"""

from typing import List, Optional, Sequence, Tuple


class FakePanel:
    """Character grid standing in for a curses window."""

    def __init__(self, height: int, width: int, y: int = 0, x: int = 0):
        self.height = height
        self.width = width
        self.y = y
        self.x = x
        self.grid = [[' '] * width for _ in range(height)]
        self.bordered = False
        self.refresh_count = 0

    def write(self, row: int, col: int, text: str, width: Optional[int] = None) -> None:
        if width is not None:
            text = text[:width].ljust(width)
        if not 0 <= row < self.height:
            return
        for offset, char in enumerate(text):
            if 0 <= col + offset < self.width:
                self.grid[row][col + offset] = char

    def draw_border(self) -> None:
        self.bordered = True

    def erase(self) -> None:
        self.grid = [[' '] * self.width for _ in range(self.height)]

    def refresh(self) -> None:
        self.refresh_count += 1

    def row_text(self, row: int) -> str:
        return ''.join(self.grid[row])

    def text_at(self, row: int, col: int, width: int) -> str:
        return self.row_text(row)[col:col + width]


class FakeLogPanel(FakePanel):
    """Scrolling log; keeps only the lines that fit."""

    def __init__(self, height: int, width: int, y: int = 0):
        super().__init__(height, width, y, 0)
        self.lines: List[str] = []

    def append_line(self, text: str) -> None:
        self.lines.append(text)
        del self.lines[:-self.height]

    def erase(self) -> None:
        super().erase()
        self.lines = []


class FakeScreen:
    """Stand-in for CursesScreen with a scripted size and key queue."""

    def __init__(self, rows: int = 24, cols: int = 80, keys: Sequence[int] = ()):
        self.rows = rows
        self.cols = cols
        self.pending_size: Optional[Tuple[int, int]] = None
        self.keys = list(keys)
        self.panels: List[FakePanel] = []
        self.messages: List[Tuple[str, float]] = []
        self.clear_count = 0
        self.restore_count = 0

    def size(self) -> Tuple[int, int]:
        return self.rows, self.cols

    def new_panel(self, height: int, width: int, y: int, x: int) -> FakePanel:
        panel = FakePanel(height, width, y, x)
        self.panels.append(panel)
        return panel

    def new_log_panel(self, height: int, width: int, y: int) -> FakeLogPanel:
        panel = FakeLogPanel(height, width, y)
        self.panels.append(panel)
        return panel

    def read_key(self) -> int:
        return self.keys.pop(0) if self.keys else -1

    def clear(self) -> None:
        self.clear_count += 1
        self.panels = []

    def refresh(self) -> None:
        pass

    def show_message(self, message: str, delay: float = 0.0) -> None:
        self.messages.append((message, delay))

    def set_size(self, rows: int, cols: int) -> None:
        """Simulate the terminal changing size; picked up by resize()."""
        self.pending_size = (rows, cols)

    def resize(self) -> Tuple[int, int]:
        if self.pending_size is not None:
            self.rows, self.cols = self.pending_size
            self.pending_size = None
        return self.size()

    def restore(self) -> None:
        self.restore_count += 1
