"""Hardware abstraction layer between the emulator core and its host."""

from __future__ import annotations

import enum
import logging
import time

from tamaemu.hw import ICON_NUM, LCD_HEIGHT, LCD_WIDTH

_TS_MASK = 0xFFFFFFFF
_TS_HALF = 0x80000000

_logger = logging.getLogger(__name__)


class LogLevel(enum.IntFlag):
    """Categories of log messages."""

    ERROR = 0x1
    INFO = 0x2
    MEMORY = 0x4
    CPU = 0x8


_LOGGING_LEVELS = {
    LogLevel.ERROR: logging.ERROR,
    LogLevel.INFO: logging.INFO,
    LogLevel.MEMORY: logging.DEBUG,
    LogLevel.CPU: logging.DEBUG,
}


class Hal:
    """Default host hooks.

    Pixels, icons and sound settings are kept in buffers so that a
    subclass can render them in ``update_screen``.  Timestamps are
    unsigned 32-bit values counted at ``ts_freq`` ticks per second and
    wrap around.
    """

    def __init__(self, ts_freq: int = 1_000_000) -> None:
        self.ts_freq = ts_freq
        self.matrix = [[False] * LCD_WIDTH for _ in range(LCD_HEIGHT)]
        self.icons = [False] * ICON_NUM
        self.frequency = 0
        self.playing = False
        self.halted = False
        self.frames = 0

    def halt(self) -> None:
        """Called when the CPU executes HALT."""
        self.halted = True

    def log(self, level: LogLevel, message: str) -> None:
        """Emit a log message."""
        _logger.log(_LOGGING_LEVELS.get(LogLevel(level), logging.DEBUG), message)

    def sleep_until(self, ts: int) -> None:
        """Block until the given timestamp, unless it is already past."""
        remaining = (ts - self.get_timestamp()) & _TS_MASK
        if remaining < _TS_HALF:
            time.sleep(remaining / self.ts_freq)

    def get_timestamp(self) -> int:
        """Return the current wrapping 32-bit timestamp."""
        return (time.monotonic_ns() * self.ts_freq // 1_000_000_000) & _TS_MASK

    def update_screen(self) -> None:
        """Render the buffered screen; the default only counts frames."""
        self.frames += 1

    def set_lcd_matrix(self, x: int, y: int, val: bool) -> None:
        """Set one pixel of the dot matrix."""
        self.matrix[y][x] = bool(val)

    def set_lcd_icon(self, icon: int, val: bool) -> None:
        """Set one of the menu icons."""
        self.icons[icon] = bool(val)

    def set_frequency(self, freq: int) -> None:
        """Change the buzzer output frequency in Hz."""
        self.frequency = freq

    def play_frequency(self, enabled: bool) -> None:
        """Turn the buzzer on or off."""
        self.playing = bool(enabled)

    def handler(self) -> bool:
        """Handle host events; return True to stop the main loop."""
        return False