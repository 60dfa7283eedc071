"""Top-level emulator: ties the CPU, the peripherals and the host loop together."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING

from tamaemu import hw
from tamaemu.cpu import Cpu
from tamaemu.instructions import UnknownOpcode

if TYPE_CHECKING:
    from tamaemu.hal import Hal
    from tamaemu.rom import Rom

DEFAULT_FRAMERATE = 3

_U32 = 0xFFFFFFFF


class ExecMode(enum.IntEnum):
    """Execution modes of the emulator."""

    PAUSE = 0
    RUN = 1
    STEP = 2
    NEXT = 3
    TO_CALL = 4
    TO_RET = 5


class Tamalib:
    """The emulated device driven one step at a time by the host."""

    def __init__(self, rom: Rom, hal: Hal, freq: int) -> None:
        self.hal = hal
        self.cpu = Cpu(rom, hal, freq)
        hw.init_inputs(self.cpu)
        self.ts_freq = freq
        self.framerate = DEFAULT_FRAMERATE
        self.exec_mode = ExecMode.RUN
        self.step_depth = 0
        self.screen_ts = 0

    def set_framerate(self, framerate: int) -> None:
        """Set the screen refresh rate in frames per second."""
        if not 1 <= framerate <= 0xFF:
            raise ValueError(f"framerate {framerate} out of range 1..255")
        self.framerate = framerate

    def set_button(self, button: hw.Button, state: hw.ButtonState) -> None:
        """Press or release a button."""
        hw.set_button(self.cpu, button, state)

    def reset(self) -> None:
        """Reset the processor."""
        self.cpu.reset()

    def mainloop_step(self) -> bool:
        """Run one iteration of the main loop.

        Returns False when the host handler asked to stop, True otherwise.
        """
        if self.hal.handler():
            return False
        if self.exec_mode == ExecMode.RUN:
            try:
                self.cpu.step()
            except UnknownOpcode:
                self.exec_mode = ExecMode.PAUSE
                self.step_depth = self.cpu.depth()
        ts = self.hal.get_timestamp()
        if (ts - self.screen_ts) & _U32 >= self.ts_freq // self.framerate:
            self.screen_ts = ts
            self.hal.update_screen()
        return True