"""Data memory bus: RAM, display memory and memory-mapped I/O."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tamaemu import hw
from tamaemu.state import MEMORY_SIZE, Interrupt, InterruptSlot, PinState, default_interrupts

if TYPE_CHECKING:
    from tamaemu.hal import Hal

MEM_RAM_ADDR = 0x000
MEM_RAM_SIZE = 0x280
MEM_DISPLAY1_ADDR = 0xE00
MEM_DISPLAY1_SIZE = 0x050
MEM_DISPLAY2_ADDR = 0xE80
MEM_DISPLAY2_SIZE = 0x050
MEM_IO_ADDR = 0xF00
MEM_IO_SIZE = 0x080

REG_CLK_INT_FACTOR_FLAGS = 0xF00
REG_SW_INT_FACTOR_FLAGS = 0xF01
REG_PROG_INT_FACTOR_FLAGS = 0xF02
REG_SERIAL_INT_FACTOR_FLAGS = 0xF03
REG_K00_K03_INT_FACTOR_FLAGS = 0xF04
REG_K10_K13_INT_FACTOR_FLAGS = 0xF05
REG_CLOCK_INT_MASKS = 0xF10
REG_SW_INT_MASKS = 0xF11
REG_PROG_INT_MASKS = 0xF12
REG_SERIAL_INT_MASKS = 0xF13
REG_K00_K03_INT_MASKS = 0xF14
REG_K10_K13_INT_MASKS = 0xF15
REG_PROG_TIMER_DATA_L = 0xF24
REG_PROG_TIMER_DATA_H = 0xF25
REG_PROG_TIMER_RELOAD_DATA_L = 0xF26
REG_PROG_TIMER_RELOAD_DATA_H = 0xF27
REG_K00_K03_INPUT_PORT = 0xF40
REG_K10_K13_INPUT_PORT = 0xF42
REG_K40_K43_BZ_OUTPUT_PORT = 0xF54
REG_CPU_OSC3_CTRL = 0xF70
REG_LCD_CTRL = 0xF71
REG_LCD_CONTRAST = 0xF72
REG_SVD_CTRL = 0xF73
REG_BUZZER_CTRL1 = 0xF74
REG_BUZZER_CTRL2 = 0xF75
REG_CLK_WD_TIMER_CTRL = 0xF76
REG_SW_TIMER_CTRL = 0xF77
REG_PROG_TIMER_CTRL = 0xF78
REG_PROG_TIMER_CLK_SEL = 0xF79

_FACTOR_REGS = {
    REG_CLK_INT_FACTOR_FLAGS: InterruptSlot.CLOCK_TIMER,
    REG_SW_INT_FACTOR_FLAGS: InterruptSlot.STOPWATCH,
    REG_PROG_INT_FACTOR_FLAGS: InterruptSlot.PROG_TIMER,
    REG_SERIAL_INT_FACTOR_FLAGS: InterruptSlot.SERIAL,
    REG_K00_K03_INT_FACTOR_FLAGS: InterruptSlot.K00_K03,
    REG_K10_K13_INT_FACTOR_FLAGS: InterruptSlot.K10_K13,
}

_MASK_READS = {
    REG_CLOCK_INT_MASKS: (InterruptSlot.CLOCK_TIMER, 0xF),
    REG_SW_INT_MASKS: (InterruptSlot.STOPWATCH, 0x3),
    REG_PROG_INT_MASKS: (InterruptSlot.PROG_TIMER, 0x1),
    REG_SERIAL_INT_MASKS: (InterruptSlot.SERIAL, 0x1),
    REG_K00_K03_INT_MASKS: (InterruptSlot.K00_K03, 0xF),
    REG_K10_K13_INT_MASKS: (InterruptSlot.K10_K13, 0xF),
}

# Writes land in these slots; the serial and K00-K03 mask registers are
# wired as the emulated firmware expects, not as their names suggest.
_MASK_WRITES = {
    REG_CLOCK_INT_MASKS: InterruptSlot.CLOCK_TIMER,
    REG_SW_INT_MASKS: InterruptSlot.STOPWATCH,
    REG_PROG_INT_MASKS: InterruptSlot.PROG_TIMER,
    REG_SERIAL_INT_MASKS: InterruptSlot.K10_K13,
    REG_K00_K03_INT_MASKS: InterruptSlot.SERIAL,
    REG_K10_K13_INT_MASKS: InterruptSlot.K10_K13,
}

_FIXED_READS = {
    REG_K40_K43_BZ_OUTPUT_PORT: 0xF,
    REG_CPU_OSC3_CTRL: 0x0,
    REG_LCD_CTRL: 0x8,
    REG_SVD_CTRL: 0x0,
    REG_BUZZER_CTRL1: 0x0,
    REG_BUZZER_CTRL2: 0x0,
}

_INPUT_PORT_NUM = 2


def _within(address: int, start: int, size: int) -> bool:
    return start <= address < start + size


class Bus:
    """Nibble-addressed data memory with its peripherals."""

    def __init__(self, hal: Hal) -> None:
        self.hal = hal
        self.ram = bytearray(MEMORY_SIZE)
        self.interrupts: list[Interrupt] = default_interrupts()
        self.inputs = [0] * _INPUT_PORT_NUM
        self.tick_counter = 0
        self.prog_timer_timestamp = 0
        self.prog_timer_enabled = False
        self.prog_timer_data = 0
        self.prog_timer_rld = 0

    def reset(self) -> None:
        """Clear the RAM."""
        self.ram[:] = bytes(MEMORY_SIZE)

    def read(self, address: int) -> int:
        """Read one nibble; unmapped and display addresses read as 0."""
        n = address & 0xFFFF
        if n < MEM_RAM_SIZE:
            byte = self.ram[n >> 1]
            return byte & 0xF if n & 1 else byte >> 4
        if _within(n, MEM_IO_ADDR, MEM_IO_SIZE):
            return self._read_io(n)
        return 0

    def write(self, address: int, value: int) -> None:
        """Write one nibble; writes to unmapped addresses are ignored."""
        n = address & 0xFFFF
        v = value & 0xF
        if n < MEM_RAM_SIZE:
            index = n >> 1
            if n & 1:
                self.ram[index] = (self.ram[index] & 0xF0) | v
            else:
                self.ram[index] = (self.ram[index] & 0x0F) | (v << 4)
        elif _within(n, MEM_DISPLAY1_ADDR, MEM_DISPLAY1_SIZE) or _within(
            n, MEM_DISPLAY2_ADDR, MEM_DISPLAY2_SIZE
        ):
            self._write_lcd(n, v)
        elif _within(n, MEM_IO_ADDR, MEM_IO_SIZE):
            self._write_io(n, v)

    def generate_interrupt(self, slot: InterruptSlot, bit: int) -> None:
        """Raise a factor flag and trigger the interrupt unless it is masked."""
        irq = self.interrupts[slot]
        irq.factor_flag_reg |= 1 << bit
        if irq.mask_reg & (1 << bit):
            irq.triggered = True

    def set_input_pin(self, pin: int, state: int) -> None:
        """Set an input pin level; a falling level raises its interrupt."""
        port = (pin >> 2) & 0x1
        bit = pin & 0x3
        self.inputs[port] = (self.inputs[port] & ~(1 << bit) & 0xF) | (int(state) << bit)
        if state == PinState.LOW:
            slot = InterruptSlot.K10_K13 if port else InterruptSlot.K00_K03
            self.generate_interrupt(slot, bit)

    def _write_lcd(self, n: int, v: int) -> None:
        seg = (n & 0x7F) >> 1
        com0 = ((n & 0x80) >> 7) * 8 + (n & 0x1) * 4
        for i in range(4):
            hw.set_lcd_pin(self.hal, seg, com0 + i, (v >> i) & 0x1)

    def _read_io(self, n: int) -> int:
        if n in _FACTOR_REGS:
            irq = self.interrupts[_FACTOR_REGS[n]]
            value = irq.factor_flag_reg
            irq.factor_flag_reg = 0
            return value
        if n in _MASK_READS:
            slot, mask = _MASK_READS[n]
            return self.interrupts[slot].mask_reg & mask
        if n in _FIXED_READS:
            return _FIXED_READS[n]
        if n == REG_PROG_TIMER_DATA_L:
            return self.prog_timer_data & 0xF
        if n == REG_PROG_TIMER_DATA_H:
            return (self.prog_timer_data >> 4) & 0xF
        if n == REG_PROG_TIMER_RELOAD_DATA_L:
            return self.prog_timer_rld & 0xF
        if n == REG_PROG_TIMER_RELOAD_DATA_H:
            return (self.prog_timer_rld >> 4) & 0xF
        if n == REG_K00_K03_INPUT_PORT:
            return self.inputs[0]
        if n == REG_K10_K13_INPUT_PORT:
            return self.inputs[1]
        if n == REG_PROG_TIMER_CTRL:
            return int(bool(self.prog_timer_enabled))
        return 0

    def _write_io(self, n: int, v: int) -> None:
        if n in _MASK_WRITES:
            self.interrupts[_MASK_WRITES[n]].mask_reg = v
        elif n == REG_PROG_TIMER_RELOAD_DATA_L:
            self.prog_timer_rld = v | (self.prog_timer_rld & 0xF0)
        elif n == REG_PROG_TIMER_RELOAD_DATA_H:
            self.prog_timer_rld = (self.prog_timer_rld & 0xF) | ((v << 4) & 0xF0)
        elif n == REG_K40_K43_BZ_OUTPUT_PORT:
            hw.enable_buzzer(self.hal, not (v & 0x8))
        elif n == REG_BUZZER_CTRL1:
            hw.set_buzzer_freq(self.hal, v & 0x7)
        elif n == REG_PROG_TIMER_CTRL:
            if v & 0x2:
                self.prog_timer_data = self.prog_timer_rld
            if v & 0x1 and not self.prog_timer_enabled:
                self.prog_timer_timestamp = self.tick_counter
            self.prog_timer_enabled = bool(v & 0x1)