"""CPU state types: flags, interrupt slots, input pins and snapshots."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

# RAM is 640 nibbles, stored two per byte.
MEMORY_SIZE = 0x140


class Flag(enum.IntFlag):
    """Bits of the flags register."""

    C = 0x1
    Z = 0x2
    D = 0x4
    I = 0x8  # noqa: E741


class InterruptSlot(enum.IntEnum):
    """Interrupt sources, in priority order."""

    PROG_TIMER = 0
    SERIAL = 1
    K10_K13 = 2
    K00_K03 = 3
    STOPWATCH = 4
    CLOCK_TIMER = 5


class Pin(enum.IntEnum):
    """Input port pins."""

    K00 = 0x0
    K01 = 0x1
    K02 = 0x2
    K03 = 0x3
    K10 = 0x4
    K11 = 0x5
    K12 = 0x6
    K13 = 0x7


class PinState(enum.IntEnum):
    """Logic level on an input pin."""

    LOW = 0
    HIGH = 1


@dataclass
class Interrupt:
    """One interrupt source with its factor flags, mask and vector."""

    factor_flag_reg: int = 0
    mask_reg: int = 0
    triggered: bool = False
    vector: int = 0


_VECTORS = {
    InterruptSlot.PROG_TIMER: 0x0C,
    InterruptSlot.SERIAL: 0x0A,
    InterruptSlot.K10_K13: 0x08,
    InterruptSlot.K00_K03: 0x06,
    InterruptSlot.STOPWATCH: 0x04,
    InterruptSlot.CLOCK_TIMER: 0x02,
}


def default_interrupts() -> list[Interrupt]:
    """Return fresh interrupt records for every slot, in priority order."""
    return [Interrupt(vector=_VECTORS[slot]) for slot in InterruptSlot]


@dataclass
class Registers:
    """Processor registers that instructions operate on."""

    pc: int = 0
    next_pc: int = 0
    x: int = 0
    y: int = 0
    a: int = 0
    b: int = 0
    np: int = 0
    sp: int = 0
    flags: int = 0
    call_depth: int = 0


@dataclass
class CpuState:
    """A snapshot of the whole emulated processor."""

    pc: int = 0
    x: int = 0
    y: int = 0
    a: int = 0
    b: int = 0
    np: int = 0
    sp: int = 0
    flags: int = 0
    tick_counter: int = 0
    clk_timer_timestamp: int = 0
    prog_timer_timestamp: int = 0
    prog_timer_enabled: bool = False
    prog_timer_data: int = 0
    prog_timer_rld: int = 0
    call_depth: int = 0
    memory: bytes = bytes(MEMORY_SIZE)
    interrupts: list[Interrupt] = field(default_factory=default_interrupts)