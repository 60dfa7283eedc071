"""The processor core: fetch, decode, execute, timers and interrupts."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING

from tamaemu.instructions import Instruction, decode
from tamaemu.memory import Bus
from tamaemu.state import MEMORY_SIZE, CpuState, Flag, InterruptSlot, Registers

if TYPE_CHECKING:
    from tamaemu.hal import Hal
    from tamaemu.rom import Rom

TICK_FREQUENCY = 32768
TIMER_1HZ_PERIOD = 32768
TIMER_256HZ_PERIOD = 128

_U32 = 0xFFFFFFFF
_INTERRUPT_CYCLES = 12


def _to_pc(bank: int, page: int, step: int) -> int:
    return (step & 0xFF) | ((page & 0xF) << 8) | ((bank & 0x1) << 12)


def _to_np(bank: int, page: int) -> int:
    return (page & 0xF) | ((bank & 0x1) << 4)


class Cpu:
    """A 4-bit processor running a program ROM against a host HAL.

    ``speed_ratio`` of 0 runs as fast as possible; a positive value paces
    execution to that multiple of the real clock.
    """

    speed_ratio = 0

    def __init__(self, rom: Rom, hal: Hal, freq: int) -> None:
        self.rom = rom
        self.hal = hal
        self.ts_freq = freq
        self.regs = Registers()
        self.bus = Bus(hal)
        self.clk_timer_timestamp = 0
        self.ref_ts = 0
        self._previous_cycles = 0
        self.reset()

    def reset(self) -> None:
        """Reset the registers, clear RAM and resynchronise the clock."""
        regs = self.regs
        regs.pc = _to_pc(0, 1, 0x00)
        regs.np = _to_np(0, 1)
        regs.a = 0
        regs.b = 0
        regs.x = 0
        regs.y = 0
        regs.sp = 0
        regs.flags = 0
        self.bus.reset()
        self.sync_ref_timestamp()

    def sync_ref_timestamp(self) -> None:
        """Take the host's current time as the pacing reference."""
        self.ref_ts = self.hal.get_timestamp()

    def depth(self) -> int:
        """Return the current call depth."""
        return self.regs.call_depth

    def set_input_pin(self, pin: int, state: int) -> None:
        """Set the level of an input pin."""
        self.bus.set_input_pin(pin, state)

    def get_state(self) -> CpuState:
        """Return a snapshot of the processor."""
        regs = self.regs
        bus = self.bus
        return CpuState(
            pc=regs.pc,
            x=regs.x,
            y=regs.y,
            a=regs.a,
            b=regs.b,
            np=regs.np,
            sp=regs.sp,
            flags=regs.flags,
            tick_counter=bus.tick_counter,
            clk_timer_timestamp=self.clk_timer_timestamp,
            prog_timer_timestamp=bus.prog_timer_timestamp,
            prog_timer_enabled=bus.prog_timer_enabled,
            prog_timer_data=bus.prog_timer_data,
            prog_timer_rld=bus.prog_timer_rld,
            call_depth=regs.call_depth,
            memory=bytes(bus.ram),
            interrupts=[dataclasses.replace(irq) for irq in bus.interrupts],
        )

    def set_state(self, state: CpuState) -> None:
        """Restore the processor from a snapshot."""
        if len(state.memory) != MEMORY_SIZE:
            raise ValueError(
                f"memory snapshot is {len(state.memory)} bytes, expected {MEMORY_SIZE}"
            )
        if len(state.interrupts) != len(InterruptSlot):
            raise ValueError(
                f"snapshot holds {len(state.interrupts)} interrupts, "
                f"expected {len(InterruptSlot)}"
            )
        regs = self.regs
        bus = self.bus
        regs.pc = state.pc
        regs.x = state.x
        regs.y = state.y
        regs.a = state.a
        regs.b = state.b
        regs.np = state.np
        regs.sp = state.sp
        regs.flags = state.flags
        regs.call_depth = state.call_depth
        bus.tick_counter = state.tick_counter
        self.clk_timer_timestamp = state.clk_timer_timestamp
        bus.prog_timer_timestamp = state.prog_timer_timestamp
        bus.prog_timer_enabled = bool(state.prog_timer_enabled)
        bus.prog_timer_data = state.prog_timer_data
        bus.prog_timer_rld = state.prog_timer_rld
        bus.ram[:] = state.memory
        bus.interrupts = [dataclasses.replace(irq) for irq in state.interrupts]

    def step(self) -> Instruction:
        """Execute one instruction and return it.

        Raises UnknownOpcode if the opcode at the program counter is not
        part of the instruction set; the processor state is then unchanged.
        """
        regs = self.regs
        op = self.rom.opcode(regs.pc)
        instruction = decode(op)

        regs.next_pc = (regs.pc + 1) & 0x1FFF
        # Pacing for the previous instruction happens here, before execution.
        self.ref_ts = self._wait_for_cycles(self.ref_ts, self._previous_cycles)

        instruction.execute(regs, self.bus, op)

        regs.pc = regs.next_pc
        self._previous_cycles = instruction.cycles
        is_pset = instruction.name == "PSET"
        if not is_pset:
            regs.np = (regs.pc >> 8) & 0x1F

        self._run_timers()

        # Interrupts are held back right after PSET.
        if regs.flags & Flag.I and not is_pset:
            self._process_interrupts()
        return instruction

    def _wait_for_cycles(self, since: int, cycles: int) -> int:
        bus = self.bus
        bus.tick_counter = (bus.tick_counter + cycles) & _U32
        if not self.speed_ratio:
            return self.hal.get_timestamp()
        deadline = (
            since + (cycles * self.ts_freq) // (TICK_FREQUENCY * self.speed_ratio)
        ) & _U32
        self.hal.sleep_until(deadline)
        return deadline

    def _run_timers(self) -> None:
        bus = self.bus
        if (bus.tick_counter - self.clk_timer_timestamp) & _U32 >= TIMER_1HZ_PERIOD:
            while (bus.tick_counter - self.clk_timer_timestamp) & _U32 >= TIMER_1HZ_PERIOD:
                self.clk_timer_timestamp = (self.clk_timer_timestamp + TIMER_1HZ_PERIOD) & _U32
            bus.generate_interrupt(InterruptSlot.CLOCK_TIMER, 3)

        if bus.prog_timer_enabled:
            while (bus.tick_counter - bus.prog_timer_timestamp) & _U32 >= TIMER_256HZ_PERIOD:
                bus.prog_timer_timestamp = (
                    bus.prog_timer_timestamp + TIMER_256HZ_PERIOD
                ) & _U32
                bus.prog_timer_data = (bus.prog_timer_data - 1) & 0xFF
                if bus.prog_timer_data == 0:
                    bus.prog_timer_data = bus.prog_timer_rld
                    bus.generate_interrupt(InterruptSlot.PROG_TIMER, 0)

    def _process_interrupts(self) -> None:
        regs = self.regs
        bus = self.bus
        for irq in bus.interrupts:
            if not irq.triggered:
                continue
            bus.write(regs.sp - 1, (regs.pc >> 8) & 0xF)
            bus.write(regs.sp - 2, (regs.pc >> 4) & 0xF)
            bus.write(regs.sp - 3, regs.pc & 0xF)
            regs.sp = (regs.sp - 3) & 0xFF
            regs.flags &= ~int(Flag.I) & 0xF
            regs.np = _to_np((regs.np >> 4) & 0x1, 1)
            regs.pc = _to_pc((regs.pc >> 12) & 0x1, 1, irq.vector)
            regs.call_depth = (regs.call_depth + 1) & _U32
            self.ref_ts = self._wait_for_cycles(self.ref_ts, _INTERRUPT_CYCLES)
            irq.triggered = False