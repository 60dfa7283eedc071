import dataclasses

import pytest

from tamaemu.cpu import TIMER_1HZ_PERIOD, Cpu
from tamaemu.hal import Hal
from tamaemu.instructions import UnknownOpcode
from tamaemu.rom import Rom, pack_opcodes
from tamaemu.state import MEMORY_SIZE, CpuState, Flag, InterruptSlot, Pin, PinState

NOP5 = 0xFFB
START = 0x100


class FakeHal(Hal):
    def __init__(self):
        super().__init__(ts_freq=1000)
        self.now = 0

    def get_timestamp(self):
        self.now += 1
        return self.now


def make_cpu(program, size=0x180):
    opcodes = [NOP5] * size
    for offset, op in enumerate(program):
        opcodes[START + offset] = op
    hal = FakeHal()
    return Cpu(Rom(pack_opcodes(opcodes)), hal, 1000), hal


def test_reset_state():
    cpu, _ = make_cpu([])
    state = cpu.get_state()
    assert state.pc == START
    assert state.np == 1
    assert state.flags == 0
    assert state.memory == bytes(MEMORY_SIZE)


def test_load_immediate_and_advance():
    cpu, _ = make_cpu([0xE05])
    instruction = cpu.step()
    assert instruction.name == "LD_R_I"
    assert cpu.regs.a == 5
    assert cpu.regs.pc == START + 1


def test_jump_uses_new_page_pointer():
    cpu, _ = make_cpu([0x020])
    cpu.step()
    assert cpu.regs.pc == START | 0x20


def test_pset_then_jump():
    cpu, _ = make_cpu([0xE42, 0x010], size=0x220)
    cpu.step()
    assert cpu.regs.np == 2
    cpu.step()
    assert cpu.regs.pc == 0x210
    assert cpu.regs.np == 2


def test_call_and_return():
    program = [0xE08, 0xFE0, 0x440]
    cpu, _ = make_cpu(program)
    cpu.rom = Rom(
        pack_opcodes([0xFDF if i == 0x140 else op for i, op in enumerate(
            [NOP5] * START + program + [NOP5] * (0x180 - START - len(program))
        )])
    )
    cpu.step()
    cpu.step()
    assert cpu.regs.sp == 0x80
    cpu.step()
    assert cpu.regs.pc == 0x140
    assert cpu.depth() == 1
    assert cpu.regs.sp == 0x7D
    cpu.step()
    assert cpu.regs.pc == START + 3
    assert cpu.depth() == 0
    assert cpu.regs.sp == 0x80


def test_unknown_opcode_raises_and_keeps_pc():
    cpu, _ = make_cpu([0xFFC])
    with pytest.raises(UnknownOpcode):
        cpu.step()
    assert cpu.regs.pc == START


def test_halt_notifies_hal():
    cpu, hal = make_cpu([0xFF8])
    cpu.step()
    assert hal.halted is True


def test_state_round_trip():
    cpu, _ = make_cpu([0xE05, 0xE13])
    cpu.step()
    cpu.step()
    snapshot = cpu.get_state()
    other, _ = make_cpu([])
    other.set_state(snapshot)
    assert other.get_state() == snapshot


def test_state_snapshot_is_independent():
    cpu, _ = make_cpu([])
    snapshot = cpu.get_state()
    snapshot.interrupts[0].mask_reg = 0xF
    assert cpu.get_state().interrupts[0].mask_reg == 0


def test_set_state_restores_memory():
    cpu, _ = make_cpu([])
    memory = bytes([0xAB]) + bytes(MEMORY_SIZE - 1)
    cpu.set_state(CpuState(pc=START, memory=memory))
    assert cpu.bus.read(0) == 0xA
    assert cpu.bus.read(1) == 0xB


def test_set_state_rejects_bad_memory_size():
    cpu, _ = make_cpu([])
    with pytest.raises(ValueError):
        cpu.set_state(CpuState(memory=bytes(3)))


def test_clock_timer_sets_factor_flag():
    cpu, _ = make_cpu([])
    cpu.set_state(dataclasses.replace(cpu.get_state(), tick_counter=TIMER_1HZ_PERIOD - 2))
    cpu.step()
    cpu.step()
    state = cpu.get_state()
    assert state.clk_timer_timestamp == TIMER_1HZ_PERIOD
    assert state.interrupts[InterruptSlot.CLOCK_TIMER].factor_flag_reg & 0x8


def test_clock_interrupt_dispatch():
    cpu, _ = make_cpu([])
    state = cpu.get_state()
    state.tick_counter = TIMER_1HZ_PERIOD - 2
    state.flags = int(Flag.I)
    state.sp = 0x80
    state.interrupts[InterruptSlot.CLOCK_TIMER].mask_reg = 0x8
    cpu.set_state(state)
    cpu.step()
    cpu.step()
    after = cpu.get_state()
    assert after.pc == (1 << 8) | after.interrupts[InterruptSlot.CLOCK_TIMER].vector
    assert after.call_depth == 1
    assert not after.flags & Flag.I
    assert after.interrupts[InterruptSlot.CLOCK_TIMER].triggered is False
    assert after.sp == 0x7D
    pushed = START + 2
    assert cpu.bus.read(0x7F) == (pushed >> 8) & 0xF
    assert cpu.bus.read(0x7D) == pushed & 0xF


def test_prog_timer_reloads_and_flags():
    cpu, _ = make_cpu([])
    state = cpu.get_state()
    state.prog_timer_enabled = True
    state.prog_timer_data = 1
    state.prog_timer_rld = 5
    state.prog_timer_timestamp = 0
    state.tick_counter = 200
    cpu.set_state(state)
    cpu.step()
    after = cpu.get_state()
    assert after.prog_timer_data == 5
    assert after.prog_timer_timestamp == 128
    assert after.interrupts[InterruptSlot.PROG_TIMER].factor_flag_reg & 0x1


def test_input_pin_low_raises_factor_flag():
    cpu, _ = make_cpu([])
    cpu.set_input_pin(Pin.K01, PinState.HIGH)
    assert cpu.bus.inputs[0] & 0b10 == 0b10
    assert cpu.get_state().interrupts[InterruptSlot.K00_K03].factor_flag_reg == 0
    cpu.set_input_pin(Pin.K01, PinState.LOW)
    assert cpu.bus.inputs[0] & 0b10 == 0
    assert cpu.get_state().interrupts[InterruptSlot.K00_K03].factor_flag_reg == 0b10


def test_reset_keeps_pc_start_after_running():
    cpu, _ = make_cpu([0xE05, 0x020])
    cpu.step()
    cpu.step()
    cpu.reset()
    assert cpu.regs.pc == START
    assert cpu.regs.a == 0