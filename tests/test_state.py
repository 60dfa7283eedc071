import dataclasses

from tamaemu.state import (
    MEMORY_SIZE,
    CpuState,
    Flag,
    Interrupt,
    InterruptSlot,
    Pin,
    PinState,
    Registers,
    default_interrupts,
)


def test_default_interrupt_vectors_in_priority_order():
    vectors = [irq.vector for irq in default_interrupts()]
    assert vectors == [0x0C, 0x0A, 0x08, 0x06, 0x04, 0x02]


def test_default_interrupts_are_cleared():
    for irq in default_interrupts():
        assert irq.factor_flag_reg == 0
        assert irq.mask_reg == 0
        assert irq.triggered is False


def test_default_interrupts_are_independent_objects():
    first = default_interrupts()
    second = default_interrupts()
    first[0].mask_reg = 0xF
    assert second[0].mask_reg == 0
    assert len(first) == len(InterruptSlot)


def test_slot_indexes_follow_priority():
    interrupts = default_interrupts()
    assert interrupts[InterruptSlot.PROG_TIMER].vector == 0x0C
    assert interrupts[InterruptSlot.CLOCK_TIMER].vector == 0x02


def test_flag_bits():
    assert Flag(0x1) == Flag.C
    assert Flag(0x4) == Flag.D
    regs = Registers(flags=int(Flag.C | Flag.Z | Flag.D | Flag.I))
    assert regs.flags == 0xF


def test_pin_bank_split():
    assert [Pin(v) for v in range(4)] == [Pin.K00, Pin.K01, Pin.K02, Pin.K03]
    assert [Pin(v) for v in range(4, 8)] == [Pin.K10, Pin.K11, Pin.K12, Pin.K13]


def test_pin_state_levels():
    assert PinState(0) == PinState.LOW
    assert PinState(1) == PinState.HIGH


def test_registers_defaults_and_copy():
    regs = Registers()
    assert regs.pc == 0 and regs.call_depth == 0
    changed = dataclasses.replace(regs, a=5)
    assert changed.a == 5
    assert regs.a == 0


def test_cpu_state_defaults():
    state = CpuState()
    assert len(state.memory) == MEMORY_SIZE
    assert state.interrupts == default_interrupts()


def test_cpu_state_interrupts_not_shared():
    first = CpuState()
    second = CpuState()
    first.interrupts[1].triggered = True
    assert second.interrupts[1].triggered is False


def test_interrupt_equality():
    assert Interrupt(1, 2, True, 3) == Interrupt(1, 2, True, 3)
    assert Interrupt(vector=4) != Interrupt(vector=6)