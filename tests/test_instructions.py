import pytest

from tamaemu.hal import Hal
from tamaemu.instructions import UnknownOpcode, decode
from tamaemu.memory import Bus
from tamaemu.state import Flag, InterruptSlot, Registers


@pytest.fixture
def hal():
    return Hal()


@pytest.fixture
def bus(hal):
    return Bus(hal)


@pytest.fixture
def regs():
    return Registers()


def run(regs, bus, op):
    decode(op).execute(regs, bus, op)


def test_every_decodable_opcode_matches_its_pattern():
    for op in range(0x1000):
        try:
            instruction = decode(op)
        except UnknownOpcode:
            continue
        assert op & instruction.mask == instruction.code


@pytest.mark.parametrize("op", [0xFF9, 0xFFA, 0xFFC, 0xFFD, 0xFFE, 0x1000, -1])
def test_unknown_opcodes_raise(op):
    with pytest.raises(UnknownOpcode) as info:
        decode(op)
    assert info.value.op == op


def test_table_order_resolves_overlaps():
    assert decode(0xEE0).name == "INC_X"
    assert decode(0xEE1).name == "LDPX_R"
    assert decode(0xD0F).name == "XOR_R_I"


def test_cycles_come_from_table():
    assert decode(0xFDE).cycles == 12
    assert decode(0xFFB).cycles == 5
    assert decode(0xFFF).cycles == 7


def test_pset_sets_np(regs, bus):
    run(regs, bus, 0xE5F)
    assert regs.np == 0x1F


def test_jp_uses_np_page(regs, bus):
    regs.np = 0x05
    run(regs, bus, 0x034)
    assert regs.next_pc == (0x05 << 8) | 0x34


def test_jp_c_not_taken_without_carry(regs, bus):
    regs.next_pc = 0x777
    run(regs, bus, 0x234)
    assert regs.next_pc == 0x777
    regs.flags = int(Flag.C)
    run(regs, bus, 0x234)
    assert regs.next_pc == 0x34


def test_call_then_ret_round_trip(regs, bus):
    regs.pc = 0x123
    regs.sp = 0x40
    regs.np = 0x03
    run(regs, bus, 0x456)
    assert regs.next_pc == (0x03 << 8) | 0x56
    assert regs.sp == 0x40 - 3
    assert regs.call_depth == 1
    regs.pc = regs.next_pc
    run(regs, bus, 0xFDF)
    assert regs.next_pc == 0x123 + 1
    assert regs.sp == 0x40
    assert regs.call_depth == 0


def test_push_pop_round_trip(regs, bus):
    regs.sp = 0x40
    regs.a = 0xA
    run(regs, bus, 0xFC0)
    run(regs, bus, 0xFD1)
    assert regs.b == 0xA
    assert regs.sp == 0x40


def test_load_store_memory_round_trip(regs, bus):
    regs.a = 0x9
    run(regs, bus, 0xF85)
    assert bus.read(0x05) == 0x9
    run(regs, bus, 0xFB5)
    assert regs.b == 0x9


def test_ld_r_i_to_memory_through_x(regs, bus):
    regs.x = 0x010
    run(regs, bus, 0xE27)
    assert bus.read(0x010) == 7


def test_ld_r_i_to_b(regs, bus):
    run(regs, bus, 0xE17)
    assert regs.b == 7


def test_lbpx_writes_two_nibbles(regs, bus):
    regs.x = 0x010
    run(regs, bus, 0x9AB)
    assert bus.read(0x010) == 0xB
    assert bus.read(0x011) == 0xA
    assert regs.x == 0x010 + 2


def test_ldpx_r_keeps_page(regs, bus):
    regs.x = 0x2FF
    regs.b = 0x6
    run(regs, bus, 0xEE1)
    assert regs.a == regs.b
    assert regs.x >> 8 == 2
    assert regs.x & 0xFF == 0


def test_halt_calls_hal(hal, regs, bus):
    run(regs, bus, 0xFF8)
    assert hal.halted is True


def test_binary_add_carry(regs, bus):
    regs.a = 9
    run(regs, bus, 0xC09)
    carry = 1 if regs.flags & Flag.C else 0
    assert regs.a + carry * 16 == 9 + 9


def test_decimal_add_stays_decimal(regs, bus):
    regs.flags = int(Flag.D)
    regs.a = 7
    run(regs, bus, 0xC05)
    assert regs.flags & Flag.C
    assert regs.a < 10


def test_sub_then_add_restores(regs, bus):
    regs.a = 3
    regs.b = 5
    run(regs, bus, 0xAA1)
    assert regs.flags & Flag.C
    assert not regs.flags & Flag.Z
    run(regs, bus, 0xA81)
    assert regs.a == 3


def test_compare_immediate(regs, bus):
    regs.a = 6
    run(regs, bus, 0xDC6)
    assert regs.flags == int(Flag.Z)
    assert regs.a == 6
    run(regs, bus, 0xDC7)
    assert regs.flags == int(Flag.C)
    assert regs.a == 6


def test_fan_does_not_modify_register(regs, bus):
    regs.a = 0x5
    run(regs, bus, 0xD8A)
    assert regs.flags & Flag.Z
    assert regs.a == 0x5


@pytest.mark.parametrize("value", range(16))
@pytest.mark.parametrize("carry", [False, True])
def test_rlc_rrc_round_trip(regs, bus, value, carry):
    regs.a = value
    regs.flags = int(Flag.C) if carry else 0
    run(regs, bus, 0xAF0)
    run(regs, bus, 0xE8C)
    assert regs.a == value
    assert bool(regs.flags & Flag.C) == carry


def test_flag_instructions(regs, bus):
    run(regs, bus, 0xF48)
    assert regs.flags & Flag.I
    run(regs, bus, 0xF41)
    assert regs.flags & Flag.C
    run(regs, bus, 0xF57)
    assert not regs.flags & Flag.I
    run(regs, bus, 0xF5E)
    assert regs.flags == 0


def test_reading_factor_flags_through_mx_clears_them(regs, bus):
    bus.generate_interrupt(InterruptSlot.K00_K03, 1)
    regs.x = 0xF04
    run(regs, bus, 0xEC2)
    assert regs.a == 1 << 1
    assert bus.interrupts[InterruptSlot.K00_K03].factor_flag_reg == 0


def test_inc_dec_memory_round_trip(regs, bus):
    bus.write(0x20, 0xF)
    run(regs, bus, 0xF60 | 0x0)
    run(regs, bus, 0xF70 | 0x0)
    assert bus.read(0x00) == 0
    run(regs, bus, 0xF70)
    assert bus.read(0x00) == 0xF
    assert regs.flags & Flag.C
    run(regs, bus, 0xF60)
    assert bus.read(0x00) == 0
    assert regs.flags & Flag.Z


def test_not_on_register(regs, bus):
    regs.b = 0xF
    run(regs, bus, 0xD1F)
    assert regs.b == 0
    assert regs.flags & Flag.Z