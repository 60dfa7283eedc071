"""Instruction set: opcode decoding and execution of each operation."""

from __future__ import annotations

import functools
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tamaemu.state import Flag, Registers

if TYPE_CHECKING:
    from tamaemu.memory import Bus

MASK_4B = 0xF00
MASK_6B = 0xFC0
MASK_7B = 0xFE0
MASK_8B = 0xFF0
MASK_10B = 0xFFC
MASK_12B = 0xFFF
_MASK_NOT = 0xFCF

_C = int(Flag.C)
_Z = int(Flag.Z)
_D = int(Flag.D)
_I = int(Flag.I)

_DEPTH_MASK = 0xFFFFFFFF

# Opcodes whose first argument is a register selector in bits 2-3.
_R_Q_CODES = frozenset(
    {0xA80, 0xA90, 0xAA0, 0xAB0, 0xAC0, 0xAD0, 0xAE0, 0xEC0, 0xEE0, 0xEF0, 0xF00, 0xF10}
)

Handler = Callable[[Registers, "Bus", int, int], None]


class UnknownOpcode(ValueError):
    """Raised when an opcode matches no instruction."""

    def __init__(self, op: int) -> None:
        super().__init__(f"unknown opcode {op:#05x}")
        self.op = op


# --- register and flag helpers ---------------------------------------------

def _xp(v: int) -> int:
    return (v >> 8) & 0xF


def _xh(v: int) -> int:
    return (v >> 4) & 0xF


def _xl(v: int) -> int:
    return v & 0xF


def _carry(r: Registers) -> int:
    return 1 if r.flags & _C else 0


def _flag(r: Registers, flag: int, cond: bool) -> None:
    r.flags = (r.flags | flag) if cond else (r.flags & ~flag & 0xF)


def _rq(r: Registers, bus: Bus, i: int) -> int:
    sel = i & 0x3
    if sel == 0:
        return r.a
    if sel == 1:
        return r.b
    if sel == 2:
        return bus.read(r.x)
    return bus.read(r.y)


def _set_rq(r: Registers, bus: Bus, i: int, v: int) -> None:
    sel = i & 0x3
    if sel == 0:
        r.a = v & 0xF
    elif sel == 1:
        r.b = v & 0xF
    elif sel == 2:
        bus.write(r.x, v)
    else:
        bus.write(r.y, v)


def _to_pc(bank: int, page: int, step: int) -> int:
    return (step & 0xFF) | ((page & 0xF) << 8) | ((bank & 0x1) << 12)


def _pcb(r: Registers) -> int:
    return (r.pc >> 12) & 0x1


def _inc_x(r: Registers, n: int = 1) -> None:
    r.x = ((r.x + n) & 0xFF) | (_xp(r.x) << 8)


def _inc_y(r: Registers, n: int = 1) -> None:
    r.y = ((r.y + n) & 0xFF) | (_xp(r.y) << 8)


def _store_add(r: Registers, write: Callable[[int], None], tmp: int) -> None:
    if r.flags & _D:
        if tmp >= 10:
            write((tmp - 10) & 0xF)
            _flag(r, _C, True)
        else:
            write(tmp)
            _flag(r, _C, False)
    else:
        write(tmp & 0xF)
        _flag(r, _C, bool(tmp >> 4))


def _store_sub(r: Registers, write: Callable[[int], None], tmp: int) -> None:
    if r.flags & _D:
        write(((tmp - 6) & 0xF) if tmp >> 4 else tmp)
    else:
        write(tmp & 0xF)
    _flag(r, _C, bool(tmp >> 4))


def _push_return(r: Registers, bus: Bus) -> None:
    r.pc = (r.pc + 1) & 0x1FFF
    bus.write(r.sp - 1, (r.pc >> 8) & 0xF)
    bus.write(r.sp - 2, (r.pc >> 4) & 0xF)
    bus.write(r.sp - 3, r.pc & 0xF)
    r.sp = (r.sp - 3) & 0xFF


def _pop_return(r: Registers, bus: Bus) -> None:
    r.next_pc = (
        bus.read(r.sp)
        | (bus.read(r.sp + 1) << 4)
        | (bus.read(r.sp + 2) << 8)
        | (_pcb(r) << 12)
    )
    r.sp = (r.sp + 3) & 0xFF
    r.call_depth = (r.call_depth - 1) & _DEPTH_MASK


# --- operations ------------------------------------------------------------

def _op_pset(r, bus, a0, a1):
    r.np = a0


def _jump_if(cond: Callable[[Registers], bool]) -> Handler:
    def handler(r, bus, a0, a1):
        if cond(r):
            r.next_pc = a0 | (r.np << 8)
    return handler


def _op_jpba(r, bus, a0, a1):
    r.next_pc = r.a | (r.b << 4) | (r.np << 8)


def _op_call(r, bus, a0, a1):
    _push_return(r, bus)
    r.next_pc = _to_pc(_pcb(r), r.np & 0xF, a0)
    r.call_depth = (r.call_depth + 1) & _DEPTH_MASK


def _op_calz(r, bus, a0, a1):
    _push_return(r, bus)
    r.next_pc = _to_pc(_pcb(r), 0, a0)
    r.call_depth = (r.call_depth + 1) & _DEPTH_MASK


def _op_ret(r, bus, a0, a1):
    _pop_return(r, bus)


def _op_rets(r, bus, a0, a1):
    _pop_return(r, bus)
    r.next_pc = (r.pc + 1) & 0x1FFF


def _op_retd(r, bus, a0, a1):
    _pop_return(r, bus)
    bus.write(r.x, a0 & 0xF)
    bus.write(r.x + 1, (a0 >> 4) & 0xF)
    _inc_x(r, 2)


def _op_nop(r, bus, a0, a1):
    pass


def _op_halt(r, bus, a0, a1):
    bus.hal.halt()


def _op_inc_x(r, bus, a0, a1):
    _inc_x(r)


def _op_inc_y(r, bus, a0, a1):
    _inc_y(r)


def _op_ld_x(r, bus, a0, a1):
    r.x = a0 | (_xp(r.x) << 8)


def _op_ld_y(r, bus, a0, a1):
    r.y = a0 | (_xp(r.y) << 8)


def _op_ld_xp_r(r, bus, a0, a1):
    r.x = (r.x & 0xFF) | (_rq(r, bus, a0) << 8)


def _op_ld_xh_r(r, bus, a0, a1):
    r.x = _xl(r.x) | (_rq(r, bus, a0) << 4) | (_xp(r.x) << 8)


def _op_ld_xl_r(r, bus, a0, a1):
    r.x = _rq(r, bus, a0) | (_xh(r.x) << 4) | (_xp(r.x) << 8)


def _op_ld_yp_r(r, bus, a0, a1):
    r.y = (r.y & 0xFF) | (_rq(r, bus, a0) << 8)


def _op_ld_yh_r(r, bus, a0, a1):
    r.y = _xl(r.y) | (_rq(r, bus, a0) << 4) | (_xp(r.y) << 8)


def _op_ld_yl_r(r, bus, a0, a1):
    r.y = _rq(r, bus, a0) | (_xh(r.y) << 4) | (_xp(r.y) << 8)


def _load_r_from(part: Callable[[Registers], int]) -> Handler:
    def handler(r, bus, a0, a1):
        _set_rq(r, bus, a0, part(r))
    return handler


def _op_adc_xh(r, bus, a0, a1):
    tmp = _xh(r.x) + a0 + _carry(r)
    r.x = _xl(r.x) | ((tmp & 0xF) << 4) | (_xp(r.x) << 8)
    _flag(r, _C, bool(tmp >> 4))
    _flag(r, _Z, not tmp & 0xF)


def _op_adc_xl(r, bus, a0, a1):
    tmp = _xl(r.x) + a0 + _carry(r)
    r.x = (tmp & 0xF) | (_xh(r.x) << 4) | (_xp(r.x) << 8)
    _flag(r, _C, bool(tmp >> 4))
    _flag(r, _Z, not tmp & 0xF)


def _op_adc_yh(r, bus, a0, a1):
    tmp = _xh(r.y) + a0 + _carry(r)
    r.y = _xl(r.y) | ((tmp & 0xF) << 4) | (_xp(r.y) << 8)
    _flag(r, _C, bool(tmp >> 4))
    _flag(r, _Z, not tmp & 0xF)


def _op_adc_yl(r, bus, a0, a1):
    tmp = _xl(r.y) + a0 + _carry(r)
    r.y = (tmp & 0xF) | (_xh(r.y) << 4) | (_xp(r.y) << 8)
    _flag(r, _C, bool(tmp >> 4))
    _flag(r, _Z, not tmp & 0xF)


def _compare_part(part: Callable[[Registers], int]) -> Handler:
    def handler(r, bus, a0, a1):
        value = part(r)
        _flag(r, _C, value < a0)
        _flag(r, _Z, value == a0)
    return handler


def _op_ld_r_i(r, bus, a0, a1):
    _set_rq(r, bus, a0, a1)


def _op_ld_r_q(r, bus, a0, a1):
    _set_rq(r, bus, a0, _rq(r, bus, a1))


def _op_ld_a_mn(r, bus, a0, a1):
    r.a = bus.read(a0)


def _op_ld_b_mn(r, bus, a0, a1):
    r.b = bus.read(a0)


def _op_ld_mn_a(r, bus, a0, a1):
    bus.write(a0, r.a)


def _op_ld_mn_b(r, bus, a0, a1):
    bus.write(a0, r.b)


def _op_ldpx_mx(r, bus, a0, a1):
    bus.write(r.x, a0)
    r.x = (r.x + 1) & 0xFFF


def _op_ldpx_r(r, bus, a0, a1):
    _set_rq(r, bus, a0, _rq(r, bus, a1))
    _inc_x(r)


def _op_ldpy_my(r, bus, a0, a1):
    bus.write(r.y, a0)
    _inc_y(r)


def _op_ldpy_r(r, bus, a0, a1):
    _set_rq(r, bus, a0, _rq(r, bus, a1))
    _inc_y(r)


def _op_lbpx(r, bus, a0, a1):
    bus.write(r.x, a0 & 0xF)
    bus.write(r.x + 1, (a0 >> 4) & 0xF)
    _inc_x(r, 2)


def _op_set(r, bus, a0, a1):
    r.flags = (r.flags | a0) & 0xF


def _op_rst(r, bus, a0, a1):
    r.flags &= a0


def _flag_op(flag: int, value: bool) -> Handler:
    def handler(r, bus, a0, a1):
        _flag(r, flag, value)
    return handler


def _op_inc_sp(r, bus, a0, a1):
    r.sp = (r.sp + 1) & 0xFF


def _op_dec_sp(r, bus, a0, a1):
    r.sp = (r.sp - 1) & 0xFF


def _push(value: Callable[[Registers, Bus, int], int]) -> Handler:
    def handler(r, bus, a0, a1):
        r.sp = (r.sp - 1) & 0xFF
        bus.write(r.sp, value(r, bus, a0))
    return handler


def _op_pop_r(r, bus, a0, a1):
    _set_rq(r, bus, a0, bus.read(r.sp))
    r.sp = (r.sp + 1) & 0xFF


def _pop_into(assign: Callable[[Registers, int], None]) -> Handler:
    def handler(r, bus, a0, a1):
        assign(r, bus.read(r.sp))
        r.sp = (r.sp + 1) & 0xFF
    return handler


def _assign_xp(r, v):
    r.x = (r.x & 0xFF) | (v << 8)


def _assign_xh(r, v):
    r.x = _xl(r.x) | (v << 4) | (_xp(r.x) << 8)


def _assign_xl(r, v):
    r.x = v | (_xh(r.x) << 4) | (_xp(r.x) << 8)


def _assign_yp(r, v):
    r.y = (r.y & 0xFF) | (v << 8)


def _assign_yh(r, v):
    r.y = _xl(r.y) | (v << 4) | (_xp(r.y) << 8)


def _assign_yl(r, v):
    r.y = v | (_xh(r.y) << 4) | (_xp(r.y) << 8)


def _assign_flags(r, v):
    r.flags = v


def _op_ld_sph_r(r, bus, a0, a1):
    r.sp = (r.sp & 0xF) | (_rq(r, bus, a0) << 4)


def _op_ld_spl_r(r, bus, a0, a1):
    r.sp = _rq(r, bus, a0) | (((r.sp >> 4) & 0xF) << 4)


def _op_ld_r_sph(r, bus, a0, a1):
    _set_rq(r, bus, a0, (r.sp >> 4) & 0xF)


def _op_ld_r_spl(r, bus, a0, a1):
    _set_rq(r, bus, a0, r.sp & 0xF)


def _arith(subtract: bool, with_carry: bool, immediate: bool) -> Handler:
    def handler(r, bus, a0, a1):
        operand = a1 if immediate else _rq(r, bus, a1)
        carry = _carry(r) if with_carry else 0
        if subtract:
            tmp = (_rq(r, bus, a0) - operand - carry) & 0xFF
            _store_sub(r, lambda v: _set_rq(r, bus, a0, v), tmp)
        else:
            tmp = (_rq(r, bus, a0) + operand + carry) & 0xFF
            _store_add(r, lambda v: _set_rq(r, bus, a0, v), tmp)
        _flag(r, _Z, not _rq(r, bus, a0))
    return handler


def _logic(combine: Callable[[int, int], int], immediate: bool) -> Handler:
    def handler(r, bus, a0, a1):
        operand = a1 if immediate else _rq(r, bus, a1)
        _set_rq(r, bus, a0, combine(_rq(r, bus, a0), operand))
        _flag(r, _Z, not _rq(r, bus, a0))
    return handler


def _op_cp_r_i(r, bus, a0, a1):
    _flag(r, _C, _rq(r, bus, a0) < a1)
    _flag(r, _Z, _rq(r, bus, a0) == a1)


def _op_cp_r_q(r, bus, a0, a1):
    _flag(r, _C, _rq(r, bus, a0) < _rq(r, bus, a1))
    _flag(r, _Z, _rq(r, bus, a0) == _rq(r, bus, a1))


def _op_fan_r_i(r, bus, a0, a1):
    _flag(r, _Z, not _rq(r, bus, a0) & a1)


def _op_fan_r_q(r, bus, a0, a1):
    _flag(r, _Z, not _rq(r, bus, a0) & _rq(r, bus, a1))


def _op_rlc(r, bus, a0, a1):
    tmp = (_rq(r, bus, a0) << 1) | _carry(r)
    _flag(r, _C, bool(_rq(r, bus, a0) & 0x8))
    _set_rq(r, bus, a0, tmp & 0xF)


def _op_rrc(r, bus, a0, a1):
    tmp = (_rq(r, bus, a0) >> 1) | (_carry(r) << 3)
    _flag(r, _C, bool(_rq(r, bus, a0) & 0x1))
    _set_rq(r, bus, a0, tmp & 0xF)


def _op_inc_mn(r, bus, a0, a1):
    tmp = (bus.read(a0) + 1) & 0xFF
    bus.write(a0, tmp & 0xF)
    _flag(r, _C, bool(tmp >> 4))
    _flag(r, _Z, not bus.read(a0))


def _op_dec_mn(r, bus, a0, a1):
    tmp = (bus.read(a0) - 1) & 0xFF
    bus.write(a0, tmp & 0xF)
    _flag(r, _C, bool(tmp >> 4))
    _flag(r, _Z, not bus.read(a0))


def _memory_arith(subtract: bool, use_y: bool) -> Handler:
    def handler(r, bus, a0, a1):
        address = r.y if use_y else r.x
        if subtract:
            tmp = (bus.read(address) - _rq(r, bus, a0) - _carry(r)) & 0xFF
            _store_sub(r, lambda v: bus.write(address, v), tmp)
        else:
            tmp = (bus.read(address) + _rq(r, bus, a0) + _carry(r)) & 0xFF
            _store_add(r, lambda v: bus.write(address, v), tmp)
        _flag(r, _Z, not bus.read(address))
        if use_y:
            _inc_y(r)
        else:
            _inc_x(r)
    return handler


def _op_not(r, bus, a0, a1):
    _set_rq(r, bus, a0, ~_rq(r, bus, a0) & 0xF)
    _flag(r, _Z, not _rq(r, bus, a0))


# --- instruction table -----------------------------------------------------

@dataclass(frozen=True)
class Instruction:
    """One entry of the instruction set: opcode pattern, timing and behaviour."""

    name: str
    code: int
    mask: int
    cycles: int
    handler: Handler = field(repr=False, compare=False)

    def _arguments(self, op: int) -> tuple[int, int]:
        if self.mask in (MASK_6B, _MASK_NOT):
            shift = 4
        elif self.code in _R_Q_CODES:
            shift = 2
        else:
            shift = 0
        if self.mask == MASK_6B:
            arg_mask = 0x030
        elif self.mask == MASK_8B and shift == 2:
            arg_mask = 0x00C
        else:
            arg_mask = 0
        if arg_mask:
            return ((op & arg_mask) >> shift) & 0xFF, op & ~(self.mask | arg_mask) & 0xFF
        return ((op & ~self.mask & 0xFFF) >> shift) & 0xFF, 0

    def execute(self, regs: Registers, bus: Bus, op: int) -> None:
        """Run this instruction for the given opcode on the registers and bus."""
        arg0, arg1 = self._arguments(op)
        self.handler(regs, bus, arg0, arg1)


_TABLE: tuple[Instruction, ...] = tuple(
    Instruction(name, code, mask, cycles, handler)
    for name, code, mask, cycles, handler in (
        ("PSET", 0xE40, MASK_7B, 5, _op_pset),
        ("JP", 0x000, MASK_4B, 5, _jump_if(lambda r: True)),
        ("JP_C", 0x200, MASK_4B, 5, _jump_if(lambda r: bool(r.flags & _C))),
        ("JP_NC", 0x300, MASK_4B, 5, _jump_if(lambda r: not r.flags & _C)),
        ("JP_Z", 0x600, MASK_4B, 5, _jump_if(lambda r: bool(r.flags & _Z))),
        ("JP_NZ", 0x700, MASK_4B, 5, _jump_if(lambda r: not r.flags & _Z)),
        ("JPBA", 0xFE8, MASK_12B, 5, _op_jpba),
        ("CALL", 0x400, MASK_4B, 7, _op_call),
        ("CALZ", 0x500, MASK_4B, 7, _op_calz),
        ("RET", 0xFDF, MASK_12B, 7, _op_ret),
        ("RETS", 0xFDE, MASK_12B, 12, _op_rets),
        ("RETD", 0x100, MASK_4B, 12, _op_retd),
        ("NOP5", 0xFFB, MASK_12B, 5, _op_nop),
        ("NOP7", 0xFFF, MASK_12B, 7, _op_nop),
        ("HALT", 0xFF8, MASK_12B, 5, _op_halt),
        ("INC_X", 0xEE0, MASK_12B, 5, _op_inc_x),
        ("INC_Y", 0xEF0, MASK_12B, 5, _op_inc_y),
        ("LD_X", 0xB00, MASK_4B, 5, _op_ld_x),
        ("LD_Y", 0x800, MASK_4B, 5, _op_ld_y),
        ("LD_XP_R", 0xE80, MASK_10B, 5, _op_ld_xp_r),
        ("LD_XH_R", 0xE84, MASK_10B, 5, _op_ld_xh_r),
        ("LD_XL_R", 0xE88, MASK_10B, 5, _op_ld_xl_r),
        ("LD_YP_R", 0xE90, MASK_10B, 5, _op_ld_yp_r),
        ("LD_YH_R", 0xE94, MASK_10B, 5, _op_ld_yh_r),
        ("LD_YL_R", 0xE98, MASK_10B, 5, _op_ld_yl_r),
        ("LD_R_XP", 0xEA0, MASK_10B, 5, _load_r_from(lambda r: _xp(r.x))),
        ("LD_R_XH", 0xEA4, MASK_10B, 5, _load_r_from(lambda r: _xh(r.x))),
        ("LD_R_XL", 0xEA8, MASK_10B, 5, _load_r_from(lambda r: _xl(r.x))),
        ("LD_R_YP", 0xEB0, MASK_10B, 5, _load_r_from(lambda r: _xp(r.y))),
        ("LD_R_YH", 0xEB4, MASK_10B, 5, _load_r_from(lambda r: _xh(r.y))),
        ("LD_R_YL", 0xEB8, MASK_10B, 5, _load_r_from(lambda r: _xl(r.y))),
        ("ADC_XH", 0xA00, MASK_8B, 7, _op_adc_xh),
        ("ADC_XL", 0xA10, MASK_8B, 7, _op_adc_xl),
        ("ADC_YH", 0xA20, MASK_8B, 7, _op_adc_yh),
        ("ADC_YL", 0xA30, MASK_8B, 7, _op_adc_yl),
        ("CP_XH", 0xA40, MASK_8B, 7, _compare_part(lambda r: _xh(r.x))),
        ("CP_XL", 0xA50, MASK_8B, 7, _compare_part(lambda r: _xl(r.x))),
        ("CP_YH", 0xA60, MASK_8B, 7, _compare_part(lambda r: _xh(r.y))),
        ("CP_YL", 0xA70, MASK_8B, 7, _compare_part(lambda r: _xl(r.y))),
        ("LD_A_MN", 0xFA0, MASK_8B, 5, _op_ld_a_mn),
        ("LD_B_MN", 0xFB0, MASK_8B, 5, _op_ld_b_mn),
        ("LD_MN_A", 0xF80, MASK_8B, 5, _op_ld_mn_a),
        ("LD_MN_B", 0xF90, MASK_8B, 5, _op_ld_mn_b),
        ("LDPX_MX", 0xE60, MASK_8B, 5, _op_ldpx_mx),
        ("LDPY_MY", 0xE70, MASK_8B, 5, _op_ldpy_my),
        ("LBPX", 0x900, MASK_4B, 5, _op_lbpx),
        ("SET", 0xF40, MASK_8B, 7, _op_set),
        ("RST", 0xF50, MASK_8B, 7, _op_rst),
        ("SCF", 0xF41, MASK_12B, 7, _flag_op(_C, True)),
        ("RCF", 0xF5E, MASK_12B, 7, _flag_op(_C, False)),
        ("SZF", 0xF42, MASK_12B, 7, _flag_op(_Z, True)),
        ("RZF", 0xF5D, MASK_12B, 7, _flag_op(_Z, False)),
        ("SDF", 0xF44, MASK_12B, 7, _flag_op(_D, True)),
        ("RDF", 0xF5B, MASK_12B, 7, _flag_op(_D, False)),
        ("EI", 0xF48, MASK_12B, 7, _flag_op(_I, True)),
        ("DI", 0xF57, MASK_12B, 7, _flag_op(_I, False)),
        ("INC_SP", 0xFDB, MASK_12B, 5, _op_inc_sp),
        ("DEC_SP", 0xFCB, MASK_12B, 5, _op_dec_sp),
        ("PUSH_R", 0xFC0, MASK_10B, 5, _push(lambda r, bus, a0: _rq(r, bus, a0))),
        ("PUSH_XP", 0xFC4, MASK_12B, 5, _push(lambda r, bus, a0: _xp(r.x))),
        ("PUSH_XH", 0xFC5, MASK_12B, 5, _push(lambda r, bus, a0: _xh(r.x))),
        ("PUSH_XL", 0xFC6, MASK_12B, 5, _push(lambda r, bus, a0: _xl(r.x))),
        ("PUSH_YP", 0xFC7, MASK_12B, 5, _push(lambda r, bus, a0: _xp(r.y))),
        ("PUSH_YH", 0xFC8, MASK_12B, 5, _push(lambda r, bus, a0: _xh(r.y))),
        ("PUSH_YL", 0xFC9, MASK_12B, 5, _push(lambda r, bus, a0: _xl(r.y))),
        ("PUSH_F", 0xFCA, MASK_12B, 5, _push(lambda r, bus, a0: r.flags)),
        ("POP_R", 0xFD0, MASK_10B, 5, _op_pop_r),
        ("POP_XP", 0xFD4, MASK_12B, 5, _pop_into(_assign_xp)),
        ("POP_XH", 0xFD5, MASK_12B, 5, _pop_into(_assign_xh)),
        ("POP_XL", 0xFD6, MASK_12B, 5, _pop_into(_assign_xl)),
        ("POP_YP", 0xFD7, MASK_12B, 5, _pop_into(_assign_yp)),
        ("POP_YH", 0xFD8, MASK_12B, 5, _pop_into(_assign_yh)),
        ("POP_YL", 0xFD9, MASK_12B, 5, _pop_into(_assign_yl)),
        ("POP_F", 0xFDA, MASK_12B, 5, _pop_into(_assign_flags)),
        ("LD_SPH_R", 0xFE0, MASK_10B, 5, _op_ld_sph_r),
        ("LD_SPL_R", 0xFF0, MASK_10B, 5, _op_ld_spl_r),
        ("LD_R_SPH", 0xFE4, MASK_10B, 5, _op_ld_r_sph),
        ("LD_R_SPL", 0xFF4, MASK_10B, 5, _op_ld_r_spl),
        ("ADD_R_I", 0xC00, MASK_6B, 7, _arith(False, False, True)),
        ("ADC_R_I", 0xC40, MASK_6B, 7, _arith(False, True, True)),
        ("SBC_R_I", 0xD40, MASK_6B, 7, _arith(True, True, True)),
        ("AND_R_I", 0xC80, MASK_6B, 7, _logic(lambda a, b: a & b, True)),
        ("OR_R_I", 0xCC0, MASK_6B, 7, _logic(lambda a, b: a | b, True)),
        ("XOR_R_I", 0xD00, MASK_6B, 7, _logic(lambda a, b: a ^ b, True)),
        ("CP_R_I", 0xDC0, MASK_6B, 7, _op_cp_r_i),
        ("FAN_R_I", 0xD80, MASK_6B, 7, _op_fan_r_i),
        ("LD_R_I", 0xE00, MASK_6B, 5, _op_ld_r_i),
        ("ADD_R_Q", 0xA80, MASK_8B, 7, _arith(False, False, False)),
        ("ADC_R_Q", 0xA90, MASK_8B, 7, _arith(False, True, False)),
        ("SUB", 0xAA0, MASK_8B, 7, _arith(True, False, False)),
        ("SBC_R_Q", 0xAB0, MASK_8B, 7, _arith(True, True, False)),
        ("AND_R_Q", 0xAC0, MASK_8B, 7, _logic(lambda a, b: a & b, False)),
        ("OR_R_Q", 0xAD0, MASK_8B, 7, _logic(lambda a, b: a | b, False)),
        ("XOR_R_Q", 0xAE0, MASK_8B, 7, _logic(lambda a, b: a ^ b, False)),
        ("LD_R_Q", 0xEC0, MASK_8B, 5, _op_ld_r_q),
        ("LDPX_R", 0xEE0, MASK_8B, 5, _op_ldpx_r),
        ("LDPY_R", 0xEF0, MASK_8B, 5, _op_ldpy_r),
        ("CP_R_Q", 0xF00, MASK_8B, 7, _op_cp_r_q),
        ("FAN_R_Q", 0xF10, MASK_8B, 7, _op_fan_r_q),
        ("RLC", 0xAF0, MASK_8B, 7, _op_rlc),
        ("RRC", 0xE8C, MASK_10B, 5, _op_rrc),
        ("INC_MN", 0xF60, MASK_8B, 7, _op_inc_mn),
        ("DEC_MN", 0xF70, MASK_8B, 7, _op_dec_mn),
        ("ACPX", 0xF28, MASK_10B, 7, _memory_arith(False, False)),
        ("ACPY", 0xF2C, MASK_10B, 7, _memory_arith(False, True)),
        ("SCPX", 0xF38, MASK_10B, 7, _memory_arith(True, False)),
        ("SCPY", 0xF3C, MASK_10B, 7, _memory_arith(True, True)),
        ("NOT", 0xD0F, _MASK_NOT, 7, _op_not),
    )
)


@functools.lru_cache(maxsize=None)
def decode(op: int) -> Instruction:
    """Return the first instruction whose pattern matches the opcode."""
    if 0 <= op <= 0xFFF:
        for instruction in _TABLE:
            if op & instruction.mask == instruction.code:
                return instruction
    raise UnknownOpcode(op)