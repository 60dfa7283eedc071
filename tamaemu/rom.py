"""Program ROM of 12-bit opcodes, two opcodes packed into three bytes."""

from __future__ import annotations

import os
from collections.abc import Iterable

_OPCODE_MAX = 0xFFF


class Rom:
    """Read-only program memory indexed by program counter."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> Rom:
        """Load a packed ROM image from disk."""
        with open(path, "rb") as handle:
            return cls(handle.read())

    def __len__(self) -> int:
        return len(self._data) * 2 // 3

    def opcode(self, pc: int) -> int:
        """Return the 12-bit opcode at the given program counter."""
        if not 0 <= pc < len(self):
            raise IndexError(f"program counter {pc:#06x} outside ROM of {len(self)} opcodes")
        base = (pc >> 1) * 3
        data = self._data
        if pc & 1 == 0:
            return (data[base] << 4) | (data[base + 1] >> 4)
        return ((data[base + 1] << 8) | data[base + 2]) & _OPCODE_MAX


def pack_opcodes(opcodes: Iterable[int]) -> bytes:
    """Pack 12-bit opcodes into a ROM image; an odd count is padded with 0."""
    values = list(opcodes)
    for value in values:
        if not 0 <= value <= _OPCODE_MAX:
            raise ValueError(f"opcode {value:#x} does not fit in 12 bits")
    if len(values) % 2:
        values.append(0)
    out = bytearray()
    for even, odd in zip(values[::2], values[1::2]):
        out += ((even << 12) | odd).to_bytes(3, "big")
    return bytes(out)