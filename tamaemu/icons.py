"""Menu icon bitmaps, 9x9 pixels each."""

from __future__ import annotations

from collections.abc import Iterable

ICON_COUNT = 8
ICON_SIZE = 9

# One 9-bit value per row, leftmost pixel in the most significant bit.
_ICONS = (
    (0b000001000, 0b000010000, 0b011111110, 0b110111111, 0b101111111,
     0b111111111, 0b111111111, 0b011111110, 0b001101100),
    (0b000010000, 0b010000010, 0b000111000, 0b001111100, 0b101111101,
     0b001111100, 0b000111000, 0b010000010, 0b000010000),
    (0b001000000, 0b011000000, 0b111111111, 0b011000000, 0b001000100,
     0b000000110, 0b111111111, 0b000000110, 0b000000100),
    (0b011101110, 0b100010001, 0b000000001, 0b010000001, 0b111000001,
     0b010000010, 0b000000100, 0b000101000, 0b000010000),
    (0b000001000, 0b010000000, 0b000110010, 0b001110000, 0b001001100,
     0b011111110, 0b011111110, 0b111100011, 0b111111111),
    (0b001110000, 0b010001000, 0b100000100, 0b100000100, 0b100000100,
     0b010001000, 0b001110100, 0b000000010, 0b000000001),
    (0b011110000, 0b111111000, 0b110011000, 0b111101000, 0b111111100,
     0b111111001, 0b111110010, 0b011111001, 0b001100000),
    (0b001111100, 0b010000010, 0b100010001, 0b100010001, 0b100010001,
     0b100000001, 0b100010001, 0b010000010, 0b001111100),
)

_ROW_MAX = (1 << ICON_SIZE) - 1


def icon_rows(index: int) -> tuple[int, ...]:
    """Return the rows of an icon, leftmost pixel in the high bit."""
    if not 0 <= index < ICON_COUNT:
        raise IndexError(f"icon index {index} out of range 0..{ICON_COUNT - 1}")
    return _ICONS[index]


def icon_pixels(index: int) -> tuple[tuple[bool, ...], ...]:
    """Return an icon as rows of booleans, left to right."""
    return tuple(
        tuple(bool(row >> (ICON_SIZE - 1 - col) & 1) for col in range(ICON_SIZE))
        for row in icon_rows(index)
    )


def pack_icon(rows: Iterable[int]) -> bytes:
    """Pack rows into two little-endian bytes each, leftmost pixel in bit 0."""
    out = bytearray()
    for row in rows:
        if not 0 <= row <= _ROW_MAX:
            raise ValueError(f"row value {row:#x} does not fit in {ICON_SIZE} bits")
        mirrored = int(format(row, f"0{ICON_SIZE}b")[::-1], 2)
        out += mirrored.to_bytes(2, "little")
    return bytes(out)


def packed_icon(index: int) -> bytes:
    """Return an icon in packed form."""
    return pack_icon(icon_rows(index))