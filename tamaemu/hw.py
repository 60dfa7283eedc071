"""Mapping between the CPU's peripherals and the host: LCD, buttons, buzzer."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tamaemu.hal import Hal

LCD_WIDTH = 32
LCD_HEIGHT = 16
ICON_NUM = 8

# LCD segment -> matrix column; values >= LCD_WIDTH are icon segments.
SEG_POS = (
    0, 1, 2, 3, 4, 5, 6, 7, 32, 8, 9, 10, 11, 12, 13, 14, 15, 33, 34, 35,
    31, 30, 29, 28, 27, 26, 25, 24, 36, 23, 22, 21, 20, 19, 18, 17, 16, 37, 38, 39,
)

SOUND_FREQUENCIES = (4096, 3279, 2731, 2341, 2048, 1638, 1365, 1170)

_PIN_K00 = 0x0
_PIN_K01 = 0x1
_PIN_K02 = 0x2
_PIN_STATE_LOW = 0
_PIN_STATE_HIGH = 1


class ButtonState(enum.IntEnum):
    RELEASED = 0
    PRESSED = 1


class Button(enum.IntEnum):
    LEFT = 0
    MIDDLE = 1
    RIGHT = 2


_BUTTON_PINS = {
    Button.LEFT: _PIN_K02,
    Button.MIDDLE: _PIN_K01,
    Button.RIGHT: _PIN_K00,
}


def init_inputs(cpu: Any) -> None:
    """Put the button pins in their released (high) state."""
    for pin in (_PIN_K00, _PIN_K01, _PIN_K02):
        cpu.set_input_pin(pin, _PIN_STATE_HIGH)


def set_lcd_pin(hal: Hal, seg: int, com: int, val: int) -> None:
    """Forward one LCD segment/common pair to a matrix pixel or an icon."""
    pos = SEG_POS[seg]
    if pos < LCD_WIDTH:
        hal.set_lcd_matrix(pos, com, bool(val))
    elif seg == 8 and com < 4:
        hal.set_lcd_icon(com, bool(val))
    elif seg == 28 and com >= 12:
        hal.set_lcd_icon(com - 8, bool(val))


def set_button(cpu: Any, button: Button, state: ButtonState) -> None:
    """Drive the input pin wired to a button; buttons are active low."""
    pin = _BUTTON_PINS.get(button)
    if pin is None:
        return
    pin_state = _PIN_STATE_LOW if state == ButtonState.PRESSED else _PIN_STATE_HIGH
    cpu.set_input_pin(pin, pin_state)


def set_buzzer_freq(hal: Hal, freq: int) -> None:
    """Select one of the eight buzzer frequencies; other values are ignored."""
    if 0 <= freq < len(SOUND_FREQUENCIES):
        hal.set_frequency(SOUND_FREQUENCIES[freq])


def enable_buzzer(hal: Hal, enabled: bool) -> None:
    """Start or stop the buzzer."""
    hal.play_frequency(bool(enabled))