# tamaemu

tamaemu emulates the E0C6S46, the 4-bit microcontroller inside the
first-generation virtual pet toys. It runs a program ROM one instruction at a
time. Screen pixels, menu icons and buzzer changes go out through a hardware
abstraction layer (HAL) that you supply.

The package has no dependencies outside the standard library.

## Installation

```
pip install tamaemu
```

To run the test suite:

```
pip install "tamaemu[test]"
pytest
```

## Modules

- `tamaemu.rom`
  - `Rom(data)` holds a program image. The image stores 12-bit opcodes, two to
    every three bytes.
  - `Rom.from_file(path)` loads an image from disk.
  - `rom.opcode(pc)` returns the opcode at a program counter. It raises
    `IndexError` when `pc` is outside the image.
  - `len(rom)` is the number of opcodes in the image.
  - `pack_opcodes(opcodes)` builds an image from a list of opcodes. An odd
    count is padded with one 0.
- `tamaemu.hal`
  - `Hal` is the bridge to your platform. The default implementation keeps
    its output in buffers:
    - `matrix` is the 32×16 dot matrix, as rows of booleans.
    - `icons` holds the eight menu icons.
    - `frequency` and `playing` hold the buzzer settings.
    - `halted` is set by the HALT instruction.
    - `frames` counts calls to `update_screen()`.
  - The default timestamps come from `time.monotonic_ns()`. They count at
    `ts_freq` units per second and wrap at 32 bits.
  - `sleep_until(ts)` really sleeps.
  - `handler()` returns `False` by default. Subclass `Hal` and override the
    hooks you need.
  - `LogLevel` lists the log categories. `Hal.log` forwards to the standard
    `logging` module.
- `tamaemu.hw`
  - `Button` (`LEFT`, `MIDDLE`, `RIGHT`) and `ButtonState` (`RELEASED`,
    `PRESSED`) describe the buttons.
  - These functions map LCD segments, buttons and buzzer settings onto the
    HAL and the CPU's input pins: `set_lcd_pin`, `set_button`,
    `set_buzzer_freq`, `enable_buzzer` and `init_inputs`.
  - The buzzer has eight frequencies, from 4096 Hz down to 1170 Hz.
- `tamaemu.state`
  - `Registers` holds the processor registers.
  - `CpuState` is a snapshot of the whole processor.
  - `Interrupt` and `default_interrupts()` describe the interrupt slots.
  - The enums are `Flag` (C, Z, D, I), `InterruptSlot`, `Pin` and `PinState`.
- `tamaemu.memory`
  - `Bus` is the nibble-addressed data memory. It covers:
    - 640 nibbles of RAM;
    - display memory, whose writes go to the LCD;
    - memory-mapped I/O: interrupt factor flags and masks, the programmable
      timer, the input ports and buzzer control.
  - `read`, `write`, `generate_interrupt` and `set_input_pin` operate on it.
  - Addresses that nothing is mapped to read as 0 and ignore writes.
- `tamaemu.instructions`
  - `decode(op)` returns the `Instruction` for a 12-bit opcode. Each
    `Instruction` has a name, code, mask and cycle count, and
    `execute(regs, bus, op)` runs it.
  - An opcode that matches no instruction raises `UnknownOpcode`.
- `tamaemu.cpu`
  - `Cpu(rom, hal, freq)` is the processor core. It also runs the 1 Hz clock
    timer, the 256 Hz programmable timer and interrupt dispatch.
  - `step()` executes one instruction and returns it.
  - `reset()`, `depth()` (the call depth), `set_input_pin(pin, state)` and
    `sync_ref_timestamp()` are available.
  - `get_state()` returns a `CpuState` snapshot and `set_state(state)`
    restores one. `set_state` raises `ValueError` when the snapshot's memory
    or interrupt list has the wrong size.
  - `Cpu.speed_ratio` sets the pacing. At 0, the default, the CPU runs as
    fast as possible. A positive value paces execution against the HAL's
    timestamps, as that multiple of the real 32768 Hz clock.
- `tamaemu.tamalib`
  - `Tamalib(rom, hal, freq)` puts the CPU together with button input and
    screen refresh. It starts with the three button pins released.
  - `mainloop_step()` does one iteration of the loop:
    1. It asks `hal.handler()` first. A true value stops the step, and the
       method returns `False`.
    2. Otherwise it executes one instruction.
    3. It calls `hal.update_screen()` once at least `freq // framerate`
       timestamp units have passed since the last refresh, and returns
       `True`.
  - An unknown opcode sets `exec_mode` to `ExecMode.PAUSE`, and no further
    instructions run.
  - `set_framerate(framerate)` accepts 1 to 255 frames per second. The
    default is 3.
  - `set_button(button, state)` and `reset()` are also available.
- `tamaemu.icons`
  - The eight 9×9 menu icon bitmaps.
  - `icon_rows(index)` and `icon_pixels(index)` return an icon.
  - `pack_icon(rows)` and `packed_icon(index)` return the two-bytes-per-row
    packed form.

## Example

```python
from tamaemu.hal import Hal
from tamaemu.hw import Button, ButtonState
from tamaemu.rom import Rom
from tamaemu.tamalib import Tamalib


class TextHal(Hal):
    def update_screen(self):
        super().update_screen()
        print("\n".join("".join("#" if p else "." for p in row) for row in self.matrix))


hal = TextHal()
emu = Tamalib(Rom.from_file("rom.bin"), hal, hal.ts_freq)
emu.set_framerate(3)

for _ in range(100_000):
    if not emu.mainloop_step():
        break

emu.set_button(Button.MIDDLE, ButtonState.PRESSED)
```

Stepping the core directly:

```python
from tamaemu.cpu import Cpu
from tamaemu.hal import Hal
from tamaemu.rom import Rom, pack_opcodes

# Execution starts at program counter 0x100; 0xE05 loads 5 into register A.
rom = Rom(pack_opcodes([0xFFB] * 0x100 + [0xE05]))
cpu = Cpu(rom, Hal(), 1_000_000)
instruction = cpu.step()
print(instruction.name, cpu.regs.a)  # LD_R_I 5
```

## What it does not do

- No ROM image is included. You must supply your own.
- There is no command-line program, no window, no renderer and no sound
  output. Drawing and playing sound are up to your `Hal` subclass.
- Snapshots from `Cpu.get_state()` stay in memory. Nothing saves them to or
  loads them from files.
- `ExecMode` lists step, next, to-call and to-return modes. However,
  `mainloop_step()` executes instructions only in `ExecMode.RUN`, and there
  are no breakpoints.