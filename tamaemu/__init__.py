"""Hardware-agnostic emulator for the E0C6S46 virtual pet microcontroller."""

__version__ = "0.1.0"

__all__ = ["cpu", "hal", "hw", "icons", "instructions", "memory", "rom", "state", "tamalib"]