"""CHIP-8 interpreter engine."""

from octavm.state import EmulatorState, create_state
from octavm.emulator import execute, fetch, step, run_n_instruction, load_rom, load_rom_bytes, RomLoadError
from octavm.decode import DecodedInstruction, decode
from octavm.constants import *
from octavm.machine import Machine
from octavm.timers import TimerClock, SoundEvent, tick_timers, advance_timers
from octavm.rendering import display_to_rgb, create_color_scheme, save_screenshot

__all__ = [
    "EmulatorState",
    "create_state",
    "fetch",
    "execute",
    "step",
    "run_n_instruction",
    "load_rom",
    "load_rom_bytes",
    "RomLoadError",
    "DecodedInstruction",
    "decode",
    "Machine",
    "TimerClock",
    "SoundEvent",
    "tick_timers",
    "advance_timers",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "RunState",
    "Fault",
    "StepOutcome",
    "display_to_rgb",
    "create_color_scheme",
    "save_screenshot",
]
