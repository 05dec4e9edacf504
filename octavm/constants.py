"""CHIP-8 machine constants and enumerations."""

from enum import IntEnum

MEMORY_SIZE = 4096
PROGRAM_START = 0x200
MAX_ROM_SIZE = MEMORY_SIZE - PROGRAM_START

FONT_START = 0x000
FONT_GLYPH_SIZE = 5
FONT_DATA = (
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
)

SCREEN_WIDTH = 64
SCREEN_HEIGHT = 32

NUM_REGISTERS = 16
FLAG_REGISTER = 0xF
NUM_KEYS = 16
STACK_SIZE = 16

ADDRESS_MASK = 0xFFF
INDEX_MASK = 0xFFFF

TIMER_FREQUENCY = 60


class RunState(IntEnum):
    """Run state of the interpreter. STOPPED and ERRORED are terminal."""
    RUNNING = 0
    PAUSED = 1
    STOPPED = 2
    ERRORED = 3


class Fault(IntEnum):
    """Diagnostic recorded by the most recent step."""
    NONE = 0
    UNKNOWN_OPCODE = 1
    STACK_UNDERFLOW = 2
    STACK_OVERFLOW = 3
    PC_OUT_OF_BOUNDS = 4
    MEMORY_OUT_OF_BOUNDS = 5


FATAL_FAULTS = frozenset({Fault.STACK_OVERFLOW, Fault.PC_OUT_OF_BOUNDS})


class StepOutcome(IntEnum):
    """Result of a single step."""
    EXECUTED = 0
    WAITING = 1  # Fx0A with no key pressed, instruction will re-execute
    HALTED = 2
    IDLE = 3  # machine not running, nothing done
