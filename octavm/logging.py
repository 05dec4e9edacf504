"""Console logging utilities for octavm.

Provides a small console logger with levels, optional colours and elapsed
time stamps, and an emulator-specific subclass used by the driver and the
front-ends to report ROM loading, faults and run summaries.
"""

import time
import sys
from typing import Any, Dict, Optional

from octavm.constants import Fault, FATAL_FAULTS


class ConsoleLogger:
    """Flexible console logger with level filtering and formatters."""

    def __init__(
        self,
        name: str = "octavm",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
        stream=None,
    ):
        self.name = name
        self.log_level = log_level.upper()
        self.stream = stream if stream is not None else sys.stdout
        self.use_colors = (
            use_colors and hasattr(self.stream, "isatty") and self.stream.isatty()
        )
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

        self.colors = (
            {
                "DEBUG": "\033[36m",
                "INFO": "\033[32m",
                "WARNING": "\033[33m",
                "ERROR": "\033[31m",
                "CRITICAL": "\033[35m",
                "RESET": "\033[0m"
            }
            if self.use_colors
            else {
                k: ""
                for k in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "RESET"]
            }
        )

        self.level_order = {
            "DEBUG": 0,
            "INFO": 1,
            "WARNING": 2,
            "ERROR": 3,
            "CRITICAL": 4,
        }

    def _should_log(self, level: str) -> bool:
        """Check if message should be logged based on current log level."""
        return self.level_order.get(level.upper(), 1) >= self.level_order.get(
            self.log_level, 1
        )

    def _format_message(self, level: str, message: str) -> str:
        """Format log message with timestamp, level, and colors."""
        timestamp = (
            f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        )
        level_str = f"[{level:>8s}]"
        name_str = f"[{self.name}]"

        if self.use_colors:
            color = self.colors.get(level.upper(), "")
            reset = self.colors["RESET"]
            level_str = f"{color}{level_str}{reset}"

        return f"{timestamp}{level_str}{name_str} {message}"

    def log(self, level: str, message: str):
        """Log a message at the specified level."""
        if self._should_log(level):
            formatted = self._format_message(level, message)
            print(formatted, file=self.stream, flush=True)

    def debug(self, message: str):
        """Log debug message."""
        self.log("DEBUG", message)

    def info(self, message: str):
        """Log info message."""
        self.log("INFO", message)

    def warning(self, message: str):
        """Log warning message."""
        self.log("WARNING", message)

    def error(self, message: str):
        """Log error message."""
        self.log("ERROR", message)

    def critical(self, message: str):
        """Log critical message."""
        self.log("CRITICAL", message)


FAULT_MESSAGES = {
    Fault.UNKNOWN_OPCODE: "unknown opcode",
    Fault.STACK_UNDERFLOW: "return with empty stack",
    Fault.STACK_OVERFLOW: "call with full stack",
    Fault.PC_OUT_OF_BOUNDS: "program counter outside memory",
    Fault.MEMORY_OUT_OF_BOUNDS: "memory access through I outside memory",
}


def format_fault(fault: Fault, opcode: Optional[int], pc: int) -> str:
    """Render a diagnostic as ``<condition> (opcode=..., pc=...)``."""
    opcode_str = f"0x{opcode:04X}" if opcode is not None else "----"
    return f"{FAULT_MESSAGES.get(fault, fault.name.lower())} (opcode={opcode_str}, pc=0x{pc:03X})"


class EmulatorLogger(ConsoleLogger):
    """Logger specialised for emulator runs."""

    def __init__(self, name: str = "octavm", **kwargs):
        super().__init__(name, **kwargs)
        self.fault_counts: Dict[Fault, int] = {}

    def log_rom_loaded(self, path, size: int):
        self.info(f"Loaded ROM {path} ({size} bytes)")

    def log_fault(self, fault: Fault, opcode: Optional[int], pc: int):
        """Soft faults are warnings, faults that stop the machine are errors."""
        self.fault_counts[fault] = self.fault_counts.get(fault, 0) + 1
        message = format_fault(fault, opcode, pc)
        if fault in FATAL_FAULTS:
            self.error(message)
        else:
            self.warning(message)

    def log_run_summary(self, summary: Dict[str, Any]):
        """Log the end-of-run statistics."""
        self.info("=" * 60)
        self.info("Run finished:")
        for key, value in summary.items():
            if isinstance(value, float):
                self.info(f"  {key}: {value:.2f}")
            else:
                self.info(f"  {key}: {value}")
        if self.fault_counts:
            self.info("Faults:")
            for fault, count in sorted(self.fault_counts.items()):
                self.info(f"  {fault.name}: {count}")
        self.info("=" * 60)
