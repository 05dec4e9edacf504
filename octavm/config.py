"""Run configuration for the octavm front-ends."""

from typing import Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

from octavm.constants import SCREEN_WIDTH, SCREEN_HEIGHT

DEFAULT_SCALE = 10
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def parse_color(value) -> int:
    """Accept an int or a hex string (``RRGGBB``/``AARRGGBB``, optional ``#``/``0x``)."""
    if isinstance(value, bool):
        raise ValueError("color must be an integer or a hex string")
    if isinstance(value, int):
        color = value
    elif isinstance(value, str):
        text = value.strip().lower()
        if text.startswith("#"):
            text = text[1:]
        elif text.startswith("0x"):
            text = text[2:]
        if len(text) not in (6, 8):
            raise ValueError(f"color '{value}' must have 6 or 8 hex digits")
        try:
            color = int(text, 16)
        except ValueError:
            raise ValueError(f"color '{value}' is not valid hex") from None
        if len(text) == 6:
            color |= 0xFF000000
    else:
        raise ValueError("color must be an integer or a hex string")
    if not 0 <= color <= 0xFFFFFFFF:
        raise ValueError(f"color {value!r} does not fit in 32 bits")
    return color


def color_to_rgb(color: int) -> Tuple[int, int, int]:
    """Drop the alpha byte of an ``AARRGGBB`` color."""
    return (color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF


class EmulatorConfig(BaseModel):
    """Everything a front-end needs to run a ROM."""

    rom_path: str
    window_width: int = Field(default=SCREEN_WIDTH * DEFAULT_SCALE, gt=0)
    window_height: int = Field(default=SCREEN_HEIGHT * DEFAULT_SCALE, gt=0)
    scale: Optional[int] = Field(default=None, gt=0)
    fg_color: int = 0xFFFFFFFF
    bg_color: int = 0x00000000
    instructions_per_frame: int = Field(default=10, gt=0)
    fps: int = Field(default=60, gt=0)
    shift_quirk: bool = False
    load_store_quirk: bool = False
    jump_quirk: bool = False
    seed: int = 0
    headless: bool = False
    frames: int = Field(default=600, ge=0)
    screenshot: Optional[str] = None
    log_level: str = "INFO"

    @field_validator("fg_color", "bg_color", mode="before")
    @classmethod
    def _parse_color(cls, value):
        return parse_color(value)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log level must be one of {LOG_LEVELS}")
        return level

    @model_validator(mode="after")
    def _apply_scale(self):
        # An explicit scale sizes the window to the CHIP-8 screen.
        if self.scale is not None:
            self.window_width = SCREEN_WIDTH * self.scale
            self.window_height = SCREEN_HEIGHT * self.scale
        return self

    @property
    def fg_rgb(self) -> Tuple[int, int, int]:
        return color_to_rgb(self.fg_color)

    @property
    def bg_rgb(self) -> Tuple[int, int, int]:
        return color_to_rgb(self.bg_color)

    @property
    def quirks(self) -> dict:
        return dict(
            shift_quirk=self.shift_quirk,
            load_store_quirk=self.load_store_quirk,
            jump_quirk=self.jump_quirk,
        )
