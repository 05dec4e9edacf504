"""Command line entry point: ``octavm [options] ROM``."""

import argparse
import sys

from pydantic import ValidationError

from octavm.app import run_emulator, run_headless
from octavm.config import EmulatorConfig
from octavm.constants import FATAL_FAULTS, RunState
from octavm.emulator import RomLoadError
from octavm.logging import EmulatorLogger
from octavm.rendering import create_color_scheme


def rgb_to_color(rgb) -> int:
    r, g, b = rgb
    return 0xFF000000 | (r << 16) | (g << 8) | b


def build_parser() -> argparse.ArgumentParser:
    # -h is the window height, so help only answers to --help
    parser = argparse.ArgumentParser(
        prog="octavm",
        description="Run a CHIP-8 ROM",
        add_help=False,
    )
    parser.add_argument("rom", help="Path to the ROM file")
    parser.add_argument("--help", action="help", help="Show this message and exit")
    parser.add_argument("-w", "--width", type=int, help="Window width in pixels (default: 640)")
    parser.add_argument("-h", "--height", type=int, help="Window height in pixels (default: 320)")
    parser.add_argument(
        "-s",
        "--scale",
        type=int,
        help="Pixel scale; sizes the window to 64*scale x 32*scale",
    )
    parser.add_argument("-f", "--fg", help="Foreground color, RRGGBB or AARRGGBB hex")
    parser.add_argument("-b", "--bg", help="Background color, RRGGBB or AARRGGBB hex")
    parser.add_argument(
        "--scheme",
        choices=["classic", "green", "amber", "blue", "retro"],
        help="Predefined color scheme, overridden by --fg/--bg",
    )
    parser.add_argument(
        "--ipf",
        type=int,
        default=10,
        help="Instructions executed per frame (default: 10)",
    )
    parser.add_argument("--fps", type=int, default=60, help="Frames per second (default: 60)")
    parser.add_argument("--seed", type=int, default=0, help="Random seed for Cxkk (default: 0)")
    parser.add_argument(
        "--shift-quirk",
        action="store_true",
        help="8xy6/8xyE shift Vy into Vx",
    )
    parser.add_argument(
        "--load-store-quirk",
        action="store_true",
        help="Fx55/Fx65 advance I by x+1",
    )
    parser.add_argument(
        "--jump-quirk",
        action="store_true",
        help="Bxnn jumps to xnn+Vx",
    )
    parser.add_argument("--headless", action="store_true", help="Run without a window")
    parser.add_argument(
        "--frames",
        type=int,
        default=600,
        help="Frames to run in headless mode (default: 600)",
    )
    parser.add_argument("--screenshot", help="PNG written at the end of a headless run")
    parser.add_argument("--log-level", default="INFO", help="Log level (default: INFO)")
    return parser


def config_from_args(args: argparse.Namespace) -> EmulatorConfig:
    values = dict(
        rom_path=args.rom,
        scale=args.scale,
        instructions_per_frame=args.ipf,
        fps=args.fps,
        seed=args.seed,
        shift_quirk=args.shift_quirk,
        load_store_quirk=args.load_store_quirk,
        jump_quirk=args.jump_quirk,
        headless=args.headless,
        frames=args.frames,
        screenshot=args.screenshot,
        log_level=args.log_level,
    )
    if args.width is not None:
        values["window_width"] = args.width
    if args.height is not None:
        values["window_height"] = args.height
    if args.scheme is not None:
        on_color, off_color = create_color_scheme(args.scheme)
        values["fg_color"] = rgb_to_color(on_color)
        values["bg_color"] = rgb_to_color(off_color)
    if args.fg is not None:
        values["fg_color"] = args.fg
    if args.bg is not None:
        values["bg_color"] = args.bg
    return EmulatorConfig(**values)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logger = EmulatorLogger(log_level=args.log_level)

    try:
        config = config_from_args(args)
    except ValidationError as exc:
        for error in exc.errors():
            location = ".".join(str(part) for part in error["loc"]) or "config"
            logger.error(f"Invalid {location}: {error['msg']}")
        return 1

    runner = run_headless if config.headless else run_emulator
    try:
        machine = runner(config, logger)
    except RomLoadError as exc:
        logger.error(str(exc))
        return 1

    if machine.run_state == RunState.ERRORED:
        return 1
    if machine.run_state == RunState.STOPPED and machine.last_fault in FATAL_FAULTS:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
