"""Window and headless front-ends driving a ``Machine``."""

import time

import numpy as np
from tqdm import tqdm

from octavm.config import EmulatorConfig
from octavm.constants import RunState
from octavm.logging import EmulatorLogger
from octavm.machine import Machine
from octavm.rendering import display_to_rgb, save_screenshot

# COSMAC VIP keypad     keyboard
#   1 2 3 C             1 2 3 4
#   4 5 6 D             Q W E R
#   7 8 9 E             A S D F
#   A 0 B F             Z X C V
KEY_LAYOUT = {
    "1": 0x1, "2": 0x2, "3": 0x3, "4": 0xC,
    "q": 0x4, "w": 0x5, "e": 0x6, "r": 0xD,
    "a": 0x7, "s": 0x8, "d": 0x9, "f": 0xE,
    "z": 0xA, "x": 0x0, "c": 0xB, "v": 0xF,
}


def create_machine(config: EmulatorConfig, logger: EmulatorLogger) -> Machine:
    """Build a machine with the configured quirks and load the ROM into it."""
    machine = Machine(seed=config.seed, logger=logger, **config.quirks)
    machine.load_rom(config.rom_path)
    return machine


def _summary(machine: Machine, frames: int, elapsed: float) -> dict:
    return {
        "frames": frames,
        "instructions": machine.instructions_executed,
        "instructions/s": machine.instructions_executed / elapsed if elapsed > 0 else 0.0,
        "run state": machine.run_state.name,
        "pc": f"0x{int(machine.state.pc):03X}",
    }


def run_headless(config: EmulatorConfig, logger: EmulatorLogger) -> Machine:
    """Run ``config.frames`` frames without a window.

    Time advances by exactly one frame period per frame, so a headless run is
    reproducible for a given seed.
    """
    machine = create_machine(config, logger)
    frame_time = 1.0 / config.fps
    start = time.time()
    frames = 0

    for _ in tqdm(range(config.frames), desc="Emulating", unit="frame", disable=config.frames == 0):
        if not machine.running:
            break
        machine.run(config.instructions_per_frame)
        machine.advance_timers(frame_time)
        frames += 1

    if config.screenshot:
        save_screenshot(machine.display, config.screenshot, 8, config.fg_rgb, config.bg_rgb)
        logger.info(f"Screenshot saved to {config.screenshot}")

    logger.log_run_summary(_summary(machine, frames, time.time() - start))
    return machine


def run_emulator(config: EmulatorConfig, logger: EmulatorLogger) -> Machine:
    """Main emulator loop in a pygame window."""
    import pygame

    from octavm.audio import SquareWaveBeeper

    machine = create_machine(config, logger)

    pygame.init()
    key_map = {pygame.key.key_code(name): value for name, value in KEY_LAYOUT.items()}
    screen = pygame.display.set_mode((config.window_width, config.window_height))
    pygame.display.set_caption("CHIP-8 Emulator")
    clock = pygame.time.Clock()

    beeper = None
    try:
        pygame.mixer.init()
        beeper = SquareWaveBeeper()
        machine.subscribe_sound(beeper.handle)
    except (pygame.error, RuntimeError) as exc:
        logger.warning(f"Audio disabled: {exc}")

    logger.info("Controls: ESC=Quit, P=Pause, F5=Reset")

    previous_frame = None
    frames = 0
    start = time.time()
    last_tick = time.perf_counter()
    running = True

    try:
        while running:
            clock.tick(config.fps)

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                    elif event.key == pygame.K_p:
                        machine.toggle_pause()
                        logger.info(f"{machine.run_state.name.capitalize()}")
                    elif event.key == pygame.K_F5:
                        machine.reset()
                        previous_frame = None
                        logger.info("Reset")
                    elif event.key in key_map:
                        machine.set_key(key_map[event.key], True)
                elif event.type == pygame.KEYUP:
                    if event.key in key_map:
                        machine.set_key(key_map[event.key], False)

            machine.run(config.instructions_per_frame)

            now = time.perf_counter()
            machine.advance_timers(now - last_tick)
            last_tick = now
            frames += 1

            if machine.run_state in (RunState.STOPPED, RunState.ERRORED):
                running = False

            # Only redraw when a pixel changed
            frame = np.array(machine.display)
            if previous_frame is None or not np.array_equal(frame, previous_frame):
                rgb = display_to_rgb(frame, 1, config.fg_rgb, config.bg_rgb)
                surface = pygame.surfarray.make_surface(rgb.transpose(1, 0, 2))
                pygame.transform.scale(surface, screen.get_size(), screen)
                pygame.display.flip()
                previous_frame = frame
    except Exception:
        machine.fail()
        raise
    finally:
        if beeper is not None:
            beeper.shutdown()
        pygame.quit()
        logger.log_run_summary(_summary(machine, frames, time.time() - start))

    return machine
