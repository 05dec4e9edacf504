"""Looping square-wave beeper driven by the sound timer."""

from typing import Optional

import numpy as np
import pygame

from octavm.timers import SoundEvent


def square_wave(frequency: float, sample_rate: int, volume: float, channels: int = 1) -> np.ndarray:
    """One period-aligned buffer of a signed 16-bit square wave.

    The buffer holds a whole number of periods so looping it is seamless.
    """
    period = max(2, int(round(sample_rate / frequency)))
    samples = period * max(1, sample_rate // (period * 10))
    amplitude = int(32767 * max(0.0, min(1.0, volume)))
    phase = np.arange(samples) % period
    wave = np.where(phase < period // 2, amplitude, -amplitude).astype(np.int16)
    if channels > 1:
        wave = np.repeat(wave[:, None], channels, axis=1)
    return np.ascontiguousarray(wave)


class SquareWaveBeeper:
    """Manage a looping tone using pygame's mixer.

    ``handle`` is meant to be subscribed to ``Machine.subscribe_sound``.
    """

    def __init__(self, frequency: float = 440.0, volume: float = 0.25):
        if pygame.mixer.get_init() is None:
            raise RuntimeError("pygame mixer must be initialised before creating SquareWaveBeeper")
        sample_rate, _, channels = pygame.mixer.get_init()
        wave = square_wave(frequency, sample_rate, volume, channels)
        self._sound = pygame.sndarray.make_sound(wave)
        self._channel: Optional[pygame.mixer.Channel] = None

    @property
    def playing(self) -> bool:
        return self._channel is not None and self._channel.get_busy()

    def start(self):
        if self.playing:
            return
        self._channel = self._sound.play(loops=-1)

    def stop(self):
        if self._channel is not None:
            self._channel.stop()
            self._channel = None

    def handle(self, event: SoundEvent):
        if event == SoundEvent.START:
            self.start()
        elif event == SoundEvent.STOP:
            self.stop()

    def shutdown(self):
        """Stop any active tone and release resources."""
        self.stop()
        self._sound = None
