import math

import numpy as np

from tonemodem.config import ModemConfig, DEFAULT_CONFIG


def am_multiplier(t: np.ndarray, config: ModemConfig = DEFAULT_CONFIG) -> np.ndarray:
    """(1 - depth) + depth * (0.5 + 0.5 sin(2pi f_am t)), or 1.0 when AM is off."""
    if not config.am_enabled or config.am_depth <= 0:
        return np.ones_like(t)
    depth = config.am_depth
    return (1.0 - depth) + depth * (0.5 + 0.5 * np.sin(2 * np.pi * config.am_freq * t))


def generate_tone(freq: float, duration: float, config: ModemConfig = DEFAULT_CONFIG) -> np.ndarray:
    """
    Generate floor(duration * fs) samples of a sine at freq, AM-shaped and scaled by the
    configured amplitude. Samples are clamped to [-1, 1].
    """
    n = math.floor(duration * config.sample_rate)
    if n <= 0:
        return np.zeros(0)
    t = np.arange(n) / config.sample_rate
    tone = np.sin(2 * np.pi * freq * t) * am_multiplier(t, config) * config.amplitude
    return np.clip(tone, -1.0, 1.0)


def apply_envelope(tone: np.ndarray) -> np.ndarray:
    """Hann (raised-cosine) taper so that adjacent tones start and end at zero."""
    if len(tone) <= 1:
        return tone
    return tone * np.hanning(len(tone))


def shaped_tone(freq: float, duration: float, config: ModemConfig = DEFAULT_CONFIG) -> np.ndarray:
    return apply_envelope(generate_tone(freq, duration, config))
