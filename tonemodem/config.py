import json
import logging
import math
from dataclasses import dataclass, fields, replace

logger = logging.getLogger("TONEMODEM.config")

# Audio Settings
SAMPLE_RATE = 44100
AMPLITUDE = 0.3

# Bit tones (melodic pair: C5 / E5)
BIT_RATE = 100
FREQ_0 = 523.25  # Bit 0
FREQ_1 = 659.25  # Bit 1

# Amplitude modulation layered on every tone
ADD_AM_MODULATION = True
AM_MODULATION_FREQ = 4.0
AM_MODULATION_DEPTH = 0.4

# Frame markers
SYNC_TONE_FREQ = 800.0
SYNC_TONE_DURATION = 0.1
END_TONE_FREQ = 2500.0
END_TONE_DURATION = 0.1

# Harmonics (declared, not synthesized)
ADD_HARMONICS = False
HARMONIC_2_AMPLITUDE_FACTOR = 0.0
HARMONIC_3_AMPLITUDE_FACTOR = 0.0

FEC_REDUNDANCY = 1

# Detector
GOERTZEL_ENERGY_THRESHOLD = 1e-8
SYNC_DETECTION_MULTIPLIER = 3.0
END_DETECTION_MULTIPLIER = 4.0
END_DETECTION_CONFIRMATIONS = 3
BIT_DECISION_RATIO_THRESHOLD = 1.4
MIN_RAW_BITS_BEFORE_END_CHECK = 64
MAX_DECODE_BITS = 20000


@dataclass(frozen=True)
class ConfigWarning:
    """Non-fatal problem found while validating a configuration."""
    field: str
    message: str

    def __str__(self):
        return f"Config Warning ({self.field}): {self.message}"


@dataclass(frozen=True)
class ModemConfig:
    sample_rate: int = SAMPLE_RATE
    amplitude: float = AMPLITUDE
    bit_rate: float = BIT_RATE
    freq_0: float = FREQ_0
    freq_1: float = FREQ_1
    am_enabled: bool = ADD_AM_MODULATION
    am_freq: float = AM_MODULATION_FREQ
    am_depth: float = AM_MODULATION_DEPTH
    sync_freq: float = SYNC_TONE_FREQ
    sync_duration: float = SYNC_TONE_DURATION
    end_freq: float = END_TONE_FREQ
    end_duration: float = END_TONE_DURATION
    harmonics_enabled: bool = ADD_HARMONICS
    harmonic_2_amplitude: float = HARMONIC_2_AMPLITUDE_FACTOR
    harmonic_3_amplitude: float = HARMONIC_3_AMPLITUDE_FACTOR
    fec_redundancy: int = FEC_REDUNDANCY
    energy_threshold: float = GOERTZEL_ENERGY_THRESHOLD
    sync_multiplier: float = SYNC_DETECTION_MULTIPLIER
    end_multiplier: float = END_DETECTION_MULTIPLIER
    end_confirmations: int = END_DETECTION_CONFIRMATIONS  # not consulted by the decoder
    bit_ratio_threshold: float = BIT_DECISION_RATIO_THRESHOLD
    min_raw_bits_before_end_check: int = MIN_RAW_BITS_BEFORE_END_CHECK  # not consulted by the decoder
    max_decode_bits: int = MAX_DECODE_BITS

    @property
    def bit_duration(self) -> float:
        return 1 / self.bit_rate

    @property
    def bit_duration_samples(self) -> int:
        return max(1, math.floor(self.sample_rate / self.bit_rate))

    @property
    def sync_samples(self) -> int:
        return math.floor(self.sync_duration * self.sample_rate)

    @property
    def end_samples(self) -> int:
        return math.floor(self.end_duration * self.sample_rate)

    @property
    def redundancy(self) -> int:
        return max(1, int(self.fec_redundancy))

    @property
    def sync_required_energy(self) -> float:
        return self.energy_threshold * self.sync_multiplier

    @property
    def end_required_energy(self) -> float:
        return self.energy_threshold * self.end_multiplier

    @property
    def nyquist(self) -> float:
        return self.sample_rate / 2

    def with_overrides(self, **overrides) -> "ModemConfig":
        return replace(self, **overrides)


DEFAULT_CONFIG = ModemConfig()


def validate_config(config: ModemConfig) -> list[ConfigWarning]:
    """
    Check a configuration for values that will degrade the modem.
    Nothing here is fatal: the caller decides whether to log or show them.
    """
    warnings = []

    def warn(field, message):
        warnings.append(ConfigWarning(field, message))

    if config.sample_rate <= 0:
        warn("sample_rate", f"sample_rate ({config.sample_rate}) must be positive.")
        return warnings
    if config.bit_rate <= 0:
        warn("bit_rate", f"bit_rate ({config.bit_rate}) must be positive.")
        return warnings

    if config.freq_0 >= config.freq_1:
        warn("freq_0", "FREQ_0 >= FREQ_1")
    if config.bit_duration_samples < 50:
        warn("bit_rate", f"BIT_DURATION_SAMPLES ({config.bit_duration_samples}) low.")
    if config.am_depth < 0 or config.am_depth > 1:
        warn("am_depth", "AM_MODULATION_DEPTH out of range.")
    if config.end_confirmations < 1:
        warn("end_confirmations", "END_DETECTION_CONFIRMATIONS should be at least 1.")
    if config.fec_redundancy < 1:
        warn("fec_redundancy", f"FEC_REDUNDANCY ({config.fec_redundancy}) below 1, using 1.")
    if not 0 < config.amplitude <= 1:
        warn("amplitude", f"AMPLITUDE ({config.amplitude}) outside (0, 1]; samples will clip or vanish.")

    for name in ("freq_0", "freq_1", "sync_freq", "end_freq"):
        freq = getattr(config, name)
        if freq <= 0 or freq >= config.nyquist:
            warn(name, f"{name} ({freq} Hz) outside (0, {config.nyquist} Hz).")

    if config.sync_samples <= 0:
        warn("sync_duration", "SYNC_TONE_DURATION yields no samples; sync cannot be found.")
    if config.bit_ratio_threshold < 1:
        warn("bit_ratio_threshold", "BIT_DECISION_RATIO_THRESHOLD below 1 makes both tones qualify.")
    if config.max_decode_bits < 8:
        warn("max_decode_bits", "MAX_DECODE_BITS below 8; no character can be decoded.")
    return warnings


def load_config(path=None, **overrides):
    """
    Build a configuration from an optional JSON settings file plus keyword overrides.

    Returns:
        (config, warnings) where warnings include unknown keys from the file.
    """
    known = {f.name for f in fields(ModemConfig)}
    values = {}
    warnings = []

    if path is not None:
        with open(path, "r") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Settings file {path} must hold a JSON object")
        for key, value in data.items():
            if key in known:
                values[key] = value
            else:
                warnings.append(ConfigWarning(key, f"Unknown setting '{key}' ignored."))

    for key, value in overrides.items():
        if key not in known:
            raise TypeError(f"Unknown configuration field: {key}")
        values[key] = value

    config = ModemConfig(**values)
    warnings.extend(validate_config(config))
    for w in warnings:
        logger.debug(str(w))
    return config, warnings
