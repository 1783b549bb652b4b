import logging
import math
from dataclasses import dataclass
from enum import Enum

import numpy as np

from tonemodem.config import ModemConfig, DEFAULT_CONFIG
from tonemodem.errors import ModemError, SampleRateMismatch, SyncNotFound, InsufficientBits, GenericDecodeError
from tonemodem.goertzel import goertzel_energy
from tonemodem.protocol.bits import text_to_bits, expand_fec, reduce_fec, bits_to_text
from tonemodem.tones import shaped_tone

encoder_log = logging.getLogger("TONEMODEM.encoder")
decoder_log = logging.getLogger("TONEMODEM.decoder")

SYNC_MIN_WINDOW_FRACTION = 0.8  # sync windows shorter than this fraction are skipped
SYNC_STEPS_PER_WINDOW = 5
BIT_TRIM_FRACTION = 0.15        # trimmed from each end of a bit window before measuring


class DecoderState(Enum):
    SEARCHING = 0
    DEMODULATING = 1
    SUCCEEDED = 2
    FAILED = 3


class StopReason(Enum):
    BUFFER_END = "buffer_end"
    INVALID_WINDOW = "invalid_window"
    END_TONE = "end_tone"
    BIT_LIMIT = "bit_limit"


@dataclass
class DecodeReport:
    state: DecoderState = DecoderState.SEARCHING
    text: str = ""
    sync_index: int = -1
    sync_energy: float = 0.0
    max_sync_energy: float = 0.0
    raw_bits: str = ""
    payload_bits: str = ""
    stop_reason: StopReason | None = None
    dropped_bits: int = 0

    @property
    def bits_decoded(self) -> int:
        return len(self.raw_bits)


class FrameEncoder:
    """Builds [sync tone][one tone per FEC-expanded bit][end tone] as one PCM buffer."""

    def __init__(self, config: ModemConfig = DEFAULT_CONFIG):
        self.config = config

    def frame_bits(self, text: str) -> str:
        return expand_fec(text_to_bits(text), self.config.redundancy)

    def total_duration(self, num_bits: int) -> float:
        cfg = self.config
        return cfg.sync_duration + num_bits * cfg.bit_duration + cfg.end_duration

    def sample_count(self, num_bits: int) -> int:
        return math.floor(self.total_duration(num_bits) * self.config.sample_rate)

    def encode(self, text: str) -> np.ndarray:
        cfg = self.config
        bits = self.frame_bits(text)
        out = np.zeros(self.sample_count(len(bits)))
        encoder_log.debug(f"[Enc] SR={cfg.sample_rate}, BR={cfg.bit_rate}, F0={cfg.freq_0}, "
                          f"F1={cfg.freq_1}, AM={cfg.am_enabled}")
        encoder_log.debug(f"[Enc] Bits: {len(bits)}. Duration: {self.total_duration(len(bits)):.3f}s, "
                          f"Samples: {out.size}")

        offset = self._place(out, 0, cfg.sync_freq, cfg.sync_duration)
        for bit in bits:
            freq = cfg.freq_0 if bit == '0' else cfg.freq_1
            offset = self._place(out, offset, freq, cfg.bit_duration)
        offset = self._place(out, offset, cfg.end_freq, cfg.end_duration)

        encoder_log.debug(f"[Enc] Finished. Offset {offset} / {out.size}.")
        return out

    def _place(self, out: np.ndarray, offset: int, freq: float, duration: float) -> int:
        """Copy one shaped tone into out at offset. Returns the new offset."""
        tone = shaped_tone(freq, duration, self.config)
        space = out.size - offset
        if tone.size <= space:
            out[offset:offset + tone.size] = tone
            return offset + tone.size
        if space > 0:
            out[offset:] = tone[:space]
            encoder_log.warning(f"[Enc] Tone at {freq}Hz truncated ({tone.size - space} samples).")
            return out.size
        return offset


class FrameDecoder:
    """
    Single-pass demodulator: find the sync tone, then read fixed-width bit windows.

    SEARCHING -> DEMODULATING -> SUCCEEDED | FAILED, never backwards.
    """

    def __init__(self, config: ModemConfig = DEFAULT_CONFIG):
        self.config = config

    def find_sync(self, samples: np.ndarray):
        """
        Slide a sync-length window and accept the FIRST one above the sync threshold.

        Returns:
            (sync_index, energy, max_energy_seen)
        Raises:
            SyncNotFound with the maximum energy observed.
        """
        cfg = self.config
        win = cfg.sync_samples
        step = max(1, win // SYNC_STEPS_PER_WINDOW)
        required = cfg.sync_required_energy
        decoder_log.debug(f"[Dec] Searching sync ({cfg.sync_freq}Hz), Req Sync E > {required:.3e}")

        max_energy = 0.0
        for i in range(0, len(samples) - win, step):
            segment = samples[i:i + win]
            if len(segment) < win * SYNC_MIN_WINDOW_FRACTION:
                continue
            energy = goertzel_energy(segment, cfg.sync_freq, cfg.sample_rate)
            max_energy = max(max_energy, energy)
            if energy > required:
                decoder_log.debug(f"[Dec] Sync found @ index {i}, E={energy:.3e}")
                return i, energy, max_energy

        decoder_log.info(f"[Dec] Sync NOT found (Max E: {max_energy:.3e}).")
        raise SyncNotFound(max_energy, required)

    def decide_bit(self, energy_0: float, energy_1: float) -> str:
        ratio = self.config.bit_ratio_threshold
        if energy_1 > energy_0 * ratio:
            return '1'
        if energy_0 > energy_1 * ratio:
            return '0'
        return '1' if energy_1 >= energy_0 else '0'

    def is_end_tone(self, energy_end: float, energy_0: float, energy_1: float) -> bool:
        cfg = self.config
        return (energy_end > cfg.end_required_energy
                and energy_end > cfg.end_multiplier * max(energy_0, energy_1))

    def demodulate(self, samples: np.ndarray, start: int):
        """
        Read bit windows from start until the buffer ends, a window is invalid,
        the end tone dominates, or the bit cap is reached.

        Returns:
            (raw_bits, stop_reason)
        """
        cfg = self.config
        width = cfg.bit_duration_samples
        trim = math.floor(width * BIT_TRIM_FRACTION)
        bits = []
        bit_index = start
        stop = StopReason.BUFFER_END

        while bit_index + width <= len(samples):
            if len(bits) >= cfg.max_decode_bits:
                stop = StopReason.BIT_LIMIT
                decoder_log.warning(f"[Dec] Loop STOPPED by max bit limit ({cfg.max_decode_bits}).")
                break
            lo = bit_index + trim
            hi = bit_index + width - trim
            if lo >= hi:
                stop = StopReason.INVALID_WINDOW
                decoder_log.warning(f"[Dec] Invalid window @ bit {len(bits)}. Stop.")
                break

            segment = samples[lo:hi]
            e0 = goertzel_energy(segment, cfg.freq_0, cfg.sample_rate)
            e1 = goertzel_energy(segment, cfg.freq_1, cfg.sample_rate)
            e_end = goertzel_energy(segment, cfg.end_freq, cfg.sample_rate)
            if self.is_end_tone(e_end, e0, e1):
                stop = StopReason.END_TONE
                decoder_log.debug(f"[Dec] End tone @ bit {len(bits)}, E={e_end:.3e}")
                break

            bits.append(self.decide_bit(e0, e1))
            bit_index += width
            if len(bits) <= 24 or len(bits) % 200 == 0:
                decoder_log.debug(f"[Dec] Bit {len(bits) - 1} -> {bits[-1]} (E0={e0:.3e}, E1={e1:.3e})")

        decoder_log.debug(f"[Dec] Loop stopped ({stop.value}) after {len(bits)} bits.")
        return "".join(bits), stop

    def run(self, samples, sample_rate: int) -> DecodeReport:
        """
        Full decode with diagnostics. Raises ModemError subclasses on failure; the
        partially filled report (state FAILED) is attached to the error as `report`.
        """
        cfg = self.config
        if sample_rate != cfg.sample_rate:
            raise SampleRateMismatch(cfg.sample_rate, sample_rate)
        try:
            samples = np.asarray(samples, dtype=np.float64).ravel()
        except (TypeError, ValueError) as e:
            raise GenericDecodeError(f"Unreadable sample buffer: {e}") from e
        decoder_log.debug(f"[Dec] Starting. SR={sample_rate}, Samples={samples.size}")

        report = DecodeReport()
        try:
            self._run(samples, report)
        except ModemError as e:
            report.state = DecoderState.FAILED
            e.report = report
            raise
        return report

    def _run(self, samples: np.ndarray, report: DecodeReport):
        cfg = self.config
        report.sync_index, report.sync_energy, report.max_sync_energy = self.find_sync(samples)

        report.state = DecoderState.DEMODULATING
        report.raw_bits, report.stop_reason = self.demodulate(samples, report.sync_index + cfg.sync_samples)
        if report.bits_decoded < 8:
            raise InsufficientBits(report.bits_decoded, stage="demodulation")

        report.payload_bits = reduce_fec(report.raw_bits, cfg.redundancy)
        if len(report.payload_bits) < 8:
            raise InsufficientBits(len(report.payload_bits), stage="fec")

        report.dropped_bits = len(report.payload_bits) % 8
        report.text = bits_to_text(report.payload_bits)
        report.state = DecoderState.SUCCEEDED
        decoder_log.debug(f"[Dec] Final Text Length: {len(report.text)}")

    def decode(self, samples, sample_rate: int) -> str:
        return self.run(samples, sample_rate).text
