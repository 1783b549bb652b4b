import numpy as np

from tonemodem.config import ModemConfig, DEFAULT_CONFIG, validate_config
from tonemodem.codec.wav import encode_wav, decode_wav
from tonemodem.protocol.framing import FrameEncoder, FrameDecoder, DecodeReport


class ToneModem:
    def __init__(self, config: ModemConfig | None = None):
        self.config = config if config is not None else DEFAULT_CONFIG
        self.warnings = validate_config(self.config)
        self.encoder = FrameEncoder(self.config)
        self.decoder = FrameDecoder(self.config)

    @property
    def sample_rate(self) -> int:
        return self.config.sample_rate

    def encode_samples(self, text: str) -> np.ndarray:
        """Sync tone, one tone per (FEC-expanded) bit, end tone."""
        return self.encoder.encode(text)

    def encode(self, text: str) -> bytes:
        """Encode text straight to WAV bytes."""
        return encode_wav(self.encode_samples(text), self.sample_rate)

    def expected_sample_count(self, text: str) -> int:
        return self.encoder.sample_count(len(self.encoder.frame_bits(text)))

    def decode(self, samples, sample_rate: int) -> str:
        return self.decoder.decode(samples, sample_rate)

    def analyze(self, samples, sample_rate: int) -> DecodeReport:
        """Decode and return the full diagnostic report."""
        return self.decoder.run(samples, sample_rate)

    def decode_wav(self, data: bytes) -> str:
        samples, sample_rate = decode_wav(data)
        return self.decode(samples, sample_rate)
