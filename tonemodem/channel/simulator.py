import numpy as np
from scipy import signal

from tonemodem.config import SAMPLE_RATE


class AudioChannelSimulator:
    """
    Simulates the speaker -> air -> microphone path a modem transmission goes through:
    - Gain change (volume), clipped to the PCM range
    - Band limiting (4th order Butterworth low-pass)
    - AWGN (Additive White Gaussian Noise)
    """

    def __init__(self, sample_rate=SAMPLE_RATE, snr_db=20.0, seed=None):
        self.sample_rate = sample_rate
        self.snr_db = snr_db
        self.rng = np.random.default_rng(seed)

    def add_awgn(self, x, snr_db):
        """Add Additive White Gaussian Noise at specified SNR"""
        x = np.asarray(x, dtype=float)
        signal_power = np.mean(x ** 2) if x.size else 0.0

        # Silence: assume a reference power (amplitude 1.0 -> power 0.5)
        if signal_power == 0:
            signal_power = 0.5

        noise_power = signal_power / (10 ** (snr_db / 10))
        return x + self.rng.normal(0, np.sqrt(noise_power), x.size)

    def apply_gain(self, x, gain_db):
        return np.clip(np.asarray(x, dtype=float) * 10 ** (gain_db / 20), -1.0, 1.0)

    def lowpass(self, x, cutoff_hz, order=4):
        sos = signal.butter(order, cutoff_hz, 'low', fs=self.sample_rate, output='sos')
        return signal.sosfilt(sos, np.asarray(x, dtype=float))

    def simulate(self, tx_signal, gain_db=0.0, cutoff_hz=None):
        """Gain, optional band limit, then noise at the configured SNR."""
        rx = self.apply_gain(tx_signal, gain_db)
        if cutoff_hz is not None:
            rx = self.lowpass(rx, cutoff_hz)
        return self.add_awgn(rx, self.snr_db)
