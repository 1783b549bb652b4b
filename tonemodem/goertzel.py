import numpy as np
from scipy import signal


def goertzel_energy(samples: np.ndarray, freq: float, sample_rate: float) -> float:
    """
    Squared magnitude of the DFT bin nearest to freq over the whole window.

    The Goertzel recurrence  q[n] = x[n] + 2cos(w) q[n-1] - q[n-2]  is the IIR filter
    b = [1], a = [1, -2cos(w), 1], so lfilter runs it without a Python loop.
    Returns 0.0 for an empty window.
    """
    x = np.asarray(samples, dtype=np.float64)
    n = x.size
    if n == 0:
        return 0.0

    k = int(np.floor(0.5 + n * freq / sample_rate))
    omega = 2.0 * np.pi * k / n
    coeff = 2.0 * np.cos(omega)

    q = signal.lfilter([1.0], [1.0, -coeff, 1.0], x)
    q1 = float(q[-1])
    q2 = float(q[-2]) if n > 1 else 0.0
    return q1 * q1 + q2 * q2 - coeff * q1 * q2


def goertzel_energies(samples: np.ndarray, freqs, sample_rate: float) -> list[float]:
    """Energy at each of freqs over the same window."""
    return [goertzel_energy(samples, f, sample_rate) for f in freqs]
