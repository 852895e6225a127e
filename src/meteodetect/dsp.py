"""
Sample-at-a-time DSP primitives used by the chirp detector.

Provides the two stateful building blocks of the down-conversion chain:
- Oscillator: numerically-controlled local oscillator (unit-magnitude output)
- ButterworthLowPass: low-pass IIR filter designed with scipy, run one
  complex sample per call as a cascade of second-order sections

Frequencies are normalized against the Nyquist frequency, so a normalized
frequency of 1.0 corresponds to sample_rate / 2.
"""

import cmath
import math
from typing import List

import numpy as np
from scipy import signal


def abs_to_norm_freq(sample_rate: float, freq_hz: float) -> float:
    """Convert an absolute frequency in Hz to a Nyquist-normalized frequency."""
    return 2.0 * freq_hz / sample_rate


class Oscillator:
    """
    Numerically-controlled oscillator.

    Each call to read() returns exp(j * phase) and advances the phase by
    pi * norm_freq radians. The phase accumulator is kept wrapped to
    [0, 2*pi) so long streams do not lose precision.
    """

    def __init__(self, norm_freq: float):
        """
        Initialize the oscillator.

        Args:
            norm_freq: Output frequency normalized to Nyquist (may be negative)
        """
        self.norm_freq = norm_freq
        self.omega = math.pi * norm_freq
        self.phase = 0.0

    def read(self) -> complex:
        """Return the current oscillator sample and advance one step."""
        sample = cmath.exp(1j * self.phase)
        self.phase = math.fmod(self.phase + self.omega, 2 * math.pi)
        if self.phase < 0:
            self.phase += 2 * math.pi
        return sample

    def reset(self):
        self.phase = 0.0


class ButterworthLowPass:
    """
    Stateful Butterworth low-pass filter for complex samples.

    The filter is designed as second-order sections (scipy.signal.butter with
    output='sos') and evaluated in transposed direct form II, one sample per
    feed() call. Real coefficients are applied to complex input, so the
    passband is symmetric around DC.
    """

    def __init__(self, order: int, cutoff: float):
        """
        Design the filter.

        Args:
            order: Filter order (number of poles)
            cutoff: Cutoff frequency normalized to Nyquist, 0 < cutoff < 1

        Raises:
            ValueError: If order or cutoff are out of range
        """
        if order < 1:
            raise ValueError(f"Filter order must be >= 1, got {order}")
        if not 0 < cutoff < 1:
            raise ValueError(f"Normalized cutoff must be in (0, 1), got {cutoff}")

        self.order = order
        self.cutoff = cutoff
        self.sos = signal.butter(order, cutoff, btype="low", output="sos")

        # Plain Python floats keep the per-sample loop free of numpy scalars
        self._sections = [
            (float(b0), float(b1), float(b2), float(a1), float(a2))
            for b0, b1, b2, _a0, a1, a2 in self.sos
        ]
        self._state: List[List[complex]] = [[0j, 0j] for _ in self._sections]

    @property
    def num_sections(self) -> int:
        return len(self._sections)

    def feed(self, x: complex) -> complex:
        """Filter one sample and return the filtered sample."""
        for (b0, b1, b2, a1, a2), z in zip(self._sections, self._state):
            y = b0 * x + z[0]
            z[0] = b1 * x - a1 * y + z[1]
            z[1] = b2 * x - a2 * y
            x = y
        return x

    def frequency_response(self, freqs_norm: np.ndarray) -> np.ndarray:
        """
        Complex frequency response at the given Nyquist-normalized frequencies.

        Used for diagnostics and tests; does not touch the filter state.
        """
        _, h = signal.sosfreqz(self.sos, worN=np.pi * np.asarray(freqs_norm))
        return h

    def reset(self):
        """Clear the filter memory."""
        self._state = [[0j, 0j] for _ in self._sections]
