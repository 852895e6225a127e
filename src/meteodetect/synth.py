"""
Synthetic complex baseband signals for exercising the detector.

Generates tones, complex white noise and tone bursts embedded in a
background, as complex128 arrays at a given sample rate.
"""

from typing import Optional

import numpy as np


def tone(
    num_samples: int,
    freq_hz: float,
    sample_rate: float,
    amplitude: float = 1.0,
    start_sample: int = 0,
) -> np.ndarray:
    """Complex exponential at freq_hz, phase-continuous from start_sample."""
    n = np.arange(start_sample, start_sample + num_samples)
    return amplitude * np.exp(2j * np.pi * freq_hz * n / sample_rate)


def complex_noise(
    num_samples: int,
    power: float,
    seed: Optional[int] = None,
) -> np.ndarray:
    """Circular complex Gaussian noise with the given mean power."""
    rng = np.random.default_rng(seed)
    scale = np.sqrt(power / 2)
    return scale * (rng.standard_normal(num_samples) + 1j * rng.standard_normal(num_samples))


def tone_burst(
    sample_rate: float,
    freq_hz: float,
    burst_seconds: float,
    lead_seconds: float,
    trail_seconds: float,
    amplitude: float = 1.0,
    background: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Tone burst preceded and followed by a background.

    Args:
        sample_rate: Sample rate in Hz
        freq_hz: Burst frequency in Hz
        burst_seconds: Burst duration
        lead_seconds: Background before the burst
        trail_seconds: Background after the burst
        amplitude: Burst amplitude
        background: Samples added under the whole signal; zeros if None.
            Must be at least as long as the generated signal.

    Returns:
        complex128 array of lead + burst + trail samples
    """
    lead = int(round(lead_seconds * sample_rate))
    burst = int(round(burst_seconds * sample_rate))
    trail = int(round(trail_seconds * sample_rate))
    total = lead + burst + trail

    sig = np.zeros(total, dtype=np.complex128)
    sig[lead:lead + burst] = tone(burst, freq_hz, sample_rate, amplitude, start_sample=lead)

    if background is not None:
        if len(background) < total:
            raise ValueError(f"Background has {len(background)} samples, need {total}")
        sig += background[:total]

    return sig
