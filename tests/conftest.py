"""Shared fixtures for meteodetect tests."""

import numpy as np
import pytest

from meteodetect.detector import DetectorConfig
from meteodetect.synth import tone, tone_burst

SAMPLE_RATE = 8000.0
CARRIER_OFFSET = 1000.0

# Burst layout used by the end-to-end tests
LEAD_SECONDS = 2.5
BURST_SECONDS = 0.07
TRAIL_SECONDS = 3.0


@pytest.fixture
def make_config(tmp_path):
    """Factory for detector configs writing into tmp_path."""
    def _make(name: str = "detect.raw", **kwargs) -> DetectorConfig:
        kwargs.setdefault("sample_rate", SAMPLE_RATE)
        kwargs.setdefault("carrier_offset", CARRIER_OFFSET)
        return DetectorConfig(output_path=tmp_path / name, **kwargs)
    return _make


@pytest.fixture(scope="session")
def burst_signal() -> np.ndarray:
    """
    70 ms tone at the carrier offset over an interferer 200 Hz above it.

    The interferer sits inside the wide filter's passband but far outside
    the narrow one, so it holds the noise power estimate up without
    raising the ratio. That lets the ratio fall back after the burst.
    """
    total = int(round((LEAD_SECONDS + BURST_SECONDS + TRAIL_SECONDS) * SAMPLE_RATE))
    background = tone(total, CARRIER_OFFSET + 200.0, SAMPLE_RATE, amplitude=0.5)
    return tone_burst(
        SAMPLE_RATE,
        CARRIER_OFFSET,
        burst_seconds=BURST_SECONDS,
        lead_seconds=LEAD_SECONDS,
        trail_seconds=TRAIL_SECONDS,
        background=background,
    ).astype(np.complex64)
