"""
Data types produced by the chirp detector.

These types describe a detected chirp event and the running statistics of
a detection session.
"""

import math
from dataclasses import dataclass


@dataclass
class ChirpEvent:
    """
    A chirp reported when the windowed energy drops back below threshold.

    The start sample is attributed retroactively: the chirp is considered to
    have begun `length` samples before the sample that ended it, since the
    windowed sum lags the true chirp boundary.

    Attributes:
        length: Chirp length in samples (always >= the integration window)
        start_sample: Index of the first sample attributed to the chirp
        sample_rate: Sample rate in Hz, used for timestamp conversion
    """
    length: int
    start_sample: int
    sample_rate: float

    @property
    def elapsed_seconds(self) -> int:
        """Whole seconds from stream start to the chirp start."""
        return int(math.floor(self.start_sample / self.sample_rate))

    @property
    def hours(self) -> int:
        return self.elapsed_seconds // 3600

    @property
    def minutes(self) -> int:
        return (self.elapsed_seconds // 60) % 60

    @property
    def seconds(self) -> int:
        return self.elapsed_seconds % 60

    @property
    def timestamp(self) -> str:
        """Elapsed time as HH:MM:SS."""
        return f"{self.hours:02d}:{self.minutes:02d}:{self.seconds:02d}"

    @property
    def duration_ms(self) -> float:
        """Chirp length in milliseconds."""
        return self.length / self.sample_rate * 1000

    def format(self) -> str:
        """Console notice for this chirp."""
        return f"Chirp of length {self.length:5d} detected (at {self.timestamp})"

    def to_dict(self) -> dict:
        return {
            "length": self.length,
            "start_sample": self.start_sample,
            "timestamp": self.timestamp,
            "elapsed_seconds": self.elapsed_seconds,
            "duration_ms": round(self.duration_ms, 3),
        }


@dataclass
class DetectorStats:
    """Running counters for a detection session."""
    samples_processed: int = 0
    chirps_detected: int = 0
    valid_samples: int = 0

    @property
    def valid_fraction(self) -> float:
        """Fraction of output samples flagged valid."""
        return self.valid_samples / max(1, self.samples_processed)

    def to_dict(self) -> dict:
        return {
            "samples_processed": self.samples_processed,
            "chirps_detected": self.chirps_detected,
            "valid_samples": self.valid_samples,
            "valid_fraction": self.valid_fraction,
        }
