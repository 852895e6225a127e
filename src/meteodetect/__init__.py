"""MeteoDetect - meteor-scatter chirp detection for complex baseband streams."""

__version__ = "0.1.0"

from .detector import ChirpDetector, DetectorConfig
from .dsp import ButterworthLowPass, Oscillator, abs_to_norm_freq
from .errors import InitializationError, InputUnavailableError, MeteoDetectError
from .event_log import EventLogger
from .hysteresis import ChirpState, ChirpStateMachine
from .sample_io import SAMPLE_DTYPE, SampleReader, SampleWriter, read_samples, write_samples
from .types import ChirpEvent, DetectorStats

__all__ = [
    # Detector
    "ChirpDetector",
    "DetectorConfig",
    # DSP
    "ButterworthLowPass",
    "Oscillator",
    "abs_to_norm_freq",
    # State machine
    "ChirpState",
    "ChirpStateMachine",
    # Types
    "ChirpEvent",
    "DetectorStats",
    # I/O
    "SAMPLE_DTYPE",
    "SampleReader",
    "SampleWriter",
    "read_samples",
    "write_samples",
    "EventLogger",
    # Errors
    "MeteoDetectError",
    "InitializationError",
    "InputUnavailableError",
]
