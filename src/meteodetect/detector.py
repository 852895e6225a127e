"""
Per-sample chirp detector for complex baseband streams.

Detects short narrowband tone bursts (meteor-scatter reflections) by
comparing the power left after a narrow low-pass filter against the power
after a wider one:

1. Down-convert the input by the carrier offset and low-pass it (wide band)
2. Track noise power with an exponential moving average
3. Low-pass again (narrow band) and track signal power the same way
4. Store signal/noise in a circular window and sum the whole window
5. Run the hysteresis state machine on the sum
6. Emit (valid flag, instantaneous phase) for every input sample
"""

import cmath
import logging
import math
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

import numpy as np

from .dsp import ButterworthLowPass, Oscillator, abs_to_norm_freq
from .errors import InitializationError
from .hysteresis import ChirpStateMachine
from .sample_io import SampleWriter
from .types import ChirpEvent, DetectorStats

logger = logging.getLogger("meteodetect.detector")


@dataclass
class DetectorConfig:
    """Configuration for the chirp detector."""

    sample_rate: float = 8000.0         # Sample rate in Hz
    carrier_offset: float = 1000.0      # Oscillator frequency in Hz
    output_path: Union[str, Path] = "detect.raw"

    # Power sensing filters
    noise_cutoff: float = 300.0         # Wide filter cutoff in Hz (noise power)
    signal_cutoff: float = 50.0         # Narrow filter cutoff in Hz (tone isolation)
    noise_filter_order: int = 5
    signal_filter_order: int = 4

    # Detection
    min_chirp_duration: float = 0.07    # Seconds; sets window length and EMA speed
    threshold_factor: float = 2.0       # Multiple of the noise-only power ratio

    @property
    def power_ratio(self) -> float:
        """Expected signal/noise power ratio for white noise (bandwidth ratio)."""
        return self.signal_cutoff / self.noise_cutoff

    @property
    def threshold_ratio(self) -> float:
        """Per-sample power ratio that counts as a chirp."""
        return self.threshold_factor * self.power_ratio

    @property
    def window_len(self) -> int:
        """Integration window length in samples."""
        return math.ceil(self.sample_rate * self.min_chirp_duration)

    @property
    def ema_alpha(self) -> float:
        """Smoothing factor of the power estimators."""
        return 1 - math.exp(-1.0 / (self.sample_rate * self.min_chirp_duration))

    def validate(self):
        """
        Check the configuration for values the detector cannot run with.

        Raises:
            ValueError: On the first invalid field found
        """
        if not self.sample_rate > 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}")
        if not self.min_chirp_duration > 0:
            raise ValueError(f"Minimum chirp duration must be positive, got {self.min_chirp_duration}")
        if not self.threshold_factor > 0:
            raise ValueError(f"Threshold factor must be positive, got {self.threshold_factor}")

        nyquist = self.sample_rate / 2
        for name in ("noise_cutoff", "signal_cutoff"):
            cutoff = getattr(self, name)
            if not 0 < cutoff < nyquist:
                raise ValueError(f"{name} must be in (0, {nyquist}) Hz, got {cutoff}")
        for name in ("noise_filter_order", "signal_filter_order"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1, got {getattr(self, name)}")

    def to_dict(self) -> dict:
        data = asdict(self)
        data["output_path"] = str(self.output_path)
        return data


class ChirpDetector:
    """
    Streaming chirp detector.

    Owns its oscillator, both filters, the circular buffers and the output
    file. Call feed() once per input sample; every call writes exactly one
    output sample. Chirp ends are printed to the console (unless echo is
    off), logged, and passed to the optional on_chirp callback.

    The window integral is recomputed from the full buffer on every sample
    rather than kept as a running sum, so its rounding depends only on the
    buffer contents.

    Usage:
        with ChirpDetector(DetectorConfig(output_path="detect.raw")) as det:
            for x in samples:
                det.feed(x)
    """

    def __init__(
        self,
        config: Optional[DetectorConfig] = None,
        on_chirp: Optional[Callable[[ChirpEvent], None]] = None,
        echo: bool = True,
    ):
        """
        Build the detector and open its output file.

        Args:
            config: Detector configuration (defaults to DetectorConfig())
            on_chirp: Called with each ChirpEvent when a chirp ends
            echo: Print a console notice for each chirp

        Raises:
            InitializationError: If the config is invalid, a filter cannot
                be designed, buffers cannot be allocated or the output
                cannot be opened
        """
        self.config = config or DetectorConfig()
        self.on_chirp = on_chirp
        self.echo = echo

        self._writer: Optional[SampleWriter] = None
        self._closed = False

        cfg = self.config
        try:
            cfg.validate()

            self.sample_rate = float(cfg.sample_rate)
            self.carrier_offset = float(cfg.carrier_offset)
            self.alpha = cfg.ema_alpha

            self.oscillator = Oscillator(abs_to_norm_freq(cfg.sample_rate, cfg.carrier_offset))
            self.wide_filter = ButterworthLowPass(
                cfg.noise_filter_order, abs_to_norm_freq(cfg.sample_rate, cfg.noise_cutoff)
            )
            self.narrow_filter = ButterworthLowPass(
                cfg.signal_filter_order, abs_to_norm_freq(cfg.sample_rate, cfg.signal_cutoff)
            )

            self.window_len = cfg.window_len
            self.energy_threshold = cfg.threshold_ratio * self.window_len

            self._power_history = np.zeros(self.window_len, dtype=np.float64)
            self._delay_line = np.zeros(self.window_len, dtype=np.complex128)

            self._writer = SampleWriter(cfg.output_path)
        except (ValueError, MemoryError, OSError) as e:
            self.close()
            raise InitializationError(f"Failed to initialize chirp detector: {e}") from e

        self._fsm = ChirpStateMachine(self.window_len, self.energy_threshold, self.sample_rate)

        self.noise_power = 0.0
        self.signal_power = 0.0
        self._write_index = 0
        self._previous = 0j
        self._sample_counter = 0
        self._stats = DetectorStats()
        self.last_event: Optional[ChirpEvent] = None

        logger.debug(
            f"Detector ready: fs={self.sample_rate:.0f} Hz, fc={self.carrier_offset:.0f} Hz, "
            f"window={self.window_len} samples, alpha={self.alpha:.6g}, "
            f"threshold={self.energy_threshold:.4g}, output={cfg.output_path}"
        )

    @property
    def write_index(self) -> int:
        return self._write_index

    @property
    def sample_counter(self) -> int:
        return self._sample_counter

    @property
    def in_chirp(self) -> bool:
        return self._fsm.in_chirp

    @property
    def chirp_length(self) -> int:
        return self._fsm.chirp_length

    @property
    def tail_remaining(self) -> int:
        return self._fsm.tail_remaining

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def stats(self) -> DetectorStats:
        return DetectorStats(
            samples_processed=self._stats.samples_processed,
            chirps_detected=self._stats.chirps_detected,
            valid_samples=self._stats.valid_samples,
        )

    def feed(self, x: complex):
        """Process one complex baseband sample and write one output sample."""
        if self._closed:
            raise ValueError("feed on closed ChirpDetector")

        alpha = self.alpha

        # Down-convert and measure power inside the wide band
        y = self.wide_filter.feed(complex(x) * self.oscillator.read().conjugate())
        self.noise_power += alpha * ((y.real * y.real + y.imag * y.imag) - self.noise_power)

        # Isolate the tone and measure power inside the narrow band
        y = self.narrow_filter.feed(y)
        self.signal_power += alpha * ((y.real * y.real + y.imag * y.imag) - self.signal_power)

        # Noise power is exactly zero until the first non-zero input
        if self.noise_power > 0:
            ratio = self.signal_power / self.noise_power
        else:
            ratio = 0.0

        p = self._write_index
        self._power_history[p] = ratio
        self._delay_line[p] = y * self._previous.conjugate()

        p += 1
        if p == self.window_len:
            p = 0
        self._write_index = p
        # p now points to the oldest sample

        integral = float(self._power_history.sum())

        event = self._fsm.update(integral, self._sample_counter)
        if event is not None:
            self._report(event)

        if self._fsm.valid:
            out = complex(1.0, cmath.phase(self._delay_line[p]))
            self._stats.valid_samples += 1
        else:
            out = 0j
        self._writer.write(out)

        self._previous = y
        self._sample_counter += 1
        self._stats.samples_processed += 1

    def feed_many(self, samples: Iterable[complex]):
        """Feed a sequence of samples in order."""
        if isinstance(samples, np.ndarray):
            samples = samples.astype(np.complex128).tolist()
        for x in samples:
            self.feed(x)

    def _report(self, event: ChirpEvent):
        self.last_event = event
        self._stats.chirps_detected += 1
        logger.info(
            f"Chirp detected: {event.length} samples ({event.duration_ms:.1f} ms) "
            f"at {event.timestamp}"
        )
        if self.echo:
            print(event.format())
        if self.on_chirp:
            self.on_chirp(event)

    def close(self):
        """Flush and close the output file and drop the buffers. Safe to call twice."""
        if self._closed:
            return
        self._closed = True

        if self._writer is not None:
            try:
                self._writer.close()
            finally:
                self._writer = None

        self._power_history = None
        self._delay_line = None

        stats = getattr(self, "_stats", None)
        if stats is not None:
            logger.debug(f"Detector closed: {stats.to_dict()}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
