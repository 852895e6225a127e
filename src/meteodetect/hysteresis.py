"""
Two-state hysteresis for turning windowed energy into chirp events.

The state machine consumes the integrated power ratio once per sample.
Entering a chirp attributes the whole integration window to it; leaving a
chirp reports a ChirpEvent and starts draining a tail of valid output
samples, which compensates for the lag of the windowed statistic.
"""

from enum import Enum
from typing import Optional

from .types import ChirpEvent


class ChirpState(Enum):
    """Detector state."""
    IDLE = "idle"
    IN_CHIRP = "in_chirp"


class ChirpStateMachine:
    """
    Hysteresis state machine over the windowed power-ratio integral.

    Transitions (threshold equality counts as above threshold):
    - IDLE -> IN_CHIRP when integral >= threshold; chirp_length and
      tail_remaining are both set to window_len
    - IN_CHIRP stays while integral >= threshold; chirp_length grows by one
    - IN_CHIRP -> IDLE when integral < threshold; a ChirpEvent is returned

    After the transition logic, an IDLE machine with a pending tail
    decrements tail_remaining by one.
    """

    def __init__(self, window_len: int, threshold: float, sample_rate: float):
        """
        Initialize the state machine.

        Args:
            window_len: Integration window length in samples
            threshold: Energy threshold the integral is compared against
            sample_rate: Sample rate in Hz (for event timestamps)
        """
        if window_len < 1:
            raise ValueError(f"Window length must be >= 1, got {window_len}")

        self.window_len = window_len
        self.threshold = threshold
        self.sample_rate = sample_rate

        self.state = ChirpState.IDLE
        self.chirp_length = 0
        self.tail_remaining = 0

    @property
    def in_chirp(self) -> bool:
        return self.state is ChirpState.IN_CHIRP

    @property
    def valid(self) -> bool:
        """Whether the current output sample belongs to a chirp or its tail."""
        return self.tail_remaining != 0

    def update(self, integral: float, sample_counter: int) -> Optional[ChirpEvent]:
        """
        Advance the state machine by one sample.

        Args:
            integral: Sum of the power-ratio window for this sample
            sample_counter: Number of samples fed before this one

        Returns:
            ChirpEvent if a chirp ended on this sample, otherwise None
        """
        event = None
        above = integral >= self.threshold

        if self.state is ChirpState.IN_CHIRP:
            if above:
                self.chirp_length += 1
            else:
                event = ChirpEvent(
                    length=self.chirp_length,
                    start_sample=sample_counter - self.chirp_length,
                    sample_rate=self.sample_rate,
                )
                self.state = ChirpState.IDLE
        elif above:
            self.state = ChirpState.IN_CHIRP
            self.chirp_length = self.window_len
            self.tail_remaining = self.window_len

        # Drain the trailing window while idle
        if self.state is ChirpState.IDLE and self.tail_remaining > 0:
            self.tail_remaining -= 1

        return event

    def reset(self):
        """Return to IDLE with no pending tail."""
        self.state = ChirpState.IDLE
        self.chirp_length = 0
        self.tail_remaining = 0
