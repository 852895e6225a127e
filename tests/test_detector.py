"""Tests for the chirp detector pipeline."""

import math
from pathlib import Path
from unittest.mock import Mock

import numpy as np
import pytest

from meteodetect.detector import ChirpDetector, DetectorConfig
from meteodetect.errors import InitializationError
from meteodetect.sample_io import read_samples
from meteodetect.synth import complex_noise, tone, tone_burst

SAMPLE_RATE = 8000.0
CARRIER_OFFSET = 1000.0


# =============================================================================
# Configuration
# =============================================================================

class TestDetectorConfig:
    """Tests for derived configuration values."""

    def test_defaults(self):
        cfg = DetectorConfig()
        assert cfg.sample_rate == 8000
        assert cfg.carrier_offset == 1000
        assert cfg.noise_cutoff == 300
        assert cfg.signal_cutoff == 50
        assert cfg.noise_filter_order == 5
        assert cfg.signal_filter_order == 4

    def test_default_window_is_560(self):
        assert DetectorConfig().window_len == 560

    def test_threshold_ratio(self):
        cfg = DetectorConfig()
        assert cfg.power_ratio == pytest.approx(50 / 300)
        assert cfg.threshold_ratio == pytest.approx(2 * 50 / 300)

    def test_ema_alpha_in_range(self):
        alpha = DetectorConfig().ema_alpha
        assert 0 < alpha < 1
        assert alpha == pytest.approx(1 - math.exp(-1 / 560))

    def test_validate_ok(self):
        DetectorConfig().validate()

    @pytest.mark.parametrize("kwargs", [
        {"sample_rate": 0},
        {"sample_rate": -8000},
        {"min_chirp_duration": 0},
        {"threshold_factor": 0},
        {"noise_cutoff": 4000},
        {"signal_cutoff": 0},
        {"noise_filter_order": 0},
    ])
    def test_validate_rejects(self, kwargs):
        with pytest.raises(ValueError):
            DetectorConfig(**kwargs).validate()

    def test_to_dict(self, tmp_path):
        data = DetectorConfig(output_path=tmp_path / "x.raw").to_dict()
        assert data["output_path"] == str(tmp_path / "x.raw")
        assert data["sample_rate"] == 8000


# =============================================================================
# Construction and lifecycle
# =============================================================================

class TestDetectorConstruction:
    """Tests for building and closing a detector."""

    @pytest.mark.parametrize("sample_rate", [8000.0, 11025.0, 44100.0, 250000.0])
    def test_window_and_threshold(self, make_config, sample_rate):
        cfg = make_config(sample_rate=sample_rate)
        with ChirpDetector(cfg, echo=False) as det:
            assert det.window_len == math.ceil(sample_rate * cfg.min_chirp_duration)
            assert det.energy_threshold == cfg.threshold_ratio * det.window_len

    def test_initial_state(self, make_config):
        with ChirpDetector(make_config(), echo=False) as det:
            assert det.noise_power == 0.0
            assert det.signal_power == 0.0
            assert det.write_index == 0
            assert det.sample_counter == 0
            assert det.in_chirp is False
            assert det.tail_remaining == 0

    def test_opens_output(self, make_config):
        cfg = make_config("out.raw")
        det = ChirpDetector(cfg, echo=False)
        assert Path(cfg.output_path).exists()
        det.close()

    def test_invalid_config_raises_initialization_error(self, make_config):
        cfg = make_config(sample_rate=0)
        with pytest.raises(InitializationError) as exc_info:
            ChirpDetector(cfg)
        assert isinstance(exc_info.value.__cause__, ValueError)
        assert not Path(cfg.output_path).exists()

    def test_cutoff_above_nyquist(self, make_config):
        with pytest.raises(InitializationError):
            ChirpDetector(make_config(sample_rate=400))

    def test_unopenable_output(self, tmp_path):
        cfg = DetectorConfig(output_path=tmp_path / "missing" / "dir" / "out.raw")
        with pytest.raises(InitializationError) as exc_info:
            ChirpDetector(cfg)
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_close_is_idempotent(self, make_config):
        det = ChirpDetector(make_config(), echo=False)
        det.close()
        det.close()
        assert det.closed

    def test_feed_after_close(self, make_config):
        det = ChirpDetector(make_config(), echo=False)
        det.close()
        with pytest.raises(ValueError):
            det.feed(1 + 0j)


# =============================================================================
# Per-sample feed
# =============================================================================

class TestFeed:
    """Tests for the per-sample pipeline."""

    def test_one_output_per_input(self, make_config):
        cfg = make_config()
        x = complex_noise(1234, 1.0, seed=1)
        with ChirpDetector(cfg, echo=False) as det:
            det.feed_many(x)
        out = read_samples(cfg.output_path)
        assert len(out) == 1234

    def test_write_index_wraps(self, make_config):
        with ChirpDetector(make_config(), echo=False) as det:
            det.feed_many(np.zeros(det.window_len + 3, dtype=np.complex64))
            assert det.write_index == 3
            assert det.sample_counter == det.window_len + 3

    def test_accepts_numpy_scalars(self, make_config):
        with ChirpDetector(make_config(), echo=False) as det:
            det.feed(np.complex64(0.5 - 0.25j))
            det.feed(np.complex128(1j))
            assert det.sample_counter == 2
            assert det.noise_power > 0

    def test_silent_input(self, make_config):
        """All-zero input never raises the powers and never starts a chirp."""
        cfg = make_config()
        with ChirpDetector(cfg, echo=False) as det:
            det.feed_many(np.zeros(3000, dtype=np.complex64))
            assert det.noise_power == 0.0
            assert det.signal_power == 0.0
            assert not det.in_chirp
            assert det.stats.chirps_detected == 0

        out = read_samples(cfg.output_path)
        assert len(out) == 3000
        assert not np.any(out)

    def test_power_estimates_track_noise(self, make_config):
        """White noise leaves the narrow band with about 1/6 of the wide-band power."""
        with ChirpDetector(make_config(), echo=False) as det:
            det.feed_many(complex_noise(8000, 1.0, seed=11))
            assert det.noise_power > 0
            assert det.signal_power > 0
            assert det.signal_power < det.noise_power

    def test_stats(self, make_config):
        with ChirpDetector(make_config(), echo=False) as det:
            det.feed_many(np.zeros(100, dtype=np.complex64))
            stats = det.stats
        assert stats.samples_processed == 100
        assert stats.chirps_detected == 0
        assert stats.valid_samples == 0

    def test_sustained_tone_enters_within_window(self, make_config):
        """A tone at the carrier from the first sample starts a chirp inside one window."""
        sig = tone(1200, CARRIER_OFFSET, SAMPLE_RATE)
        entered_at = None
        with ChirpDetector(make_config(), echo=False) as det:
            for n, x in enumerate(sig):
                det.feed(x)
                if entered_at is None and det.in_chirp:
                    entered_at = n
            assert entered_at is not None
            assert entered_at < det.window_len
            assert det.chirp_length >= det.window_len

    def test_tone_in_silence_keeps_chirp_open(self, make_config):
        """
        With nothing but silence after a burst, both power estimates decay at
        the same rate, so the ratio stays high and the chirp never closes.
        """
        callback = Mock()
        sig = tone_burst(SAMPLE_RATE, CARRIER_OFFSET, 0.07, 0.5, 1.0)
        with ChirpDetector(make_config(), on_chirp=callback, echo=False) as det:
            det.feed_many(sig)
            assert det.in_chirp
            assert det.chirp_length > det.window_len
        callback.assert_not_called()


# =============================================================================
# End to end
# =============================================================================

class TestEndToEnd:
    """Tone burst over an out-of-band interferer."""

    @pytest.fixture
    def result(self, make_config, burst_signal, capsys):
        cfg = make_config("burst.raw")
        events = []
        det = ChirpDetector(cfg, on_chirp=events.append)
        det.feed_many(burst_signal)
        det.close()
        console = capsys.readouterr().out
        return det, events, read_samples(cfg.output_path), console

    def test_single_chirp(self, result):
        det, events, _, console = result
        assert len(events) == 1
        assert det.stats.chirps_detected == 1
        assert console.count("Chirp of length") == 1

    def test_console_notice(self, result):
        _, events, _, console = result
        assert console.strip() == events[0].format()

    def test_chirp_length_covers_window(self, result):
        det, events, _, _ = result
        assert events[0].length >= det.window_len

    def test_timestamp(self, result):
        """The burst starts 2.5 s into the stream."""
        _, events, _, _ = result
        assert events[0].timestamp == "00:00:02"

    def test_output_length(self, result, burst_signal):
        _, _, out, _ = result
        assert len(out) == len(burst_signal)

    def test_valid_samples_match_chirp_length(self, result):
        det, events, out, _ = result
        valid = out.real == 1.0
        assert np.all((out.real == 0.0) | valid)
        assert int(valid.sum()) == events[0].length
        assert det.stats.valid_samples == events[0].length

    def test_valid_samples_contiguous(self, result):
        _, _, out, _ = result
        idx = np.flatnonzero(out.real == 1.0)
        assert len(idx) > 0
        assert np.all(np.diff(idx) == 1)

    def test_phase_output(self, result):
        _, _, out, _ = result
        valid = out.real == 1.0
        assert np.all(out.imag[~valid] == 0.0)
        assert np.all(np.abs(out.imag[valid]) <= np.float32(np.pi))
        # The burst sits at the carrier, so the discriminator phase is small
        assert np.median(np.abs(out.imag[valid])) < 0.5

    def test_tail_drained(self, result):
        det, _, _, _ = result
        assert not det.in_chirp
        assert det.tail_remaining == 0


class TestDeterminism:
    """Identical input gives identical output."""

    def test_bit_identical_output(self, make_config, capsys):
        sig = tone_burst(
            SAMPLE_RATE, CARRIER_OFFSET, 0.07, 0.3, 0.5,
            background=complex_noise(8000, 0.05, seed=5),
        )
        notices = []
        paths = []
        for name in ("a.raw", "b.raw"):
            cfg = make_config(name)
            with ChirpDetector(cfg) as det:
                det.feed_many(sig)
            notices.append(capsys.readouterr().out)
            paths.append(cfg.output_path)

        assert Path(paths[0]).read_bytes() == Path(paths[1]).read_bytes()
        assert notices[0] == notices[1]
