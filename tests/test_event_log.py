"""Tests for the JSON-lines chirp log."""

import json

import pytest

from meteodetect.errors import InitializationError
from meteodetect.event_log import EventLogger
from meteodetect.types import ChirpEvent, DetectorStats


class TestEventLogger:

    def test_entries(self, tmp_path):
        path = tmp_path / "events.jsonl"
        log = EventLogger(path)
        log.start_session("in.raw", {"sample_rate": 8000})
        log.log_chirp(ChirpEvent(length=700, start_sample=16000, sample_rate=8000))
        log.end_session(DetectorStats(samples_processed=10, chirps_detected=1, valid_samples=7))
        log.close()

        entries = [json.loads(line) for line in path.read_text().splitlines()]
        assert len(entries) == 3
        assert log.entries_written == 3
        assert all("logged_at" in e for e in entries)
        assert entries[1]["length"] == 700
        assert entries[1]["timestamp"] == "00:00:02"
        assert entries[2]["stats"]["valid_samples"] == 7

    def test_writes_ignored_after_close(self, tmp_path):
        path = tmp_path / "events.jsonl"
        log = EventLogger(path)
        log.close()
        log.log_chirp(ChirpEvent(length=560, start_sample=0, sample_rate=8000))
        log.close()
        assert path.read_text() == ""

    def test_unopenable_path(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(InitializationError):
            EventLogger(blocker / "events.jsonl")
