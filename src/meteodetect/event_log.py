"""
JSON-lines log of detected chirps.

Each line is one JSON object with an "event" field:
- session_start: input path and detector configuration
- chirp: one detected chirp (see ChirpEvent.to_dict)
- session_end: final detector statistics
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .errors import InitializationError
from .types import ChirpEvent, DetectorStats

logger = logging.getLogger("meteodetect.event_log")


class EventLogger:
    """Append-only JSON-lines writer for chirp events."""

    def __init__(self, path: Union[str, Path]):
        """
        Open the event log.

        Args:
            path: Log file path; parent directories are created

        Raises:
            InitializationError: If the log file cannot be created
        """
        self.path = Path(path)
        self.entries_written = 0
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.path, "w", encoding="utf-8")
        except OSError as e:
            raise InitializationError(f"cannot open event log {self.path}: {e}") from e

    def _write(self, entry_type: str, data: Dict[str, Any]):
        if self._file is None:
            return
        entry = {
            "event": entry_type,
            "logged_at": datetime.now().isoformat(),
            **data,
        }
        self._file.write(json.dumps(entry) + "\n")
        self._file.flush()
        self.entries_written += 1

    def start_session(self, input_path: Optional[str] = None, config: Optional[Dict[str, Any]] = None):
        self._write("session_start", {"input": input_path, "config": config or {}})

    def log_chirp(self, event: ChirpEvent):
        self._write("chirp", event.to_dict())

    def end_session(self, stats: DetectorStats):
        self._write("session_end", {"stats": stats.to_dict()})

    def close(self):
        if self._file is not None:
            self._file.close()
            self._file = None
            logger.debug(f"Event log closed: {self.entries_written} entries in {self.path}")
