"""
INTERACTION HISTORY LOG
=======================

Append-only record of chat and document interactions, stored as a single JSON
list on disk (Settings.history_file). Each append reads the whole list, adds one
entry and writes the whole list back.

CONCURRENCY:
  A read-modify-write that isn't serialized can drop an entry when two requests
  append at the same time. One lock owns the whole cycle, so appends are applied
  one after another. A threading.Lock is used (not asyncio.Lock) because there is
  no await inside the critical section and it also covers threadpool workers.

  The new list is written to a temp file in the same directory and moved over the
  old one with os.replace, so a reader only ever sees a complete document.

FAILURES:
  append() never raises. Any I/O failure, reading or writing, is logged as a
  HistoryWriteFailure and the user-facing request carries on. It does blocking file
  I/O, so the API calls it from the threadpool. read_all() does raise; the API
  turns that into a 500.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import List

from gateway.errors import HistoryWriteFailure
from gateway.models import HistoryEntry
from gateway.utils.time_info import get_timestamp

logger = logging.getLogger("GATEWAY")


class HistoryLog:
    """Sole writer of the history file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def read_all(self) -> List[HistoryEntry]:
        """Every entry in append order; [] if nothing has been logged yet."""
        if not self.path.exists():
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        return [HistoryEntry.model_validate(item) for item in raw]

    def append(self, user_message: str, ai_response: str) -> bool:
        """
        Add one entry. Returns True if it was written, False if the write failed
        (the failure is logged, not raised).
        """
        entry = HistoryEntry(userMessage=user_message, aiResponse=ai_response, timestamp=get_timestamp())
        try:
            with self._lock:
                entries = self._load_raw()
                entries.append(entry.model_dump())
                self._write_atomic(entries)
        except HistoryWriteFailure as e:
            logger.error("History append failed: %s", e)
            return False
        logger.info("History entry saved (%d total)", len(entries))
        return True

    def _load_raw(self) -> list:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as e:
            raise HistoryWriteFailure(f"could not read {self.path}: {e}") from e
        if not isinstance(data, list):
            raise HistoryWriteFailure(f"{self.path} does not contain a JSON list")
        return data

    def _write_atomic(self, entries: list) -> None:
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".history-", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(entries, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise HistoryWriteFailure(f"could not write {self.path}: {e}") from e
