"""Local history of completed processing results.

Purpose of this abstraction:
    Keep a small, newest-first list of finished results on disk so a user can
    revisit earlier summaries and rewrites. The processing pipeline only
    produces `outputText`; this module decides what is persisted.

Persistence model:
    - One JSON array file (`REFINER_HISTORY_PATH`, default
      `~/.refiner/history.json`).
    - `append` prepends and trims to `max_entries`.
    - Records that fail validation are skipped on read, never repaired.
    - Each write goes to its own temporary file beside the target, which then
      replaces the target; a failed write removes its temporary file. A crash
      never leaves a half-written history.
"""

import json
import logging
import os
import tempfile
import time
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from refiner.core.options import (
    REWRITE_GOALS,
    SUMMARY_FORMATS,
    SUPPORTED_MODELS,
    TARGET_AUDIENCES,
    VALID_MODES,
    VALID_SUMMARY_LEVELS,
    VALID_TONES,
)


logger = logging.getLogger(__name__)

MAX_HISTORY_ENTRIES = 50
DEFAULT_HISTORY_PATH = os.path.join("~", ".refiner", "history.json")


@dataclass
class HistoryEntry:
    id: str
    timestamp: int
    inputText: str
    outputText: str
    mode: str
    options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(cls, input_text: str, output_text: str, mode: str, options: Dict[str, Any]) -> "HistoryEntry":
        """New entry with a random id and a millisecond timestamp."""
        return cls(
            id=str(uuid.uuid4()),
            timestamp=int(time.time() * 1000),
            inputText=input_text,
            outputText=output_text,
            mode=mode,
            options={key: value for key, value in options.items() if value is not None},
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _valid_choice(options: Dict[str, Any], key: str, allowed) -> bool:
    value = options.get(key)
    return value is None or (isinstance(value, str) and value in allowed)


def is_valid_entry(record: Any) -> bool:
    """Structural check applied to every record read from disk."""
    if not isinstance(record, dict):
        return False

    if not (
        isinstance(record.get("id"), str)
        and isinstance(record.get("timestamp"), int)
        and isinstance(record.get("inputText"), str)
        and isinstance(record.get("outputText"), str)
        and record.get("mode") in VALID_MODES
        and isinstance(record.get("options"), dict)
    ):
        return False

    options = record["options"]
    level = options.get("summaryLengthLevel")
    if level is not None and (isinstance(level, bool) or level not in VALID_SUMMARY_LEVELS):
        return False

    return (
        _valid_choice(options, "tone", VALID_TONES)
        and _valid_choice(options, "targetAudience", TARGET_AUDIENCES)
        and _valid_choice(options, "summaryFormat", SUMMARY_FORMATS)
        and _valid_choice(options, "rewriteGoal", REWRITE_GOALS)
        and _valid_choice(options, "model", SUPPORTED_MODELS)
    )


class HistoryStore:
    """Newest-first JSON history file."""

    def __init__(self, path: Optional[str] = None, max_entries: int = MAX_HISTORY_ENTRIES):
        self.path = os.path.expanduser(
            path or os.getenv("REFINER_HISTORY_PATH") or DEFAULT_HISTORY_PATH
        )
        self.max_entries = max(1, max_entries)

    def _read_records(self) -> List[Any]:
        if not os.path.exists(self.path):
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            logger.exception("Failed to read history from %s", self.path)
            return []

        if not isinstance(data, list):
            logger.warning("Ignoring history file %s: not a list", self.path)
            return []
        return data

    def entries(self) -> List[HistoryEntry]:
        """Return valid entries, newest first."""
        records = self._read_records()
        valid = [
            HistoryEntry(
                id=record["id"],
                timestamp=record["timestamp"],
                inputText=record["inputText"],
                outputText=record["outputText"],
                mode=record["mode"],
                options=record["options"],
            )
            for record in records
            if is_valid_entry(record)
        ]
        skipped = len(records) - len(valid)
        if skipped:
            logger.warning("Skipped %d invalid history records", skipped)
        return valid

    def append(self, entry: HistoryEntry) -> None:
        """Prepend `entry` and keep at most `max_entries` records."""
        history = [item.to_dict() for item in self.entries()]
        history.insert(0, entry.to_dict())
        self._write(history[: self.max_entries])

    def clear(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)

    def _write(self, records: List[Dict[str, Any]]) -> None:
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)

        # One temp file per write, never shared between processes.
        tmp_file = tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            delete=False,
            dir=directory,
            prefix=f".{os.path.basename(self.path)}.",
            suffix=".tmp",
        )
        try:
            with tmp_file:
                json.dump(records, tmp_file, indent=2, ensure_ascii=False)
            os.replace(tmp_file.name, self.path)
        except BaseException:
            if os.path.exists(tmp_file.name):
                os.remove(tmp_file.name)
            raise
