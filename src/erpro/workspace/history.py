"""
RunHistoryStore: most-recent-first store of completed runs.

Entries live in a single JSON file. The store keeps at most one entry
per subject (case-insensitive) and at most ``limit`` entries overall.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Sequence

import orjson

from erpro.exceptions import HistoryStoreError
from erpro.logging import get_logger
from erpro.types import Artifact, HistoryEntry

logger = get_logger(__name__)

HISTORY_LIMIT = 5


class RunHistoryStore:
    """JSON-file-backed history of completed runs.

    Read once on first access, rewritten after each completed run.
    Single writer; last write wins per subject.
    """

    def __init__(self, path: Path | str, limit: int = HISTORY_LIMIT) -> None:
        """Initialize RunHistoryStore.

        Args:
            path: Path to the history JSON file.
            limit: Maximum number of entries kept.
        """
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self.path = Path(path)
        self.limit = limit
        self._entries: list[HistoryEntry] | None = None

    @property
    def entries(self) -> list[HistoryEntry]:
        """Current entries, most recent first."""
        if self._entries is None:
            self._entries = self.load()
        return list(self._entries)

    def load(self) -> list[HistoryEntry]:
        """Read entries from disk.

        A missing file is an empty history. An unreadable file is logged
        and treated as empty so a corrupt history never blocks a run.
        """
        if not self.path.exists():
            self._entries = []
            return []

        try:
            raw = orjson.loads(self.path.read_bytes())
            entries = [HistoryEntry.from_dict(item) for item in raw]
        except (OSError, orjson.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.error("Failed to parse history", path=str(self.path), error=str(e))
            entries = []

        self._entries = entries[: self.limit]
        return list(self._entries)

    def save(self, subject_name: str, artifacts: Sequence[Artifact]) -> list[HistoryEntry]:
        """Record a completed run.

        Any earlier entry for the same subject is removed before the new
        entry is placed first; the list is then capped at ``limit``.

        Args:
            subject_name: Company the run was for.
            artifacts: Artifacts of the run, in stage order.

        Returns:
            The updated entries, most recent first.

        Raises:
            HistoryStoreError: If the history file cannot be written.
        """
        entry = HistoryEntry.create(subject_name, artifacts)
        updated = [entry] + [e for e in self.entries if e.key != entry.key]
        updated = updated[: self.limit]
        self._write(updated)
        self._entries = updated

        logger.info("Saved run to history", subject=subject_name, entries=len(updated))
        return list(updated)

    def get(self, subject_name: str) -> HistoryEntry | None:
        """Find the entry for a subject, case-insensitively."""
        key = subject_name.strip().casefold()
        for entry in self.entries:
            if entry.key == key:
                return entry
        return None

    def clear(self) -> None:
        """Remove all entries."""
        self._write([])
        self._entries = []

    def _write(self, entries: list[HistoryEntry]) -> None:
        payload = orjson.dumps([e.to_dict() for e in entries], option=orjson.OPT_INDENT_2)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(payload)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise HistoryStoreError(
                f"Failed to write history: {e}", {"path": str(self.path)}
            ) from e
