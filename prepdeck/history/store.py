"""
Append-only history of completed session summaries.

Summaries are stored per session kind. JSON history lives in
``{history_dir}/{kind}.json`` (see ``Settings.history_dir``), each file an
ordered list of summaries that can be parsed one by one.
"""

from __future__ import annotations

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Optional

from loguru import logger
from pydantic import ValidationError

from prepdeck.config import get_settings
from prepdeck.engine.errors import HistoryCorrupted
from prepdeck.engine.models import SessionKind, SessionSummary


def most_recent_first(summaries: Iterable[SessionSummary]) -> list[SessionSummary]:
    """
    Sort newest first.

    ``summaries`` must be in insertion order; on equal timestamps the later
    insertion comes first.
    """
    return sorted(reversed(list(summaries)), key=lambda s: s.date, reverse=True)


class HistoryStore(ABC):
    """Base class for history stores. No updates, no deletes."""

    @abstractmethod
    def append(self, summary: SessionSummary) -> bool:
        """Add a summary. Returns False if a summary with the same id exists."""
        ...

    @abstractmethod
    def list(self, kind: SessionKind | None = None) -> list[SessionSummary]:
        """Summaries, most recent first, optionally for one kind only."""
        ...

    def get(self, session_id: str) -> Optional[SessionSummary]:
        for summary in self.list():
            if summary.id == session_id:
                return summary
        return None


class InMemoryHistoryStore(HistoryStore):
    """History kept in process memory."""

    def __init__(self) -> None:
        self._entries: list[SessionSummary] = []

    def append(self, summary: SessionSummary) -> bool:
        if any(s.id == summary.id for s in self._entries):
            logger.warning(f"Summary {summary.id} already recorded; ignoring duplicate")
            return False
        self._entries.append(summary)
        return True

    def list(self, kind: SessionKind | None = None) -> list[SessionSummary]:
        entries = [s for s in self._entries if kind is None or s.kind == kind]
        return most_recent_first(entries)

    def __len__(self) -> int:
        return len(self._entries)


class JsonHistoryStore(HistoryStore):
    """
    History persisted as JSON files, one per session kind.

    Appends rewrite the kind's file through a temporary file and
    ``os.replace`` so a crash never leaves a half-written list behind.
    """

    def __init__(self, history_dir: Optional[Path] = None):
        self.history_dir = history_dir or get_settings().history_dir
        self.history_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, kind: SessionKind) -> Path:
        return self.history_dir / f"{kind.value}.json"

    def append(self, summary: SessionSummary) -> bool:
        path = self.path_for(summary.kind)
        try:
            raw = self._read_raw(path)
        except HistoryCorrupted:
            logger.error(f"Refusing to overwrite corrupted history file {path}")
            raise

        if any(entry.get("id") == summary.id for entry in raw):
            logger.warning(f"Summary {summary.id} already recorded; ignoring duplicate")
            return False

        raw.append(summary.model_dump(mode="json"))
        self._write_atomic(path, raw)
        logger.info(f"Recorded {summary.kind.value} session {summary.id} ({summary.score_percent}%)")
        return True

    def list(self, kind: SessionKind | None = None) -> list[SessionSummary]:
        kinds = [kind] if kind is not None else list(SessionKind)
        entries: list[SessionSummary] = []
        for k in kinds:
            entries.extend(self._load_kind(k))
        return most_recent_first(entries)

    # -------------------------------------------------------------------------

    def _load_kind(self, kind: SessionKind) -> list[SessionSummary]:
        path = self.path_for(kind)
        try:
            raw = self._read_raw(path)
        except HistoryCorrupted as e:
            logger.warning(f"Skipping unreadable history file: {e}")
            return []

        summaries = []
        for position, entry in enumerate(raw):
            try:
                summaries.append(SessionSummary.model_validate(entry))
            except ValidationError as e:
                # Entries are independent; one bad record does not hide the rest
                logger.warning(f"Skipping invalid summary #{position} in {path}: {e.error_count()} errors")
        return summaries

    def _read_raw(self, path: Path) -> list[dict]:
        if not path.exists():
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise HistoryCorrupted(f"{path}: {e}") from e
        if not isinstance(data, list):
            raise HistoryCorrupted(f"{path}: expected a list of summaries")
        return data

    def _write_atomic(self, path: Path, raw: list[dict]) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.history_dir, prefix=f".{path.stem}-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(raw, f, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
