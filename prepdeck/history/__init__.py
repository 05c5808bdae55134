"""Session history persistence and export."""

from .store import HistoryStore, InMemoryHistoryStore, JsonHistoryStore
from .export import summary_from_json, summary_to_csv, summary_to_json

__all__ = [
    "HistoryStore",
    "InMemoryHistoryStore",
    "JsonHistoryStore",
    "summary_from_json",
    "summary_to_csv",
    "summary_to_json",
]
