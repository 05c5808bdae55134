"""
Unit tests for history stores.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from prepdeck.config import get_settings
from prepdeck.engine.errors import HistoryCorrupted
from prepdeck.engine.models import SessionKind, SessionStatus, SessionSummary
from prepdeck.history.store import HistoryStore, InMemoryHistoryStore, JsonHistoryStore, most_recent_first

BASE = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)


def make_summary(session_id, kind=SessionKind.MCQ, minutes=0, score_percent=50, **context):
    return SessionSummary(
        id=session_id,
        kind=kind,
        **context,
        status=SessionStatus.COMPLETED,
        date=BASE + timedelta(minutes=minutes),
        items_total=2,
        items_answered=2,
        items_correct=1,
        items_incorrect=1,
        items_unanswered=0,
        score_percent=score_percent,
        duration_used_seconds=120,
    )


@pytest.fixture
def store(tmp_path):
    return JsonHistoryStore(tmp_path / "history")


class TestMostRecentFirst:
    def test_orders_by_date_descending(self):
        ordered = most_recent_first([make_summary("a", minutes=0), make_summary("b", minutes=5)])

        assert [s.id for s in ordered] == ["b", "a"]

    def test_ties_put_later_insertion_first(self):
        ordered = most_recent_first([make_summary("first"), make_summary("second"), make_summary("third")])

        assert [s.id for s in ordered] == ["third", "second", "first"]


class TestHistoryStoreBase:
    def test_base_class_is_abstract(self):
        with pytest.raises(TypeError):
            HistoryStore()


class TestInMemoryHistoryStore:
    def test_append_and_list(self, history):
        history.append(make_summary("a"))
        history.append(make_summary("b", minutes=1))

        assert [s.id for s in history.list()] == ["b", "a"]
        assert len(history) == 2

    def test_duplicate_id_is_ignored(self, history):
        assert history.append(make_summary("a")) is True
        assert history.append(make_summary("a", score_percent=90)) is False

        assert len(history) == 1
        assert history.get("a").score_percent == 50

    def test_filter_by_kind(self, history):
        history.append(make_summary("m", kind=SessionKind.MCQ))
        history.append(make_summary("i", kind=SessionKind.INTERVIEW))

        assert [s.id for s in history.list(SessionKind.INTERVIEW)] == ["i"]


class TestJsonHistoryStore:
    """Tests for the file-backed store."""

    def test_creates_directory(self, tmp_path):
        JsonHistoryStore(tmp_path / "nested" / "history")

        assert (tmp_path / "nested" / "history").is_dir()

    def test_one_file_per_kind(self, store):
        store.append(make_summary("m", kind=SessionKind.MCQ))
        store.append(make_summary("c", kind=SessionKind.CODING))

        assert store.path_for(SessionKind.MCQ).exists()
        assert store.path_for(SessionKind.CODING).exists()
        assert not store.path_for(SessionKind.INTERVIEW).exists()

    def test_round_trip(self, store):
        original = make_summary("a", score_percent=67)
        store.append(original)

        assert store.get("a") == original

    def test_persists_across_instances(self, tmp_path):
        JsonHistoryStore(tmp_path).append(make_summary("a"))

        reopened = JsonHistoryStore(tmp_path)

        assert [s.id for s in reopened.list()] == ["a"]

    def test_list_is_most_recent_first_across_kinds(self, store):
        store.append(make_summary("old", kind=SessionKind.CODING, minutes=0))
        store.append(make_summary("new", kind=SessionKind.MCQ, minutes=10))
        store.append(make_summary("mid", kind=SessionKind.INTERVIEW, minutes=5))

        assert [s.id for s in store.list()] == ["new", "mid", "old"]

    def test_equal_dates_later_insertion_first(self, store):
        store.append(make_summary("first"))
        store.append(make_summary("second"))

        assert [s.id for s in store.list(SessionKind.MCQ)] == ["second", "first"]

    def test_duplicate_id_is_not_written_twice(self, store):
        store.append(make_summary("a"))
        assert store.append(make_summary("a")) is False

        raw = json.loads(store.path_for(SessionKind.MCQ).read_text(encoding="utf-8"))
        assert len(raw) == 1

    def test_get_missing_returns_none(self, store):
        assert store.get("missing") is None

    def test_append_refuses_corrupted_file(self, store):
        path = store.path_for(SessionKind.MCQ)
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(HistoryCorrupted):
            store.append(make_summary("a"))

        assert path.read_text(encoding="utf-8") == "{not json"

    def test_list_skips_corrupted_file(self, store):
        store.path_for(SessionKind.MCQ).write_text("[1, 2", encoding="utf-8")
        store.append(make_summary("c", kind=SessionKind.CODING))

        assert [s.id for s in store.list()] == ["c"]

    def test_list_skips_invalid_entries(self, store):
        store.append(make_summary("good"))
        path = store.path_for(SessionKind.MCQ)
        raw = json.loads(path.read_text(encoding="utf-8"))
        raw.append({"id": "broken"})
        path.write_text(json.dumps(raw), encoding="utf-8")

        assert [s.id for s in store.list()] == ["good"]

    def test_no_temp_files_left_behind(self, store):
        store.append(make_summary("a"))
        store.append(make_summary("b"))

        leftovers = [p.name for p in store.history_dir.iterdir() if p.suffix == ".tmp"]
        assert leftovers == []

    def test_company_and_role_round_trip(self, store):
        original = make_summary("a", company="Cisco", role="Network Engineer")
        store.append(original)

        loaded = JsonHistoryStore(store.history_dir).get("a")

        assert loaded.company == "Cisco"
        assert loaded.role == "Network Engineer"
        assert loaded == original

    def test_default_directory_comes_from_settings(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PREPDECK_HISTORY_DIR", str(tmp_path / "from-env"))
        get_settings.cache_clear()
        try:
            store = JsonHistoryStore()
        finally:
            get_settings.cache_clear()

        assert store.history_dir == tmp_path / "from-env"
        assert store.history_dir.is_dir()
