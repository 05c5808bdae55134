"""
Unit tests for the deterministic fallback generator.
"""

import pytest

from prepdeck.bank.fallback import CODING_PROBLEMS, MCQ_CATEGORIES, FallbackGenerator
from prepdeck.bank.provider import ItemFilter
from prepdeck.engine.models import Difficulty, SessionKind


@pytest.fixture
def generator():
    return FallbackGenerator()


class TestFallbackGenerator:
    @pytest.mark.parametrize("kind", list(SessionKind))
    def test_generates_exact_count(self, generator, kind):
        items = generator.generate(ItemFilter(kind=kind, limit=7), 7)

        assert len(items) == 7
        assert all(item.kind == kind for item in items)
        assert len({item.id for item in items}) == 7

    def test_is_deterministic(self, generator):
        item_filter = ItemFilter(kind=SessionKind.MCQ, limit=5)

        assert generator.generate(item_filter, 5) == generator.generate(item_filter, 5)

    def test_start_offset_continues_sequence(self, generator):
        item_filter = ItemFilter(kind=SessionKind.MCQ, limit=6)

        full = generator.generate(item_filter, 6)
        tail = generator.generate(item_filter, 4, start=2)

        assert tail == full[2:]
        assert tail[0].id == "fallback-mcq-2"

    def test_zero_count(self, generator):
        assert generator.generate(ItemFilter(kind=SessionKind.CODING), 0) == []

    def test_mcq_shape(self, generator):
        item = generator.generate(ItemFilter(kind=SessionKind.MCQ), 1)[0]

        assert len(item.options) == 4
        assert item.correct_index == 3
        assert item.category == MCQ_CATEGORIES[0]
        assert item.explanation

    def test_mcq_honors_filters(self, generator):
        item_filter = ItemFilter(
            kind=SessionKind.MCQ,
            category="Networking",
            difficulty=Difficulty.HARD,
            company="Cisco",
        )

        items = generator.generate(item_filter, 3)

        assert {i.category for i in items} == {"Networking"}
        assert {i.difficulty for i in items} == {Difficulty.HARD}
        assert {i.company for i in items} == {"Cisco"}

    def test_coding_items_have_test_cases(self, generator):
        items = generator.generate(ItemFilter(kind=SessionKind.CODING), len(CODING_PROBLEMS))

        assert all(item.test_cases for item in items)
        assert items[0].prompt.startswith("Two Sum")

    def test_coding_filter_by_difficulty(self, generator):
        items = generator.generate(ItemFilter(kind=SessionKind.CODING, difficulty=Difficulty.HARD), 2)

        assert all(item.difficulty == Difficulty.HARD for item in items)

    def test_interview_round_robins_question_types(self, generator):
        items = generator.generate(ItemFilter(kind=SessionKind.INTERVIEW), 3)

        assert [i.category for i in items] == ["technical", "behavioral", "situational"]
        assert all(i.tips for i in items)
        assert items[0].estimated_seconds == 180

    def test_interview_category_filter(self, generator):
        items = generator.generate(ItemFilter(kind=SessionKind.INTERVIEW, category="Behavioral"), 2)

        assert {i.category for i in items} == {"behavioral"}
        assert items[0].prompt != items[1].prompt
