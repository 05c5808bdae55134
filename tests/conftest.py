"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import pytest
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from prepdeck.engine.models import (  # noqa: E402
    Difficulty,
    Item,
    ProblemCase,
    Session,
    SessionConfig,
    SessionKind,
)
from prepdeck.engine.timer import ManualTickScheduler  # noqa: E402
from prepdeck.history.store import InMemoryHistoryStore  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


def make_mcq(item_id: str, correct_index: int, category: str = "General", difficulty=Difficulty.MEDIUM) -> Item:
    return Item(
        id=item_id,
        kind=SessionKind.MCQ,
        prompt=f"Question {item_id}",
        category=category,
        difficulty=difficulty,
        options=("A", "B", "C", "D"),
        correct_index=correct_index,
        explanation=f"Because of {item_id}",
    )


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def mcq_items():
    """Three MCQ items with correct indices 0, 1, 2."""
    return (
        make_mcq("q1", 0, category="Algorithms", difficulty=Difficulty.EASY),
        make_mcq("q2", 1, category="Databases", difficulty=Difficulty.MEDIUM),
        make_mcq("q3", 2, category="Algorithms", difficulty=Difficulty.HARD),
    )


@pytest.fixture
def five_mcq_items():
    return tuple(make_mcq(f"m{i}", i % 4) for i in range(5))


@pytest.fixture
def coding_item():
    return Item(
        id="two-sum",
        kind=SessionKind.CODING,
        prompt="Two Sum",
        category="Array",
        difficulty=Difficulty.EASY,
        test_cases=(
            ProblemCase(input={"nums": [2, 7, 11, 15], "target": 9}, expected=[0, 1]),
            ProblemCase(input={"nums": [3, 2, 4], "target": 6}, expected=[1, 2]),
        ),
        hints=("Use a hash map",),
    )


@pytest.fixture
def interview_items():
    return tuple(
        Item(id=f"iq{i}", kind=SessionKind.INTERVIEW, prompt=f"Interview question {i}", category="behavioral")
        for i in range(3)
    )


@pytest.fixture
def make_session():
    """Factory for sessions over a given item set."""
    def _make(items, kind=SessionKind.MCQ, duration=60, session_id="s-1"):
        return Session(
            id=session_id,
            kind=kind,
            items=tuple(items),
            config=SessionConfig(duration_seconds=duration),
        )
    return _make


@pytest.fixture
def scheduler():
    """Manual clock; nothing fires until advance() is called."""
    return ManualTickScheduler()


@pytest.fixture
def history():
    return InMemoryHistoryStore()


@pytest.fixture
def make_mcq_item():
    """Factory for single MCQ items."""
    return make_mcq
