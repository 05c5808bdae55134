"""
Data model for timed assessment sessions.

Items and summaries cross process boundaries (item bank payloads, history
files, exports) so they are pydantic models. Live session state never leaves
the controller and stays as plain dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionKind(str, Enum):
    """The three assessment surfaces that share one engine."""

    MCQ = "mcq"
    CODING = "coding"
    INTERVIEW = "interview"


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class SessionStatus(str, Enum):
    """Lifecycle states of a session."""

    CONFIGURING = "configuring"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"
    EXPIRED = "expired"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def is_running(self) -> bool:
        return self in (SessionStatus.IN_PROGRESS, SessionStatus.PAUSED)


TERMINAL_STATUSES = frozenset(
    {SessionStatus.COMPLETED, SessionStatus.EXPIRED, SessionStatus.ABORTED}
)


class Outcome(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    UNANSWERED = "unanswered"


# =============================================================================
# Items
# =============================================================================


class ProblemCase(BaseModel):
    """A single input/expected pair for a coding problem."""

    model_config = ConfigDict(frozen=True)

    input: Any = None
    expected: Any = None


class Item(BaseModel):
    """
    A single assessable unit.

    Correctness data depends on ``kind``: MCQ items carry ``options`` and
    ``correct_index``, coding items carry ``test_cases``, interview items
    carry nothing (they are rated by the candidate).
    """

    model_config = ConfigDict(frozen=True)

    id: str
    kind: SessionKind
    prompt: str
    category: str = "General"
    difficulty: Difficulty = Difficulty.MEDIUM
    company: str | None = None
    estimated_seconds: int = 0

    # MCQ
    options: tuple[str, ...] = ()
    correct_index: int | None = None
    explanation: str | None = None

    # Coding
    test_cases: tuple[ProblemCase, ...] = ()
    hints: tuple[str, ...] = ()

    # Interview
    tips: str | None = None

    @property
    def is_rating_only(self) -> bool:
        return self.kind == SessionKind.INTERVIEW


ItemSet = tuple[Item, ...]


# =============================================================================
# Answers
# =============================================================================


@dataclass(frozen=True)
class CodeSubmission:
    """Source code for a coding item plus whatever an external judge reported."""

    source: str
    language: str = "python"
    test_results: tuple[bool, ...] | None = None


@dataclass(frozen=True)
class InterviewRating:
    """Self-assessed rating (1-5) for an interview question."""

    rating: int
    notes: str = ""


AnswerValue = Union[int, CodeSubmission, InterviewRating]


@dataclass
class Answer:
    """The latest submission for one item. Re-submitting replaces it."""

    item_id: str
    value: AnswerValue
    submitted_at: datetime = field(default_factory=utcnow)
    correct: bool | None = None


# =============================================================================
# Live session
# =============================================================================


@dataclass(frozen=True)
class SessionConfig:
    """Per-session settings chosen at start."""

    duration_seconds: int
    show_explanations: bool = False
    item_count: int = 10
    company: str | None = None
    role: str | None = None


@dataclass
class Session:
    """Mutable state of one attempt. Only the state machine writes to it."""

    id: str
    kind: SessionKind
    items: ItemSet
    config: SessionConfig
    status: SessionStatus = SessionStatus.CONFIGURING
    current_index: int = 0
    started_at: datetime | None = None
    ended_at: datetime | None = None
    remaining_seconds: int = 0
    answers: dict[str, Answer] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.remaining_seconds:
            self.remaining_seconds = self.config.duration_seconds

    @property
    def current_item(self) -> Item | None:
        if not self.items:
            return None
        return self.items[self.current_index]

    @property
    def duration_used_seconds(self) -> int:
        return self.config.duration_seconds - self.remaining_seconds


@dataclass(frozen=True)
class SessionProgress:
    """Read-only snapshot of a live session for progress display."""

    session_id: str
    kind: SessionKind
    status: SessionStatus
    current_index: int
    total_items: int
    answered_count: int
    remaining_seconds: int
    current_item: Item | None
    current_answer: Answer | None
    show_explanations: bool


# =============================================================================
# Summaries
# =============================================================================


class BreakdownRow(BaseModel):
    """Aggregate results for one category or difficulty."""

    label: str
    total: int
    answered: int
    correct: int
    score_percent: int


class ItemDetail(BaseModel):
    """Per-item result row in a summary."""

    item_id: str
    prompt: str
    category: str
    difficulty: Difficulty
    outcome: Outcome
    submitted: str | None = None
    expected: str | None = None
    rating: int | None = None
    notes: str | None = None
    explanation: str | None = None


class SessionSummary(BaseModel):
    """Scored record of a finished session. Written to history exactly once."""

    model_config = ConfigDict(frozen=True)

    id: str
    kind: SessionKind
    status: SessionStatus
    date: datetime = Field(description="Completion time")
    started_at: datetime | None = None
    company: str | None = None
    role: str | None = None
    items_total: int
    items_answered: int
    items_correct: int
    items_incorrect: int
    items_unanswered: int
    score_percent: int
    duration_used_seconds: int
    categories: tuple[BreakdownRow, ...] = ()
    difficulties: tuple[BreakdownRow, ...] = ()
    feedback: str = ""
    per_item_detail: tuple[ItemDetail, ...] = ()
