"""
Assessment session engine.

Components:
- models: items, answers, live session state and summaries
- timer: cooperative countdown with injectable tick scheduler
- session: the session state machine
- scoring: per-kind graders and summary aggregation
"""

from .errors import (
    BankUnavailable,
    HistoryCorrupted,
    InvalidTransition,
    PrepDeckError,
    SessionClosed,
    TimerDesync,
)
from .models import (
    Answer,
    CodeSubmission,
    Difficulty,
    InterviewRating,
    Item,
    ItemSet,
    Outcome,
    ProblemCase,
    Session,
    SessionConfig,
    SessionKind,
    SessionProgress,
    SessionStatus,
    SessionSummary,
)
from .scoring import grade_answer, score
from .session import SessionStateMachine
from .timer import AsyncioTickScheduler, ManualTickScheduler, Timer

__all__ = [
    "Answer",
    "AsyncioTickScheduler",
    "BankUnavailable",
    "CodeSubmission",
    "Difficulty",
    "HistoryCorrupted",
    "InterviewRating",
    "InvalidTransition",
    "Item",
    "ItemSet",
    "ManualTickScheduler",
    "Outcome",
    "PrepDeckError",
    "ProblemCase",
    "Session",
    "SessionClosed",
    "SessionConfig",
    "SessionKind",
    "SessionProgress",
    "SessionStateMachine",
    "SessionStatus",
    "SessionSummary",
    "TimerDesync",
    "Timer",
    "grade_answer",
    "score",
]
