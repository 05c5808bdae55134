"""
Scoring for finished sessions.

Each session kind has a grader registered with ``@register``. Graders decide
per-item correctness and how values are rendered in summaries; ``score()``
aggregates their verdicts into a ``SessionSummary``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from .models import (
    Answer,
    AnswerValue,
    BreakdownRow,
    CodeSubmission,
    InterviewRating,
    Item,
    ItemDetail,
    Outcome,
    Session,
    SessionKind,
    SessionSummary,
    utcnow,
)

# Interview ratings at or above this count as a correct answer
PASSING_RATING = 3


class Grader(Protocol):
    """Protocol for per-kind graders."""

    def grade(self, item: Item, value: AnswerValue) -> bool:
        """Return True if the value is a correct answer for the item."""
        ...

    def render_submitted(self, item: Item, value: AnswerValue) -> str:
        ...

    def render_expected(self, item: Item) -> str | None:
        ...


GRADERS: dict[SessionKind, Grader] = {}


def register(kind: SessionKind):
    """Decorator to register a grader."""
    def decorator(cls):
        GRADERS[kind] = cls()
        return cls
    return decorator


def get_grader(kind: SessionKind | str) -> Grader:
    return GRADERS[SessionKind(kind)]


@register(SessionKind.MCQ)
class MultipleChoiceGrader:
    def grade(self, item: Item, value: AnswerValue) -> bool:
        return item.correct_index is not None and value == item.correct_index

    def render_submitted(self, item: Item, value: AnswerValue) -> str:
        if isinstance(value, int) and 0 <= value < len(item.options):
            return item.options[value]
        return str(value)

    def render_expected(self, item: Item) -> str | None:
        if item.correct_index is None:
            return None
        if 0 <= item.correct_index < len(item.options):
            return item.options[item.correct_index]
        return str(item.correct_index)


@register(SessionKind.CODING)
class CodingGrader:
    """
    Correct only when a judge reported one passing result per test case.

    Submissions that were never run are attempted but unverified, so they
    count as incorrect.
    """

    def grade(self, item: Item, value: AnswerValue) -> bool:
        if not isinstance(value, CodeSubmission) or value.test_results is None:
            return False
        results = value.test_results
        return bool(results) and len(results) == len(item.test_cases) and all(results)

    def render_submitted(self, item: Item, value: AnswerValue) -> str:
        if not isinstance(value, CodeSubmission):
            return str(value)
        if value.test_results is None:
            return f"{value.language}: not run"
        passed = sum(1 for r in value.test_results if r)
        return f"{value.language}: {passed}/{len(item.test_cases)} tests passed"

    def render_expected(self, item: Item) -> str | None:
        return f"{len(item.test_cases)} tests passing"


@register(SessionKind.INTERVIEW)
class InterviewGrader:
    def grade(self, item: Item, value: AnswerValue) -> bool:
        return isinstance(value, InterviewRating) and value.rating >= PASSING_RATING

    def render_submitted(self, item: Item, value: AnswerValue) -> str:
        if isinstance(value, InterviewRating):
            return f"{value.rating}/5"
        return str(value)

    def render_expected(self, item: Item) -> str | None:
        return None


def grade_answer(item: Item, answer: Answer) -> bool:
    """Grade one answer, e.g. for immediate feedback in learning mode."""
    return get_grader(item.kind).grade(item, answer.value)


# =============================================================================
# Aggregation
# =============================================================================


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass
class _Graded:
    item: Item
    answer: Answer | None
    outcome: Outcome

    @property
    def rating(self) -> int:
        if self.answer is not None and isinstance(self.answer.value, InterviewRating):
            return self.answer.value.rating
        return 0


def _score_percent(kind: SessionKind, graded: list[_Graded]) -> int:
    if not graded:
        return 0
    if kind == SessionKind.INTERVIEW:
        # Average 1-5 rating over every item, unrated items counting 0
        return round_half_up(sum(g.rating for g in graded) / len(graded) * 20)
    correct = sum(1 for g in graded if g.outcome == Outcome.CORRECT)
    return round_half_up(correct / len(graded) * 100)


def _breakdown(kind: SessionKind, graded: list[_Graded], key) -> tuple[BreakdownRow, ...]:
    groups: dict[str, list[_Graded]] = {}
    for g in graded:
        groups.setdefault(key(g.item), []).append(g)
    return tuple(
        BreakdownRow(
            label=label,
            total=len(rows),
            answered=sum(1 for g in rows if g.outcome != Outcome.UNANSWERED),
            correct=sum(1 for g in rows if g.outcome == Outcome.CORRECT),
            score_percent=_score_percent(kind, rows),
        )
        for label, rows in groups.items()
    )


def feedback_for(score_percent: int, answered: int, total: int) -> str:
    """Coarse written feedback from score and completion rate."""
    completion = answered / total * 100 if total else 0
    if score_percent >= 80 and completion >= 90:
        return "Excellent performance! You demonstrated strong knowledge and clear reasoning. Keep it up."
    if score_percent >= 60 and completion >= 70:
        return "Good performance overall. Focus on more detailed answers and cleaner explanations."
    if score_percent >= 40 and completion >= 50:
        return "Decent effort, with room for improvement. Practice more and review the explanations you missed."
    return "This session highlighted areas for improvement. Review the fundamentals and try another practice round."


def _detail(grader: Grader, g: _Graded) -> ItemDetail:
    item = g.item
    detail = ItemDetail(
        item_id=item.id,
        prompt=item.prompt,
        category=item.category,
        difficulty=item.difficulty,
        outcome=g.outcome,
        expected=grader.render_expected(item),
        explanation=item.explanation,
    )
    if g.answer is None:
        return detail
    update: dict = {"submitted": grader.render_submitted(item, g.answer.value)}
    if isinstance(g.answer.value, InterviewRating):
        update["rating"] = g.answer.value.rating
        update["notes"] = g.answer.value.notes or None
    return detail.model_copy(update=update)


def score(session: Session, completed_at: datetime | None = None) -> SessionSummary:
    """
    Build the summary for a finished session.

    Also stamps ``Answer.correct`` on every recorded answer so the live
    session reflects the final verdicts.
    """
    grader = get_grader(session.kind)
    graded: list[_Graded] = []

    for item in session.items:
        answer = session.answers.get(item.id)
        if answer is None:
            graded.append(_Graded(item, None, Outcome.UNANSWERED))
            continue
        answer.correct = grader.grade(item, answer.value)
        outcome = Outcome.CORRECT if answer.correct else Outcome.INCORRECT
        graded.append(_Graded(item, answer, outcome))

    total = len(graded)
    correct = sum(1 for g in graded if g.outcome == Outcome.CORRECT)
    unanswered = sum(1 for g in graded if g.outcome == Outcome.UNANSWERED)
    answered = total - unanswered
    percent = _score_percent(session.kind, graded)

    return SessionSummary(
        id=session.id,
        kind=session.kind,
        status=session.status,
        date=completed_at or session.ended_at or utcnow(),
        started_at=session.started_at,
        company=session.config.company,
        role=session.config.role,
        items_total=total,
        items_answered=answered,
        items_correct=correct,
        items_incorrect=answered - correct,
        items_unanswered=unanswered,
        score_percent=percent,
        duration_used_seconds=max(0, session.duration_used_seconds),
        categories=_breakdown(session.kind, graded, lambda item: item.category),
        difficulties=_breakdown(session.kind, graded, lambda item: item.difficulty.value),
        feedback=feedback_for(percent, answered, total),
        per_item_detail=tuple(_detail(grader, g) for g in graded),
    )
