"""
Session state machine.

Owns lifecycle, position and answers for one ``Session``:

    configuring -> in_progress <-> paused
    in_progress | paused -> completed | aborted
    in_progress -> expired

Terminal states have no outbound transitions. Illegal calls never raise out
of this class: they are logged and answered with a falsy return value, so a
single bad call cannot corrupt a session.
"""

from __future__ import annotations

from loguru import logger

from .errors import InvalidTransition, SessionClosed, TimerDesync
from .models import (
    Answer,
    AnswerValue,
    CodeSubmission,
    InterviewRating,
    Item,
    Session,
    SessionKind,
    SessionStatus,
    utcnow,
)

ALLOWED_TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.CONFIGURING: frozenset({SessionStatus.IN_PROGRESS, SessionStatus.ABORTED}),
    SessionStatus.IN_PROGRESS: frozenset(
        {
            SessionStatus.PAUSED,
            SessionStatus.COMPLETED,
            SessionStatus.EXPIRED,
            SessionStatus.ABORTED,
        }
    ),
    SessionStatus.PAUSED: frozenset(
        {SessionStatus.IN_PROGRESS, SessionStatus.COMPLETED, SessionStatus.ABORTED}
    ),
    SessionStatus.COMPLETED: frozenset(),
    SessionStatus.EXPIRED: frozenset(),
    SessionStatus.ABORTED: frozenset(),
}


def accepts_value(item: Item, value: AnswerValue) -> bool:
    """Check that a submitted value has the right shape for the item's kind."""
    if item.kind == SessionKind.MCQ:
        if isinstance(value, bool) or not isinstance(value, int):
            return False
        return not item.options or 0 <= value < len(item.options)
    if item.kind == SessionKind.CODING:
        return isinstance(value, CodeSubmission)
    if item.kind == SessionKind.INTERVIEW:
        return isinstance(value, InterviewRating) and 1 <= value.rating <= 5
    return False


class SessionStateMachine:
    """The only writer of a ``Session``."""

    def __init__(self, session: Session):
        self._session = session
        self._index_by_id = {item.id: i for i, item in enumerate(session.items)}

    @property
    def session(self) -> Session:
        return self._session

    @property
    def status(self) -> SessionStatus:
        return self._session.status

    @property
    def is_terminal(self) -> bool:
        return self._session.status.is_terminal

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> bool:
        if not self._session.items:
            logger.warning(f"Session {self._session.id} has no items; refusing to start")
            return False
        if not self._apply(SessionStatus.IN_PROGRESS, "start"):
            return False
        self._session.started_at = utcnow()
        self._session.current_index = 0
        return True

    def pause(self) -> bool:
        return self._apply(SessionStatus.PAUSED, "pause")

    def resume(self) -> bool:
        return self._apply(SessionStatus.IN_PROGRESS, "resume")

    def finish(self) -> bool:
        """User-triggered completion. Only the first call has any effect."""
        return self._end(SessionStatus.COMPLETED, "finish")

    def expire(self) -> bool:
        """Timer-forced completion."""
        if self._session.status == SessionStatus.IN_PROGRESS:
            self._session.remaining_seconds = 0
        return self._end(SessionStatus.EXPIRED, "expire")

    def abort(self) -> bool:
        return self._end(SessionStatus.ABORTED, "abort")

    # =========================================================================
    # Answers and navigation
    # =========================================================================

    def submit_answer(self, item_id: str, value: AnswerValue) -> Answer | None:
        """
        Record (or overwrite) the answer for any item in the set.

        Answering never moves the cursor.
        """
        if not self._check_active("submit_answer"):
            return None

        index = self._index_by_id.get(item_id)
        if index is None:
            logger.warning(f"Ignoring answer for unknown item {item_id!r}")
            return None

        item = self._session.items[index]
        if not accepts_value(item, value):
            logger.warning(f"Ignoring {type(value).__name__} answer for {item.kind.value} item {item_id!r}")
            return None

        answer = Answer(item_id=item_id, value=value)
        self._session.answers[item_id] = answer
        return answer

    def go_to(self, index: int) -> int:
        """Move the cursor, clamped to the item range. Returns the new index."""
        if not self._check_active("go_to"):
            return self._session.current_index
        last = len(self._session.items) - 1
        self._session.current_index = max(0, min(int(index), last))
        return self._session.current_index

    def next(self) -> int:
        return self.go_to(self._session.current_index + 1)

    def previous(self) -> int:
        return self.go_to(self._session.current_index - 1)

    # =========================================================================
    # Timer
    # =========================================================================

    def tick(self, remaining: int) -> bool:
        """
        Record timer progress. Returns False when the tick was discarded.

        Ticks that arrive after the session has ended or while it is paused
        are dropped.
        """
        if self._session.status != SessionStatus.IN_PROGRESS:
            logger.debug(f"Discarding late tick ({remaining}s) for {self._session.status.value} session")
            return False
        try:
            self._session.remaining_seconds = self._checked_remaining(remaining)
        except TimerDesync as e:
            logger.warning(f"{e}; clamping")
            self._session.remaining_seconds = max(0, min(remaining, self._session.remaining_seconds))
        return True

    def _checked_remaining(self, remaining: int) -> int:
        current = self._session.remaining_seconds
        if remaining < 0 or remaining > current:
            raise TimerDesync(f"Tick reported {remaining}s but session has {current}s left")
        return remaining

    # =========================================================================
    # Internals
    # =========================================================================

    def _check_active(self, operation: str) -> bool:
        status = self._session.status
        if status == SessionStatus.IN_PROGRESS:
            return True
        error_cls = SessionClosed if status.is_terminal else InvalidTransition
        logger.debug(str(error_cls(operation, status.value)))
        return False

    def _transition(self, target: SessionStatus, operation: str) -> None:
        current = self._session.status
        if current.is_terminal:
            raise SessionClosed(operation, current.value)
        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransition(operation, current.value)
        self._session.status = target
        logger.info(f"Session {self._session.id}: {current.value} -> {target.value}")

    def _apply(self, target: SessionStatus, operation: str) -> bool:
        try:
            self._transition(target, operation)
        except InvalidTransition as e:
            logger.debug(str(e))
            return False
        return True

    def _end(self, target: SessionStatus, operation: str) -> bool:
        if not self._apply(target, operation):
            return False
        self._session.ended_at = utcnow()
        return True
