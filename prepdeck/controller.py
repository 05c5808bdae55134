"""
Session controller: the single surface UI code drives.

Resolves an item set (bank first, deterministic fallback for the rest),
owns the timer and the state machine for one session at a time, scores the
session when it ends and writes the summary to history exactly once.

Usage:
    controller = SessionController(bank, JsonHistoryStore(), fallback=FallbackGenerator())
    await controller.start(ItemFilter(kind=SessionKind.MCQ, limit=10), SessionConfig(1800))
    controller.submit_answer(controller.progress.current_item.id, 2)
    summary = controller.finish()
"""

from __future__ import annotations

import dataclasses
import uuid
from typing import Callable, Optional

from loguru import logger

from prepdeck.bank.fallback import FallbackGenerator
from prepdeck.bank.provider import ItemBankProvider, ItemFilter
from prepdeck.engine.errors import BankUnavailable, HistoryCorrupted
from prepdeck.engine.models import (
    Answer,
    AnswerValue,
    CodeSubmission,
    Item,
    ItemSet,
    Session,
    SessionConfig,
    SessionKind,
    SessionProgress,
    SessionStatus,
    SessionSummary,
)
from prepdeck.engine.scoring import score
from prepdeck.engine.session import SessionStateMachine
from prepdeck.engine.timer import AsyncioTickScheduler, Timer, TickScheduler
from prepdeck.history.store import HistoryStore

# (item, source, language) -> one pass/fail flag per test case
CodeJudge = Callable[[Item, str, str], list[bool]]


def _new_session_id() -> str:
    return uuid.uuid4().hex[:12]


class SessionController:
    """Orchestrates bank, timer, state machine, scorer and history."""

    def __init__(
        self,
        provider: ItemBankProvider,
        history: HistoryStore,
        *,
        fallback: Optional[FallbackGenerator] = None,
        scheduler: Optional[TickScheduler] = None,
        judge: Optional[CodeJudge] = None,
        on_complete: Optional[Callable[[SessionSummary], None]] = None,
        id_factory: Callable[[], str] = _new_session_id,
    ):
        self.provider = provider
        self.history = history
        self.fallback = fallback
        self.scheduler = scheduler or AsyncioTickScheduler()
        self.judge = judge
        self.on_complete = on_complete
        self._id_factory = id_factory

        self._machine: SessionStateMachine | None = None
        self._timer: Timer | None = None
        self._last_filter: ItemFilter | None = None
        self._last_summary: SessionSummary | None = None
        self._last_error: HistoryCorrupted | None = None

    # =========================================================================
    # Read-only views
    # =========================================================================

    @property
    def progress(self) -> SessionProgress | None:
        """Snapshot of the current (or most recent) session."""
        if self._machine is None:
            return None
        session = self._machine.session
        item = session.current_item
        return SessionProgress(
            session_id=session.id,
            kind=session.kind,
            status=session.status,
            current_index=session.current_index,
            total_items=len(session.items),
            answered_count=len(session.answers),
            remaining_seconds=session.remaining_seconds,
            current_item=item,
            current_answer=session.answers.get(item.id) if item else None,
            show_explanations=session.config.show_explanations,
        )

    @property
    def items(self) -> ItemSet:
        return self._machine.session.items if self._machine else ()

    @property
    def last_summary(self) -> SessionSummary | None:
        return self._last_summary

    @property
    def last_error(self) -> HistoryCorrupted | None:
        """Why the last summary could not be written to history, if it wasn't."""
        return self._last_error

    @property
    def is_active(self) -> bool:
        return self._machine is not None and not self._machine.is_terminal

    def answer_for(self, item_id: str) -> Answer | None:
        if self._machine is None:
            return None
        return self._machine.session.answers.get(item_id)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self, item_filter: ItemFilter, config: SessionConfig) -> SessionProgress:
        """
        Resolve items and begin a session.

        Raises:
            BankUnavailable: The bank failed and no fallback is configured,
                or no items could be found at all.
        """
        if self.is_active:
            logger.info("Starting a new session; aborting the active one")
            self.abort()

        items = await self._resolve_items(item_filter)
        self._last_filter = item_filter
        config = dataclasses.replace(
            config,
            company=config.company or item_filter.company,
            role=config.role or item_filter.role,
        )
        return self._begin(item_filter.kind, items, config)

    async def replay(self, config: SessionConfig | None = None) -> SessionProgress | None:
        """Start a fresh attempt on the previous session's item set."""
        if self._machine is None:
            logger.warning("Nothing to replay yet")
            return None
        previous = self._machine.session
        if self.is_active:
            self.abort()
        return self._begin(previous.kind, previous.items, config or previous.config)

    def submit_answer(self, item_id: str, value: AnswerValue) -> Answer | None:
        if self._machine is None:
            return None
        value = self._judged(item_id, value)
        return self._machine.submit_answer(item_id, value)

    def submit_current(self, value: AnswerValue) -> Answer | None:
        """Answer whichever item the cursor is on."""
        progress = self.progress
        if progress is None or progress.current_item is None:
            return None
        return self.submit_answer(progress.current_item.id, value)

    def go_to(self, index: int) -> int | None:
        return self._machine.go_to(index) if self._machine else None

    def next(self) -> int | None:
        return self._machine.next() if self._machine else None

    def previous(self) -> int | None:
        return self._machine.previous() if self._machine else None

    def pause(self) -> bool:
        if self._machine is None or not self._machine.pause():
            return False
        if self._timer is not None:
            self._timer.pause()
        return True

    def resume(self) -> bool:
        if self._machine is None or not self._machine.resume():
            return False
        if self._timer is not None:
            self._timer.resume()
        return True

    def finish(self) -> SessionSummary | None:
        """
        Complete the session. Returns the summary on the first call only.
        """
        return self._complete(SessionStatus.COMPLETED)

    def abort(self) -> bool:
        """Abandon the session without recording anything."""
        if self._machine is None:
            return False
        self._release_timer()
        aborted = self._machine.abort()
        if aborted:
            logger.info(f"Session {self._machine.session.id} aborted; no summary recorded")
        return aborted

    def close(self) -> None:
        """Tear down on unmount: abort anything still running."""
        self.abort()
        self._release_timer()

    # =========================================================================
    # Internals
    # =========================================================================

    async def _resolve_items(self, item_filter: ItemFilter) -> list[Item]:
        try:
            items = list(await self.provider.fetch_items(item_filter))[: item_filter.limit]
        except BankUnavailable as e:
            if self.fallback is None:
                raise
            logger.warning(f"Item bank failed ({e}); using fallback items")
            items = []

        items = self._unique(items)
        missing = item_filter.limit - len(items)
        if missing > 0 and self.fallback is not None:
            seen = {item.id for item in items}
            top_up = [
                item for item in self.fallback.generate(item_filter, missing, start=len(items))
                if item.id not in seen
            ]
            if top_up:
                logger.info(f"Topped up {len(top_up)} {item_filter.kind.value} items from fallback")
            items.extend(top_up)

        if not items:
            raise BankUnavailable("No items found for the selected filters")
        return items

    @staticmethod
    def _unique(items: list[Item]) -> list[Item]:
        """Drop repeated ids, keeping the first occurrence."""
        seen: set[str] = set()
        unique = []
        for item in items:
            if item.id in seen:
                logger.warning(f"Dropping duplicate item id {item.id!r} from bank response")
                continue
            seen.add(item.id)
            unique.append(item)
        return unique

    def _begin(self, kind: SessionKind, items, config: SessionConfig) -> SessionProgress:
        session = Session(
            id=self._id_factory(),
            kind=kind,
            items=tuple(items),
            config=config,
        )
        self._machine = SessionStateMachine(session)
        self._last_summary = None
        self._last_error = None
        self._machine.start()

        self._timer = Timer(self.scheduler, on_tick=self._on_tick, on_expired=self._on_expired)
        self._timer.start(config.duration_seconds)
        logger.info(
            f"Session {session.id} started: {len(session.items)} {kind.value} items, "
            f"{config.duration_seconds}s"
        )
        return self.progress

    def _judged(self, item_id: str, value: AnswerValue) -> AnswerValue:
        if self.judge is None or not isinstance(value, CodeSubmission) or value.test_results is not None:
            return value
        if self._machine.status != SessionStatus.IN_PROGRESS:
            return value
        item = next((i for i in self._machine.session.items if i.id == item_id), None)
        if item is None:
            return value
        results = self.judge(item, value.source, value.language)
        return CodeSubmission(source=value.source, language=value.language, test_results=tuple(results))

    def _on_tick(self, remaining: int) -> None:
        if self._machine is None:
            return
        self._machine.tick(remaining)

    def _on_expired(self) -> None:
        if self._machine is None or self._machine.is_terminal:
            logger.debug("Ignoring expiry for a session that already ended")
            return
        logger.info(f"Session {self._machine.session.id} ran out of time")
        self._complete(SessionStatus.EXPIRED)

    def _complete(self, status: SessionStatus) -> SessionSummary | None:
        if self._machine is None:
            return None
        changed = self._machine.expire() if status == SessionStatus.EXPIRED else self._machine.finish()
        if not changed:
            return None

        self._release_timer()
        summary = score(self._machine.session)
        self._last_summary = summary
        try:
            self.history.append(summary)
        except HistoryCorrupted as e:
            # The summary is still returned and shown; only persistence failed
            logger.error(f"Session {summary.id} could not be recorded: {e}")
            self._last_error = e

        if self.on_complete is not None:
            self.on_complete(summary)
        return summary

    def _release_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
