"""
Item bank provider interface and the in-memory bank.

A provider returns *up to* ``limit`` items for a filter. Returning fewer is
not an error; topping up is the controller's job. Failure is signalled with
``BankUnavailable``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, Protocol

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from prepdeck.engine.errors import BankUnavailable
from prepdeck.engine.models import Difficulty, Item, SessionKind


class ItemFilter(BaseModel):
    """What the caller wants from the bank."""

    kind: SessionKind
    query: str | None = None
    category: str | None = None
    difficulty: Difficulty | None = None
    company: str | None = None
    # Target position; sent to remote banks and recorded with results
    role: str | None = None
    limit: int = Field(default=10, ge=1)

    def matches(self, item: Item) -> bool:
        if item.kind != self.kind:
            return False
        if self.category and item.category.lower() != self.category.lower():
            return False
        if self.difficulty and item.difficulty != self.difficulty:
            return False
        if self.company and (item.company or "").lower() != self.company.lower():
            return False
        if self.query:
            needle = self.query.lower()
            haystack = f"{item.prompt} {item.category}".lower()
            if needle not in haystack:
                return False
        return True

    def to_params(self) -> dict[str, Any]:
        """Query parameters for remote banks."""
        params: dict[str, Any] = {"limit": self.limit}
        if self.query:
            params["q"] = self.query
        if self.category:
            params["category"] = self.category
        if self.difficulty:
            params["difficulty"] = self.difficulty.value
        if self.company:
            params["company"] = self.company
        if self.role:
            params["role"] = self.role
        return params


class ItemBankProvider(Protocol):
    """Protocol for item sources."""

    async def fetch_items(self, item_filter: ItemFilter) -> list[Item]:
        """Return up to ``item_filter.limit`` items in presentation order."""
        ...


def _coerce_difficulty(raw: Any) -> Difficulty:
    if isinstance(raw, str):
        for level in Difficulty:
            if raw.strip().lower() == level.value.lower():
                return level
    return Difficulty.MEDIUM


def parse_item(payload: dict[str, Any], kind: SessionKind, position: int) -> Item:
    """
    Build an ``Item`` from a loosely shaped bank payload.

    Accepts the field names used by the web front end (``question``,
    ``correct``, ``testCases``, ``expectedDuration``) as well as the model's
    own names. Missing category/difficulty fall back to General/Medium and a
    missing id becomes a positional one.
    """
    data = dict(payload)
    item_id = data.get("id")
    fields: dict[str, Any] = {
        "id": str(item_id) if item_id not in (None, "") else f"{kind.value}-{position}",
        "kind": kind,
        "prompt": data.get("prompt") or data.get("question") or data.get("title") or "",
        "category": data.get("category") or data.get("type") or "General",
        "difficulty": _coerce_difficulty(data.get("difficulty")),
        "company": data.get("company") or None,
        "explanation": data.get("explanation"),
        "tips": data.get("tips"),
    }

    if "estimated_seconds" in data:
        fields["estimated_seconds"] = data["estimated_seconds"]
    elif "expectedDuration" in data:
        # Minutes in the web payloads
        fields["estimated_seconds"] = int(data["expectedDuration"]) * 60

    if kind == SessionKind.MCQ:
        fields["options"] = tuple(data.get("options") or ())
        correct = data.get("correct_index", data.get("correct"))
        fields["correct_index"] = correct if isinstance(correct, int) and not isinstance(correct, bool) else None
    elif kind == SessionKind.CODING:
        fields["test_cases"] = tuple(data.get("test_cases") or data.get("testCases") or ())
        fields["hints"] = tuple(data.get("hints") or ())
        if not fields["prompt"]:
            fields["prompt"] = data.get("description", "")

    if not fields["prompt"]:
        raise ValueError(f"Item payload at position {position} has no prompt")
    return Item.model_validate(fields)


def parse_items(payloads: Iterable[dict[str, Any]], kind: SessionKind) -> list[Item]:
    """Parse a payload list, raising ``BankUnavailable`` on malformed data."""
    items = []
    for position, payload in enumerate(payloads):
        try:
            items.append(parse_item(payload, kind, position))
        except (ValidationError, ValueError, TypeError) as e:
            raise BankUnavailable(f"Malformed {kind.value} item at position {position}", cause=e) from e
    return items


class StaticItemBank:
    """
    In-memory bank.

    Useful for tests and for banks shipped as JSON files:

        bank = StaticItemBank.from_file(Path("mcq_bank.json"), SessionKind.MCQ)
    """

    def __init__(self, items: Iterable[Item] = ()):
        self._items = list(items)

    @classmethod
    def from_file(cls, path: Path, kind: SessionKind) -> "StaticItemBank":
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise BankUnavailable(f"Cannot read item bank {path}", cause=e) from e

        payloads = data.get("items", []) if isinstance(data, dict) else data
        items = parse_items(payloads, kind)
        logger.info(f"Loaded {len(items)} {kind.value} items from {path}")
        return cls(items)

    def __len__(self) -> int:
        return len(self._items)

    async def fetch_items(self, item_filter: ItemFilter) -> list[Item]:
        matched = [item for item in self._items if item_filter.matches(item)]
        return matched[: item_filter.limit]
