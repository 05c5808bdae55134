"""
Item sources for assessment sessions.

- provider: filter model, provider protocol, in-memory bank
- http_bank: remote bank over HTTP with retries
- fallback: deterministic local items for top-ups
"""

from .provider import ItemBankProvider, ItemFilter, StaticItemBank, parse_item, parse_items
from .http_bank import HttpItemBank
from .fallback import FallbackGenerator

__all__ = [
    "FallbackGenerator",
    "HttpItemBank",
    "ItemBankProvider",
    "ItemFilter",
    "StaticItemBank",
    "parse_item",
    "parse_items",
]
