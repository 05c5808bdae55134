"""
Remote item bank over HTTP.

Retries timeouts, connection errors and 5xx responses with exponential
backoff; 4xx responses fail immediately. Every failure surfaces as
``BankUnavailable`` so the controller can fall back to local items.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
from loguru import logger

from prepdeck.engine.errors import BankUnavailable
from prepdeck.engine.models import Item

from .provider import ItemFilter, parse_items


class HttpItemBank:
    """HTTP client for a remote item bank."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout_seconds: float = 10.0,
        retry_attempts: int = 3,
        backoff_base: float = 1.0,
    ):
        """
        Initialize the bank client.

        Args:
            base_url: Base URL of the bank API (``{base_url}/{kind}/items``)
            api_key: Optional key sent as ``X-API-Key``
            timeout_seconds: Per-request timeout
            retry_attempts: Attempts before giving up
            backoff_base: First retry delay; doubles on each attempt
        """
        self.base_url = base_url.rstrip("/")
        self.retry_attempts = max(1, retry_attempts)
        self.backoff_base = backoff_base

        headers = {"Accept": "application/json"}
        if api_key:
            headers["X-API-Key"] = api_key
        self.client = httpx.AsyncClient(
            headers=headers,
            timeout=httpx.Timeout(timeout_seconds),
            follow_redirects=True,
        )

    async def __aenter__(self) -> "HttpItemBank":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def fetch_items(self, item_filter: ItemFilter) -> list[Item]:
        """
        Fetch items for a filter.

        Raises:
            BankUnavailable: After retries are exhausted, on a 4xx response,
                or when the payload cannot be parsed.
        """
        url = f"{self.base_url}/{item_filter.kind.value}/items"
        data = await self._get_json(url, item_filter.to_params())

        payloads = data.get("items") if isinstance(data, dict) else data
        if not isinstance(payloads, list):
            raise BankUnavailable(f"Unexpected item bank payload from {url}")

        items = parse_items(payloads, item_filter.kind)[: item_filter.limit]
        logger.debug(f"Fetched {len(items)} {item_filter.kind.value} items from {url}")
        return items

    async def _get_json(self, url: str, params: dict[str, Any]) -> Any:
        last_error: Exception | None = None

        for attempt in range(self.retry_attempts):
            try:
                response = await self.client.get(url, params=params)
                response.raise_for_status()
                return response.json()

            except httpx.HTTPStatusError as e:
                last_error = e
                status = e.response.status_code
                if status < 500:
                    logger.error(f"Item bank rejected request: {status}")
                    raise BankUnavailable(f"Item bank returned {status}", cause=e) from e
                logger.warning(
                    f"Item bank server error {status} on attempt "
                    f"{attempt + 1}/{self.retry_attempts}"
                )

            except (httpx.TimeoutException, httpx.RequestError) as e:
                last_error = e
                logger.warning(
                    f"Item bank request failed on attempt {attempt + 1}/{self.retry_attempts}: {e}"
                )

            except ValueError as e:
                # Body was not JSON
                raise BankUnavailable(f"Item bank sent invalid JSON from {url}", cause=e) from e

            if attempt < self.retry_attempts - 1:
                await asyncio.sleep(self.backoff_base * 2 ** attempt)

        logger.error(f"Item bank unavailable after {self.retry_attempts} attempts: {last_error}")
        raise BankUnavailable(
            f"Item bank unavailable after {self.retry_attempts} attempts",
            cause=last_error,
        )
