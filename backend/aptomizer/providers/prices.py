"""USD token prices from the Pyth Hermes price service."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

import httpx

from aptomizer.config import get_settings
from aptomizer.services.results import FetchError, FetchResult, capture

logger = logging.getLogger(__name__)

SOURCE = "price"


def _normalise_id(feed_id: str) -> str:
    return feed_id.lower().removeprefix("0x")


def _scaled_price(entry: dict[str, Any]) -> float:
    price = entry.get("price") or {}
    return int(price["price"]) * 10 ** int(price["expo"])


class PriceClient:
    """Resolves symbols to USD prices with a bounded, time-boxed fan-out."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        concurrency: int | None = None,
        budget_seconds: float | None = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.price_feed_url).rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=settings.http_timeout_seconds)
        self._owns_client = client is None
        self._concurrency = concurrency or settings.price_fetch_concurrency
        self._budget_seconds = budget_seconds or settings.price_fetch_budget_seconds

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get(self, path: str, params: Any, *, key: str | None = None) -> Any:
        try:
            response = await self._client.get(f"{self.base_url}{path}", params=params)
        except httpx.HTTPError as exc:
            raise FetchError(SOURCE, f"Failed to reach price service: {exc}", key=key) from exc
        if response.status_code >= 400:
            raise FetchError(SOURCE, f"Price service returned HTTP {response.status_code}", key=key)
        try:
            return response.json()
        except ValueError as exc:
            raise FetchError(SOURCE, "Price service returned invalid JSON", key=key) from exc

    async def feed_id(self, symbol: str) -> str:
        """Find the ``SYMBOL/USD`` feed id."""

        wanted = symbol.strip().upper()
        feeds = await self._get("/v2/price_feeds", {"query": wanted, "asset_type": "crypto"}, key=wanted)
        if not isinstance(feeds, list):
            raise FetchError(SOURCE, "Price feed search response is not a list", key=wanted)
        for feed in feeds:
            attributes = feed.get("attributes") or {}
            if str(attributes.get("base", "")).upper() == wanted and attributes.get("quote_currency") == "USD":
                return _normalise_id(str(feed["id"]))
        raise FetchError(SOURCE, "No USD price feed", key=wanted)

    async def latest(self, feed_ids: Iterable[str]) -> dict[str, float]:
        ids = [_normalise_id(feed_id) for feed_id in feed_ids]
        if not ids:
            return {}
        payload = await self._get("/v2/updates/price/latest", [("ids[]", feed_id) for feed_id in ids])
        parsed = payload.get("parsed") if isinstance(payload, dict) else None
        if not isinstance(parsed, list):
            raise FetchError(SOURCE, "Latest price response has no parsed entries")
        prices: dict[str, float] = {}
        for entry in parsed:
            try:
                prices[_normalise_id(str(entry["id"]))] = _scaled_price(entry)
            except (KeyError, TypeError, ValueError):
                continue
        return prices

    async def price(self, symbol: str) -> float:
        wanted = symbol.strip().upper()
        feed_id = await self.feed_id(wanted)
        prices = await self.latest([feed_id])
        if feed_id not in prices:
            raise FetchError(SOURCE, "Price feed returned no value", key=wanted)
        return prices[feed_id]

    async def prices(self, symbols: Iterable[str]) -> dict[str, FetchResult[float]]:
        """Price each distinct symbol once; every symbol gets a result, never an exception."""

        wanted = sorted({symbol.strip().upper() for symbol in symbols if symbol and symbol.strip()})
        if not wanted:
            return {}
        semaphore = asyncio.Semaphore(self._concurrency)

        async def _resolve(symbol: str) -> FetchResult[float]:
            async with semaphore:
                return await capture(SOURCE, self.price(symbol), key=symbol)

        tasks = {symbol: asyncio.ensure_future(_resolve(symbol)) for symbol in wanted}
        _, pending = await asyncio.wait(tasks.values(), timeout=self._budget_seconds)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(
                "Price fan-out exceeded %.1fs budget for %d of %d symbols",
                self._budget_seconds,
                len(pending),
                len(wanted),
            )

        results: dict[str, FetchResult[float]] = {}
        for symbol, task in tasks.items():
            if task in pending:
                results[symbol] = FetchResult.failure(FetchError(SOURCE, "Price budget exceeded", key=symbol))
            else:
                results[symbol] = task.result()
        return results


__all__ = ["PriceClient"]
