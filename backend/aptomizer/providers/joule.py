"""Joule Finance lending market: market data API and on-chain position views.

Position payloads arrive in two shapes. The ``user_positions_map`` view returns
a map of position id to position body, while single-position views return the
body directly. Both are classified at this boundary into a tagged union and
converted to :class:`LendingPosition` before anything else sees them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Union

import httpx

from aptomizer.config import get_settings
from aptomizer.providers.aptos_node import AptosNodeClient
from aptomizer.services.results import FetchError

JOULE_CONTRACT = "0x2fe576faa841347a9b1b32c869685deb75a15e3f62dfe37cbd6d52cc403a16f6"
MARKET_SOURCE = "joule-market"
POSITION_SOURCE = "joule-positions"
DEFAULT_LTV = 0.7


def _to_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class MarketPool:
    asset_type: str
    display_name: str
    asset_name: str
    icon: str
    fa_address: str | None
    ltv: str | None
    asset_ltv: float | None
    market_size: float | None
    total_borrowed: float | None
    deposit_apy: float | None
    borrow_apy: float | None
    extra_deposit_apy: float = 0.0
    extra_borrow_apy: float = 0.0
    price: float | None = None
    price_token_address: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def total_deposit_apy(self) -> float:
        return (self.deposit_apy or 0.0) + self.extra_deposit_apy

    @property
    def ltv_ratio(self) -> float:
        """Pool ``ltv`` string / 100, else asset ``ltv`` / 100, else 0.7."""

        pool_ltv = _to_float(self.ltv) if self.ltv is not None else None
        if pool_ltv is not None:
            return pool_ltv / 100
        if self.asset_ltv:
            return self.asset_ltv / 100
        return DEFAULT_LTV

    @property
    def utilization(self) -> float:
        market_size = self.market_size or 0.0
        return (self.total_borrowed or 0.0) / market_size if market_size > 0 else 0.0

    def matches(self, token_address: str) -> bool:
        return token_address in (self.asset_type, self.price_token_address, self.fa_address)


def parse_market_pool(item: dict[str, Any]) -> MarketPool | None:
    asset = item.get("asset")
    if not isinstance(asset, dict) or not asset.get("type"):
        return None
    extra = item.get("extraAPY") or {}
    price_info = item.get("priceInfo") or {}
    return MarketPool(
        asset_type=str(asset["type"]),
        display_name=str(asset.get("displayName") or ""),
        asset_name=str(asset.get("assetName") or ""),
        icon=str(asset.get("icon") or ""),
        fa_address=asset.get("faAddress"),
        ltv=None if item.get("ltv") in (None, "") else str(item.get("ltv")),
        asset_ltv=_to_float(asset.get("ltv")),
        market_size=_to_float(item.get("marketSize")),
        total_borrowed=_to_float(item.get("totalBorrowed")),
        deposit_apy=_to_float(item.get("depositApy")),
        borrow_apy=_to_float(item.get("borrowApy")),
        extra_deposit_apy=_to_float(extra.get("depositAPY")) or 0.0,
        extra_borrow_apy=_to_float(extra.get("borrowAPY")) or 0.0,
        price=_to_float(price_info.get("price")),
        price_token_address=price_info.get("tokenAddress"),
        raw=item,
    )


def parse_market(payload: Any) -> list[MarketPool]:
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, list):
        raise FetchError(MARKET_SOURCE, "Invalid data structure received from market API")
    pools = [parse_market_pool(item) for item in data if isinstance(item, dict)]
    return [pool for pool in pools if pool is not None]


@dataclass(frozen=True)
class PositionLeg:
    token_address: str
    raw_amount: int


@dataclass(frozen=True)
class LendingPosition:
    position_id: str
    name: str
    lend: tuple[PositionLeg, ...] = ()
    borrow: tuple[PositionLeg, ...] = ()


@dataclass(frozen=True)
class MapPosition:
    entries: tuple[tuple[str, dict[str, Any]], ...]
    kind: Literal["map"] = "map"


@dataclass(frozen=True)
class LegacyPosition:
    position_id: str
    body: dict[str, Any]
    kind: Literal["legacy"] = "legacy"


RawPosition = Union[MapPosition, LegacyPosition]


def classify_positions(payload: Any, *, position_id: str = "") -> list[RawPosition]:
    """Discriminate view results into :class:`MapPosition` / :class:`LegacyPosition`."""

    items = payload if isinstance(payload, list) else [payload]
    classified: list[RawPosition] = []
    for item in items:
        if not isinstance(item, dict):
            raise FetchError(POSITION_SOURCE, "Unrecognised position payload")
        if "positions_map" in item:
            data = (item.get("positions_map") or {}).get("data") or []
            entries = tuple(
                (str(entry.get("key", "")), entry.get("value") or {})
                for entry in data
                if isinstance(entry, dict)
            )
            classified.append(MapPosition(entries=entries))
        elif "lend_positions" in item or "borrow_positions" in item:
            classified.append(LegacyPosition(position_id=position_id, body=item))
        else:
            raise FetchError(POSITION_SOURCE, "Unrecognised position payload")
    return classified


def _legs(container: Any) -> tuple[PositionLeg, ...]:
    entries = container.get("data") if isinstance(container, dict) else container
    if not isinstance(entries, list):
        return ()
    legs: list[PositionLeg] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        token = entry.get("key") or entry.get("token") or entry.get("coin_type")
        amount = entry.get("value", entry.get("amount"))
        if not token or amount is None:
            continue
        try:
            legs.append(PositionLeg(token_address=str(token), raw_amount=int(amount)))
        except (TypeError, ValueError):
            continue
    return tuple(legs)


def _position(position_id: str, body: dict[str, Any]) -> LendingPosition:
    return LendingPosition(
        position_id=position_id,
        name=str(body.get("position_name") or "Joule Position"),
        lend=_legs(body.get("lend_positions")),
        borrow=_legs(body.get("borrow_positions")),
    )


def to_lending_positions(raw_positions: list[RawPosition]) -> list[LendingPosition]:
    positions: list[LendingPosition] = []
    for raw in raw_positions:
        if isinstance(raw, MapPosition):
            positions.extend(_position(position_id, body) for position_id, body in raw.entries)
        else:
            positions.append(_position(raw.position_id, raw.body))
    return positions


class JouleClient:
    """Market data over HTTP plus position reads through the node's view API."""

    def __init__(
        self,
        node: AptosNodeClient,
        *,
        client: httpx.AsyncClient | None = None,
        market_url: str | None = None,
    ) -> None:
        settings = get_settings()
        self._node = node
        self._client = client or httpx.AsyncClient(timeout=settings.http_timeout_seconds)
        self._owns_client = client is None
        self.market_url = market_url or settings.joule_market_url

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def market_payload(self) -> dict[str, Any]:
        try:
            response = await self._client.get(self.market_url)
        except httpx.HTTPError as exc:
            raise FetchError(MARKET_SOURCE, f"Failed to fetch pools: {exc}") from exc
        if response.status_code >= 400:
            raise FetchError(MARKET_SOURCE, f"Failed to fetch pools: HTTP {response.status_code}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise FetchError(MARKET_SOURCE, "Market API returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise FetchError(MARKET_SOURCE, "Invalid data structure received from market API")
        return payload

    async def pools(self) -> list[MarketPool]:
        return parse_market(await self.market_payload())

    async def pool_details(self, token_address: str) -> MarketPool:
        for pool in await self.pools():
            if pool.matches(token_address):
                return pool
        raise FetchError(MARKET_SOURCE, "Pool not found", key=token_address)

    async def user_positions(self, address: str) -> list[LendingPosition]:
        result = await self._node.view(f"{JOULE_CONTRACT}::pool::user_positions_map", [], [address])
        return to_lending_positions(classify_positions(result))

    async def user_position(self, address: str, position_id: str) -> LendingPosition:
        result = await self._node.view(
            f"{JOULE_CONTRACT}::pool::user_position_details", [], [address, position_id]
        )
        positions = to_lending_positions(classify_positions(result, position_id=position_id))
        if not positions:
            raise FetchError(POSITION_SOURCE, "Position not found", key=position_id)
        return positions[0]


__all__ = [
    "JOULE_CONTRACT",
    "JouleClient",
    "LegacyPosition",
    "LendingPosition",
    "MapPosition",
    "MarketPool",
    "PositionLeg",
    "RawPosition",
    "classify_positions",
    "parse_market",
    "parse_market_pool",
    "to_lending_positions",
]
