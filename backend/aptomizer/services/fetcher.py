"""Gather balances, lending positions, market pools and prices for one wallet.

Every external call is captured and folded with an explicit default, so a
single failing dependency degrades the snapshot instead of failing it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from aptomizer.providers.aptos_node import APT_COIN_TYPE, COIN_STORE_PREFIX, AptosNodeClient
from aptomizer.providers.joule import JouleClient, LendingPosition, MarketPool
from aptomizer.providers.prices import PriceClient
from aptomizer.services.results import capture, fold
from aptomizer.services.tokens import ResolvedToken, TokenList, coin_type_from_resource_type, load_token_list

logger = logging.getLogger(__name__)

APT_NAME = "Aptos Coin"


@dataclass(frozen=True)
class HeldBalance:
    token: ResolvedToken
    balance: float


@dataclass
class FetchedWallet:
    """Raw-but-normalised inputs for the portfolio aggregator."""

    address: str
    tokens: TokenList
    balances: list[HeldBalance] = field(default_factory=list)
    positions: list[LendingPosition] = field(default_factory=list)
    pools: list[MarketPool] = field(default_factory=list)
    prices: dict[str, float] = field(default_factory=dict)

    def price_of(self, symbol: str) -> float:
        return self.prices.get(symbol.strip().upper(), 0.0)


def coin_balances(resources: list[dict[str, Any]], tokens: TokenList) -> list[HeldBalance]:
    """Non-zero ``CoinStore`` balances other than APT, in resource order."""

    balances: list[HeldBalance] = []
    for resource in resources:
        resource_type = str(resource.get("type", ""))
        if not resource_type.startswith(COIN_STORE_PREFIX):
            continue
        coin_type = coin_type_from_resource_type(resource_type)
        if not coin_type or coin_type == APT_COIN_TYPE:
            continue
        data = resource.get("data") or {}
        raw = (data.get("coin") or {}).get("value")
        if not raw:
            continue
        token = tokens.resolve(coin_type)
        try:
            balance = token.to_units(raw)
        except (TypeError, ValueError):
            logger.debug("Skipping unparsable balance %r for %s", raw, coin_type)
            continue
        if balance <= 0:
            continue
        balances.append(HeldBalance(token=token, balance=balance))
    return balances


def apt_token(tokens: TokenList) -> ResolvedToken:
    return ResolvedToken(
        address=APT_COIN_TYPE,
        symbol="APT",
        name=APT_NAME,
        decimals=8,
        logo_url=tokens.logo_for_symbol("APT"),
        listed=tokens.find_symbol("APT") is not None,
    )


class WalletFetcher:
    """Collects everything the aggregator needs for a single address."""

    def __init__(
        self,
        node: AptosNodeClient,
        joule: JouleClient,
        prices: PriceClient,
        *,
        client: httpx.AsyncClient,
        token_list_url: str | None = None,
    ) -> None:
        self.node = node
        self.joule = joule
        self.price_client = prices
        self._client = client
        self._token_list_url = token_list_url

    async def fetch(self, address: str) -> FetchedWallet:
        tokens = await load_token_list(self._client, url=self._token_list_url)

        native, resources, positions, pools = await asyncio.gather(
            capture("aptos-node", self.node.native_balance(address), key="APT"),
            capture("aptos-node", self.node.account_resources(address), key=address),
            capture("joule-positions", self.joule.user_positions(address), key=address),
            capture("joule-market", self.joule.pools()),
        )

        wallet = FetchedWallet(
            address=address,
            tokens=tokens,
            positions=fold(positions, []),
            pools=fold(pools, []),
        )

        apt = apt_token(tokens)
        apt_balance = apt.to_units(fold(native, 0))
        if apt_balance > 0:
            wallet.balances.append(HeldBalance(token=apt, balance=apt_balance))
        wallet.balances.extend(coin_balances(fold(resources, []), tokens))

        symbols = {held.token.symbol for held in wallet.balances}
        for position in wallet.positions:
            for leg in (*position.lend, *position.borrow):
                symbols.add(tokens.resolve(leg.token_address).symbol)

        priced = await self.price_client.prices(symbols)
        wallet.prices = {symbol: fold(result, 0.0) for symbol, result in priced.items()}
        logger.debug(
            "Fetched %d balances, %d positions, %d pools for %s",
            len(wallet.balances),
            len(wallet.positions),
            len(wallet.pools),
            address,
        )
        return wallet


__all__ = ["FetchedWallet", "HeldBalance", "WalletFetcher", "apt_token", "coin_balances"]
