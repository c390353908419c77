"""Wallet fetching degrades per dependency instead of failing."""

from __future__ import annotations

import httpx

from aptomizer.providers.aptos_node import APT_COIN_TYPE, AptosNodeError
from aptomizer.providers.joule import LendingPosition, PositionLeg
from aptomizer.services.fetcher import WalletFetcher, coin_balances
from aptomizer.services.portfolio import build_portfolio
from aptomizer.services.results import FetchError, FetchResult
from aptomizer.services.tokens import TokenList

USDC = "0xf22bede237a07e121b56d91a491eb7bcdfd1f5907926a9e58338f964a01b17fa::asset::USDC"
TOKEN_LIST = [{"tokenAddress": USDC, "symbol": "USDC", "name": "USD Coin", "decimals": 6, "logoUrl": "usdc.png"}]


class StubNode:
    def __init__(self, resources=None, resources_error: Exception | None = None) -> None:
        self.resources = resources or []
        self.resources_error = resources_error

    async def native_balance(self, address: str) -> int:
        return 300_000_000

    async def account_resources(self, address: str):
        if self.resources_error is not None:
            raise self.resources_error
        return self.resources


class StubJoule:
    def __init__(self, positions=None, error: Exception | None = None) -> None:
        self.positions = positions or []
        self.error = error

    async def user_positions(self, address: str):
        if self.error is not None:
            raise self.error
        return self.positions

    async def pools(self):
        raise FetchError("joule-market", "market down")


class StubPrices:
    def __init__(self) -> None:
        self.requested: set[str] = set()

    async def prices(self, symbols):
        self.requested = set(symbols)
        results = {symbol: FetchResult.failure(FetchError("price", "no feed", key=symbol)) for symbol in self.requested}
        results["APT"] = FetchResult.success(8.0)
        return results


def _http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, json=TOKEN_LIST)))


def test_coin_balances_skip_apt_and_empty_stores():
    resources = [
        {"type": f"0x1::coin::CoinStore<{APT_COIN_TYPE}>", "data": {"coin": {"value": "100"}}},
        {"type": f"0x1::coin::CoinStore<{USDC}>", "data": {"coin": {"value": "2500000"}}},
        {"type": "0x1::coin::CoinStore<0xabc::moon::MOON>", "data": {"coin": {"value": "0"}}},
        {"type": "0x1::account::Account", "data": {}},
    ]
    tokens = TokenList()
    balances = coin_balances(resources, tokens)
    assert [held.token.symbol for held in balances] == ["USDC"]
    assert balances[0].balance == 0.025


async def test_fetch_degrades_failed_sources_to_defaults():
    prices = StubPrices()
    async with _http_client() as client:
        fetcher = WalletFetcher(
            StubNode(resources_error=AptosNodeError("node down")),
            StubJoule(error=RuntimeError("view failed")),
            prices,
            client=client,
            token_list_url="https://tokens.test/list.json",
        )
        wallet = await fetcher.fetch("0xai")

    assert [(held.token.symbol, held.balance) for held in wallet.balances] == [("APT", 3.0)]
    assert wallet.positions == []
    assert wallet.pools == []
    assert prices.requested == {"APT"}
    assert wallet.price_of("apt") == 8.0


async def test_portfolio_prices_position_tokens_too():
    prices = StubPrices()
    positions = [LendingPosition(position_id="9", name="Lend", lend=(PositionLeg(USDC, 4_000_000),))]
    resources = [{"type": f"0x1::coin::CoinStore<{USDC}>", "data": {"coin": {"value": "1000000"}}}]
    async with _http_client() as client:
        fetcher = WalletFetcher(
            StubNode(resources=resources),
            StubJoule(positions=positions),
            prices,
            client=client,
            token_list_url="https://tokens.test/list.json",
        )
        snapshot = await build_portfolio(fetcher, "0xai", risk_tolerance=3)

    assert prices.requested == {"APT", "USDC"}
    assert snapshot.total_value == 24.0
    usdc = next(asset for asset in snapshot.assets if asset.symbol == "USDC")
    assert usdc.value == 0.0
    assert usdc.logo_url == "usdc.png"
    assert snapshot.strategies[0].apy == 0.5
    assert snapshot.positions[0].supplied == 4.0
    assert snapshot.risk_score == 30
