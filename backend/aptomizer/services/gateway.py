"""Process-wide access to chain, price, lending and swap services."""

from __future__ import annotations

from typing import Optional

import httpx
from aptos_sdk.account import Account
from aptos_sdk.async_client import RestClient

from aptomizer.config import AppSettings, get_settings
from aptomizer.providers.aptos_node import AptosNodeClient
from aptomizer.providers.joule import JouleClient
from aptomizer.providers.panora import PanoraClient
from aptomizer.providers.prices import PriceClient
from aptomizer.services.agent import AptosAgent, SdkSubmitter
from aptomizer.services.fetcher import WalletFetcher
from aptomizer.services.portfolio import PortfolioSnapshot, build_portfolio
from aptomizer.services.tokens import TokenList, load_token_list
from aptomizer.services.wallets import UnlockedWallet


class ChainGateway:
    """Owns one pooled HTTP client shared by every outbound provider."""

    def __init__(self, settings: AppSettings | None = None, *, client: httpx.AsyncClient | None = None) -> None:
        self.settings = settings or get_settings()
        self.client = client or httpx.AsyncClient(timeout=self.settings.http_timeout_seconds)
        self._owns_client = client is None
        self.node = AptosNodeClient(self.settings.node_url, client=self.client)
        self.prices = PriceClient(
            self.settings.price_feed_url,
            client=self.client,
            concurrency=self.settings.price_fetch_concurrency,
            budget_seconds=self.settings.price_fetch_budget_seconds,
        )
        self.joule = JouleClient(self.node, client=self.client, market_url=self.settings.joule_market_url)
        self.panora = PanoraClient(
            self.settings.panora_api_url, api_key=self.settings.panora_api_key, client=self.client
        )
        self._rest: Optional[RestClient] = None

    def fetcher(self) -> WalletFetcher:
        return WalletFetcher(
            self.node,
            self.joule,
            self.prices,
            client=self.client,
            token_list_url=self.settings.token_list_url,
        )

    async def token_list(self) -> TokenList:
        return await load_token_list(self.client, url=self.settings.token_list_url)

    async def portfolio(self, ai_wallet_address: str, risk_tolerance: Optional[int] = None) -> PortfolioSnapshot:
        return await build_portfolio(
            self.fetcher(),
            ai_wallet_address,
            risk_tolerance=risk_tolerance,
            include_positions_in_total=self.settings.include_positions_in_total,
        )

    async def agent_for(self, wallet: UnlockedWallet) -> AptosAgent:
        if self._rest is None:
            self._rest = RestClient(self.settings.node_url)
        account = Account.load_key(wallet.private_key)
        return AptosAgent(
            wallet.wallet_address,
            SdkSubmitter(account, self._rest),
            node=self.node,
            tokens=await self.token_list(),
            prices=self.prices,
            joule=self.joule,
            panora=self.panora,
        )

    async def aclose(self) -> None:
        if self._rest is not None:
            await self._rest.close()
        if self._owns_client:
            await self.client.aclose()


__all__ = ["ChainGateway"]
