"""Signing agent acting on behalf of a user's custodial AI wallet."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Optional, Protocol

from aptos_sdk.account import Account
from aptos_sdk.async_client import RestClient

from aptomizer.providers.aptos_node import APT_COIN_TYPE, AptosNodeClient
from aptomizer.providers.joule import JOULE_CONTRACT, JouleClient, LendingPosition, MarketPool
from aptomizer.providers.panora import PanoraClient
from aptomizer.providers.prices import PriceClient
from aptomizer.services.tokens import ResolvedToken, TokenList

logger = logging.getLogger(__name__)

AMNIS_CONTRACT = "0x111ae3e5bc816a5e63c2da97d0aa3886519e0cd5e4b046659fa35796bd11542a"
FA_METADATA = "0x1::fungible_asset::Metadata"
TOKEN_OBJECT = "0x4::token::Token"
APT_DECIMALS = 8

Payload = dict[str, Any]


def to_on_chain(amount: float, decimals: int) -> int:
    """Human-readable amount to integer base units, truncating excess precision."""

    return int(Decimal(str(amount)) * (Decimal(10) ** decimals))


def entry_function(function: str, type_arguments: list[str], arguments: list[Any]) -> Payload:
    return {
        "type": "entry_function_payload",
        "function": function,
        "type_arguments": type_arguments,
        "arguments": [str(arg) if isinstance(arg, int) and not isinstance(arg, bool) else arg for arg in arguments],
    }


def is_coin_type(mint: str) -> bool:
    return "::" in mint


class TransactionSubmitter(Protocol):
    async def submit(self, payload: Payload) -> str: ...


class SdkSubmitter:
    """Signs with the wallet's key and waits for the transaction to commit."""

    def __init__(self, account: Account, client: RestClient) -> None:
        self.account = account
        self._client = client

    async def submit(self, payload: Payload) -> str:
        tx_hash = await self._client.submit_transaction(self.account, payload)
        await self._client.wait_for_transaction(tx_hash)
        logger.info("Committed %s from %s as %s", payload["function"], self.account.address(), tx_hash)
        return tx_hash


class AptosAgent:
    """Read helpers and entry-function builders for one AI wallet."""

    def __init__(
        self,
        address: str,
        submitter: TransactionSubmitter,
        *,
        node: AptosNodeClient,
        tokens: TokenList,
        prices: PriceClient,
        joule: JouleClient,
        panora: PanoraClient,
    ) -> None:
        self.address = address
        self.submitter = submitter
        self.node = node
        self.tokens = tokens
        self.prices = prices
        self.joule = joule
        self.panora = panora

    # reads

    async def get_balance(self, mint: Optional[str] = None) -> float:
        if mint and mint != APT_COIN_TYPE:
            token = self.tokens.resolve(mint)
            return token.to_units(await self.node.coin_balance(self.address, mint))
        return await self.node.native_balance(self.address) / 10**APT_DECIMALS

    def get_token_details(self, mint: str) -> ResolvedToken:
        return self.tokens.resolve(mint)

    def is_fungible_asset(self, mint: str) -> bool:
        info = self.tokens.find(mint)
        return bool(info and info.fa_address and info.fa_address.lower() == mint.lower())

    async def get_token_price(self, symbol: str) -> float:
        return await self.prices.price(symbol)

    async def get_transaction(self, tx_hash: str) -> dict[str, Any]:
        return await self.node.transaction_by_hash(tx_hash)

    async def get_pool_details(self, mint: str) -> MarketPool:
        return await self.joule.pool_details(mint)

    async def get_all_pools(self) -> list[MarketPool]:
        return await self.joule.pools()

    async def get_user_position(self, position_id: str, address: Optional[str] = None) -> LendingPosition:
        return await self.joule.user_position(address or self.address, position_id)

    async def get_user_all_positions(self, address: Optional[str] = None) -> list[LendingPosition]:
        return await self.joule.user_positions(address or self.address)

    # transfers

    async def transfer_tokens(self, to: str, amount: int, mint: str) -> str:
        if is_coin_type(mint):
            payload = entry_function("0x1::aptos_account::transfer_coins", [mint], [to, amount])
        else:
            payload = entry_function("0x1::primary_fungible_store::transfer", [FA_METADATA], [mint, to, amount])
        return await self.submitter.submit(payload)

    async def transfer_nft(self, to: str, mint: str) -> str:
        return await self.submitter.submit(entry_function("0x1::object::transfer", [TOKEN_OBJECT], [mint, to]))

    # amnis liquid staking

    async def stake_with_amnis(self, to: str, amount: int) -> str:
        payload = entry_function(f"{AMNIS_CONTRACT}::router::deposit_and_stake_entry", [], [amount, to])
        return await self.submitter.submit(payload)

    async def withdraw_stake_from_amnis(self, to: str, amount: int) -> str:
        payload = entry_function(f"{AMNIS_CONTRACT}::router::unstake_entry", [], [amount, to])
        return await self.submitter.submit(payload)

    # joule lending

    async def lend_token(
        self, amount: int, mint: str, position_id: str, new_position: bool, fungible_asset: bool
    ) -> str:
        if fungible_asset:
            payload = entry_function(
                f"{JOULE_CONTRACT}::pool::lend_fa", [], [position_id, mint, new_position, amount]
            )
        else:
            payload = entry_function(f"{JOULE_CONTRACT}::pool::lend", [mint], [position_id, amount, new_position])
        return await self.submitter.submit(payload)

    async def borrow_token(self, amount: int, mint: str, position_id: str, fungible_asset: bool) -> str:
        if fungible_asset:
            payload = entry_function(f"{JOULE_CONTRACT}::pool::borrow_fa", [], [position_id, mint, amount, []])
        else:
            payload = entry_function(f"{JOULE_CONTRACT}::pool::borrow", [mint], [position_id, amount, []])
        return await self.submitter.submit(payload)

    async def repay_token(self, amount: int, mint: str, position_id: str, fungible_asset: bool) -> str:
        if fungible_asset:
            payload = entry_function(f"{JOULE_CONTRACT}::pool::repay_fa", [], [position_id, mint, amount])
        else:
            payload = entry_function(f"{JOULE_CONTRACT}::pool::repay", [mint], [position_id, amount])
        return await self.submitter.submit(payload)

    async def withdraw_token(self, amount: int, mint: str, position_id: str, fungible_asset: bool) -> str:
        if fungible_asset:
            payload = entry_function(f"{JOULE_CONTRACT}::pool::withdraw_fa", [], [position_id, mint, amount, []])
        else:
            payload = entry_function(f"{JOULE_CONTRACT}::pool::withdraw", [mint], [position_id, amount, []])
        return await self.submitter.submit(payload)

    async def claim_reward(self, reward_coin_type: str) -> str:
        payload = entry_function(f"{JOULE_CONTRACT}::pool::claim_rewards", [reward_coin_type], [])
        return await self.submitter.submit(payload)

    # panora

    async def swap_with_panora(
        self, from_token: str, to_token: str, amount: float, to_wallet_address: Optional[str] = None
    ) -> str:
        payload = await self.panora.swap_payload(from_token, to_token, amount, to_wallet_address or self.address)
        return await self.submitter.submit(payload)


__all__ = [
    "AMNIS_CONTRACT",
    "AptosAgent",
    "SdkSubmitter",
    "TransactionSubmitter",
    "entry_function",
    "is_coin_type",
    "to_on_chain",
]
