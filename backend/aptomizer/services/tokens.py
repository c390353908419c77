"""Token metadata resolution with heuristic fallbacks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import httpx

from aptomizer.providers.aptos_node import APT_COIN_TYPE
from aptomizer.providers.token_list import TokenInfo, fetch_token_list
from aptomizer.services.results import capture, fold

DEFAULT_DECIMALS = 8

KNOWN_SYMBOLS = {
    APT_COIN_TYPE: "APT",
    "0x5e156f1207d0ebfa19a9eeff00d62a282278fb8719f4fab3a586a0a2c0fffbea::coin::T": "USDC",
    "0xf22bede237a07e121b56d91a491eb7bcdfd1f5907926a9e58338f964a01b17fa::asset::USDT": "USDT",
}

KNOWN_LOGOS = {
    "APT": "https://raw.githubusercontent.com/hippospace/aptos-coin-list/main/icons/APT.webp",
    "BTC": "https://assets.coingecko.com/coins/images/1/large/bitcoin.png",
    "ETH": "https://assets.coingecko.com/coins/images/279/large/ethereum.png",
    "USDC": "https://assets.coingecko.com/coins/images/6319/large/USD_Coin_icon.png",
    "USDT": "https://assets.coingecko.com/coins/images/325/large/Tether.png",
    "DAI": "https://assets.coingecko.com/coins/images/9956/large/dai-multi-collateral-mcd.png",
}


@dataclass(frozen=True)
class ResolvedToken:
    address: str
    symbol: str
    name: str
    decimals: int
    logo_url: str
    listed: bool

    def to_units(self, raw_amount: int | str) -> float:
        """Convert an on-chain integer amount to a decimal-adjusted quantity."""

        return int(raw_amount) / 10**self.decimals


def coin_type_from_resource_type(resource_type: str) -> str:
    """``0x1::coin::CoinStore<0x1::aptos_coin::AptosCoin>`` -> ``0x1::aptos_coin::AptosCoin``."""

    start = resource_type.find("<")
    end = resource_type.rfind(">")
    if start == -1 or end <= start + 1:
        return ""
    return resource_type[start + 1 : end].strip()


def simplify_token_name(name: str) -> str:
    return name.split("::")[-1]


def symbol_from_coin_type(coin_type: str) -> str:
    return KNOWN_SYMBOLS.get(coin_type) or simplify_token_name(coin_type).upper()


def token_logo_fallback(symbol: str) -> str:
    return KNOWN_LOGOS.get(symbol.strip().upper(), "")


class TokenList:
    """In-memory view of the remote token list for a single request."""

    def __init__(self, tokens: Iterable[TokenInfo] = ()) -> None:
        self._tokens = list(tokens)
        self._by_address: dict[str, TokenInfo] = {}
        for token in self._tokens:
            self._by_address.setdefault(token.token_address, token)
            if token.fa_address:
                self._by_address.setdefault(token.fa_address, token)

    def __len__(self) -> int:
        return len(self._tokens)

    def find(self, address: str) -> TokenInfo | None:
        return self._by_address.get(address)

    def find_symbol(self, symbol: str) -> TokenInfo | None:
        return next((token for token in self._tokens if token.symbol == symbol), None)

    def resolve(self, address: str) -> ResolvedToken:
        """Resolve metadata for a coin type or fungible asset address. Never raises."""

        info = self.find(address)
        if info is not None:
            return ResolvedToken(
                address=address,
                symbol=info.symbol,
                name=info.name,
                decimals=info.decimals,
                logo_url=info.logo_url or token_logo_fallback(info.symbol),
                listed=True,
            )
        symbol = symbol_from_coin_type(address)
        return ResolvedToken(
            address=address,
            symbol=symbol,
            name=simplify_token_name(address),
            decimals=DEFAULT_DECIMALS,
            logo_url=token_logo_fallback(symbol),
            listed=False,
        )

    def logo_for_symbol(self, symbol: str) -> str:
        info = self.find_symbol(symbol)
        return (info.logo_url if info else "") or token_logo_fallback(symbol)


async def load_token_list(client: httpx.AsyncClient, *, url: str | None = None) -> TokenList:
    """Fetch the remote list; a failed fetch yields an empty list."""

    result = await capture("token-list", fetch_token_list(client, url=url))
    return TokenList(fold(result, []))


__all__ = [
    "APT_COIN_TYPE",
    "DEFAULT_DECIMALS",
    "ResolvedToken",
    "TokenList",
    "coin_type_from_resource_type",
    "load_token_list",
    "simplify_token_name",
    "symbol_from_coin_type",
    "token_logo_fallback",
]
