"""Token metadata resolution and token list loading."""

from __future__ import annotations

import httpx

from aptomizer.providers.token_list import TokenInfo, parse_token_list
from aptomizer.services.tokens import (
    APT_COIN_TYPE,
    TokenList,
    coin_type_from_resource_type,
    load_token_list,
    symbol_from_coin_type,
)

USDC = "0xf22bede237a07e121b56d91a491eb7bcdfd1f5907926a9e58338f964a01b17fa::asset::USDC"
USDC_FA = "0xbae207659db88bea0cbead6da0ed00aac12edcdda169e591cd41c94180b46f3b"


def _usdc() -> TokenInfo:
    return TokenInfo(
        chain_id=1,
        token_address=USDC,
        name="USD Coin",
        symbol="USDC",
        decimals=6,
        logo_url="https://example.com/usdc.png",
        fa_address=USDC_FA,
    )


def test_coin_type_is_extracted_from_coin_store():
    assert coin_type_from_resource_type(f"0x1::coin::CoinStore<{APT_COIN_TYPE}>") == APT_COIN_TYPE
    assert coin_type_from_resource_type("0x1::account::Account") == ""


def test_listed_token_resolves_by_coin_type_and_fa_address():
    tokens = TokenList([_usdc()])
    by_type = tokens.resolve(USDC)
    by_fa = tokens.resolve(USDC_FA)
    assert by_type.listed and by_fa.listed
    assert by_type.symbol == by_fa.symbol == "USDC"
    assert by_type.to_units(2_500_000) == 2.5


def test_unlisted_token_falls_back_to_heuristics():
    token = TokenList().resolve("0xabc::moon::MOON")
    assert not token.listed
    assert token.symbol == "MOON"
    assert token.name == "MOON"
    assert token.decimals == 8
    assert token.logo_url == ""


def test_known_symbols_and_logo_fallback():
    assert symbol_from_coin_type(APT_COIN_TYPE) == "APT"
    assert TokenList().logo_for_symbol("apt").endswith("APT.webp")


def test_parse_token_list_skips_malformed_entries():
    tokens = parse_token_list(
        [
            {"tokenAddress": USDC, "symbol": "USDC", "decimals": 6, "name": "USD Coin"},
            {"symbol": "NOADDR"},
            {"tokenAddress": "0x2::x::Y", "symbol": "BAD", "decimals": "six"},
            "garbage",
        ]
    )
    assert [token.symbol for token in tokens] == ["USDC"]


def test_null_decimals_keep_the_listed_entry():
    tokens = parse_token_list(
        [
            {
                "tokenAddress": "0x7::moon::MOON",
                "symbol": "MOON",
                "decimals": None,
                "logoUrl": "https://img.test/moon.png",
            }
        ]
    )
    assert [(token.symbol, token.decimals, token.logo_url) for token in tokens] == [
        ("MOON", 8, "https://img.test/moon.png")
    ]


async def test_failed_token_list_fetch_yields_empty_list():
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    async with httpx.AsyncClient(transport=transport) as client:
        tokens = await load_token_list(client, url="https://tokens.test/list.json")
    assert len(tokens) == 0
    assert tokens.resolve(APT_COIN_TYPE).symbol == "APT"
