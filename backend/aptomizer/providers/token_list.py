"""Client for the public Aptos token list."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from aptomizer.config import get_settings
from aptomizer.services.results import FetchError

logger = logging.getLogger(__name__)

SOURCE = "token-list"


@dataclass(frozen=True)
class TokenInfo:
    chain_id: int
    token_address: str
    name: str
    symbol: str
    decimals: int
    logo_url: str = ""
    fa_address: str | None = None
    panora_symbol: str | None = None
    panora_tags: tuple[str, ...] = field(default_factory=tuple)


def parse_token_list(payload: Any) -> list[TokenInfo]:
    """Normalise the raw token list, skipping malformed entries."""

    if not isinstance(payload, list):
        raise FetchError(SOURCE, "Token list response is not a list")
    tokens: list[TokenInfo] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        address = item.get("tokenAddress") or item.get("faAddress")
        symbol = item.get("symbol")
        if not address or not symbol:
            continue
        try:
            decimals = int(item.get("decimals") or 8)
        except (TypeError, ValueError):
            continue
        tokens.append(
            TokenInfo(
                chain_id=int(item.get("chainId") or 1),
                token_address=str(address),
                name=str(item.get("name") or symbol),
                symbol=str(symbol),
                decimals=decimals,
                logo_url=str(item.get("logoUrl") or ""),
                fa_address=item.get("faAddress"),
                panora_symbol=item.get("panoraSymbol"),
                panora_tags=tuple(item.get("panoraTags") or ()),
            )
        )
    return tokens


async def fetch_token_list(
    client: httpx.AsyncClient,
    *,
    url: str | None = None,
) -> list[TokenInfo]:
    target = url or get_settings().token_list_url
    try:
        response = await client.get(target)
    except httpx.HTTPError as exc:
        raise FetchError(SOURCE, f"Failed to reach token list: {exc}") from exc
    if response.status_code >= 400:
        raise FetchError(SOURCE, f"Token list returned HTTP {response.status_code}")
    try:
        payload = response.json()
    except ValueError as exc:
        raise FetchError(SOURCE, "Token list returned invalid JSON") from exc
    tokens = parse_token_list(payload)
    logger.debug("Loaded %d tokens from %s", len(tokens), target)
    return tokens


__all__ = ["TokenInfo", "fetch_token_list", "parse_token_list"]
