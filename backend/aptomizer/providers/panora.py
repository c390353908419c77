"""Panora swap aggregator quotes."""

from __future__ import annotations

from typing import Any

import httpx

from aptomizer.config import get_settings
from aptomizer.services.results import FetchError

SOURCE = "panora"
APTOS_CHAIN_ID = "1"


class PanoraClient:
    """Requests a routed swap and returns the entry-function payload to sign."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.panora_api_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.panora_api_key
        self._client = client or httpx.AsyncClient(timeout=settings.http_timeout_seconds)
        self._owns_client = client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def swap_payload(
        self,
        from_token: str,
        to_token: str,
        amount: float,
        to_wallet_address: str,
    ) -> dict[str, Any]:
        params = {
            "fromChainId": APTOS_CHAIN_ID,
            "toChainId": APTOS_CHAIN_ID,
            "fromTokenAddress": from_token,
            "toTokenAddress": to_token,
            "fromTokenAmount": str(amount),
            "toWalletAddress": to_wallet_address,
        }
        headers = {"x-api-key": self.api_key} if self.api_key else {}
        try:
            response = await self._client.post(f"{self.base_url}/swap", params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise FetchError(SOURCE, f"Failed to reach Panora: {exc}") from exc
        if response.status_code >= 400:
            raise FetchError(SOURCE, f"Panora returned HTTP {response.status_code}")
        try:
            body = response.json()
        except ValueError as exc:
            raise FetchError(SOURCE, "Panora returned invalid JSON") from exc

        quotes = body.get("quotes") if isinstance(body, dict) else None
        if not quotes:
            raise FetchError(SOURCE, "No swap route found", key=f"{from_token}->{to_token}")
        tx_data = quotes[0].get("txData") or {}
        if "function" not in tx_data:
            raise FetchError(SOURCE, "Swap quote is missing transaction data")
        return {
            "type": "entry_function_payload",
            "function": tx_data["function"],
            "type_arguments": list(tx_data.get("type_arguments") or []),
            "arguments": list(tx_data.get("arguments") or []),
        }


__all__ = ["PanoraClient"]
