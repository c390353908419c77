"""Read-only client for the Aptos full node REST API."""

from __future__ import annotations

from typing import Any

import httpx

from aptomizer.config import get_settings

APT_COIN_TYPE = "0x1::aptos_coin::AptosCoin"
COIN_STORE_PREFIX = "0x1::coin::CoinStore<"


class AptosNodeError(RuntimeError):
    """Raised when the full node rejects a request or cannot be reached."""


class AptosNodeClient:
    """Thin async wrapper over the node endpoints used by the portfolio and tools."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.node_url).rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds or settings.http_timeout_seconds)
        self._owns_client = client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, *, json: Any | None = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(method, url, json=json)
        except httpx.HTTPError as exc:
            raise AptosNodeError(f"Failed to reach Aptos node: {exc}") from exc
        if response.status_code >= 400:
            detail: Any
            try:
                payload = response.json()
                detail = payload.get("message", payload)
            except ValueError:
                detail = response.text
            raise AptosNodeError(f"Aptos node error {response.status_code}: {detail}")
        try:
            return response.json()
        except ValueError as exc:
            raise AptosNodeError("Aptos node returned invalid JSON payload") from exc

    async def view(self, function: str, type_arguments: list[str], arguments: list[Any]) -> list[Any]:
        payload = {"function": function, "type_arguments": type_arguments, "arguments": arguments}
        result = await self._request("POST", "/view", json=payload)
        if not isinstance(result, list):
            raise AptosNodeError("View function response is not a list")
        return result

    async def coin_balance(self, address: str, coin_type: str = APT_COIN_TYPE) -> int:
        """Balance in base units (octas for APT)."""

        result = await self.view("0x1::coin::balance", [coin_type], [address])
        return int(result[0]) if result else 0

    async def native_balance(self, address: str) -> int:
        return await self.coin_balance(address, APT_COIN_TYPE)

    async def account_resources(self, address: str) -> list[dict[str, Any]]:
        result = await self._request("GET", f"/accounts/{address}/resources?limit=9999")
        if not isinstance(result, list):
            raise AptosNodeError("Account resources response is not a list")
        return [item for item in result if isinstance(item, dict)]

    async def transaction_by_hash(self, tx_hash: str) -> dict[str, Any]:
        return await self._request("GET", f"/transactions/by_hash/{tx_hash}")


__all__ = ["APT_COIN_TYPE", "COIN_STORE_PREFIX", "AptosNodeClient", "AptosNodeError"]
