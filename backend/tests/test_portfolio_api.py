"""Portfolio and optimisation endpoints with a stubbed chain gateway."""

from __future__ import annotations

from aptomizer.services.portfolio import Asset, PortfolioSnapshot, Strategy


def _snapshot() -> PortfolioSnapshot:
    return PortfolioSnapshot(
        ai_wallet_address="0xai",
        total_value=300.0,
        risk_score=70,
        assets=[
            Asset(name="USD Coin", symbol="USDC", balance=200, value=200.0, price_usd=1.0),
            Asset(name="Aptos Coin", symbol="APT", balance=10, value=100.0, price_usd=10.0),
        ],
        strategies=[
            Strategy(name="Main (Lend)", protocol="Joule Finance", balance=1, value=10, apy=3.0, health="Healthy")
        ],
    )


async def _user_with_ai_wallet(client, wallet_address: str = "0xabc") -> dict:
    user = (await client.post("/api/user/create", json={"walletAddress": wallet_address})).json()["user"]
    await client.post("/api/user/generate-ai-wallet", json={"userId": user["id"]})
    return (await client.post("/api/user/profile", json={"walletAddress": wallet_address})).json()["user"]


async def test_portfolio_for_user_with_ai_wallet(make_client, stub_gateway):
    stub_gateway.snapshot = _snapshot()
    async with make_client(stub_gateway)() as client:
        user = await _user_with_ai_wallet(client)
        await client.post(
            "/api/user/update-risk-profile",
            json={"walletAddress": "0xabc", "riskProfile": {"riskTolerance": 7}},
        )
        response = await client.post("/api/user/portfolio", json={"walletAddress": "0xabc"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["totalValue"] == 300.0
    assert payload["change24h"] is None
    assert "change24h" in payload["assets"][0]
    assert [asset["allocation"] for asset in payload["assets"]] == ["66.67%", "33.33%"]
    assert payload["strategies"][0]["health"] == "Healthy"
    assert stub_gateway.portfolio_calls == [(user["aiWallet"]["walletAddress"], 7)]


async def test_portfolio_requires_user_and_ai_wallet(make_client, stub_gateway):
    async with make_client(stub_gateway)() as client:
        unknown = await client.post("/api/user/portfolio", json={"walletAddress": "0xnobody"})
        await client.post("/api/user/create", json={"walletAddress": "0xabc"})
        no_wallet = await client.post("/api/user/portfolio", json={"walletAddress": "0xabc"})

    assert unknown.status_code == 404
    assert unknown.json() == {"error": "User not found"}
    assert no_wallet.status_code == 404
    assert no_wallet.json() == {"error": "AI wallet not found"}
    assert stub_gateway.portfolio_calls == []


async def test_portfolio_failure_is_reported(make_client, stub_gateway):
    stub_gateway.error = RuntimeError("aggregation exploded")
    async with make_client(stub_gateway)() as client:
        await _user_with_ai_wallet(client)
        response = await client.post("/api/user/portfolio", json={"walletAddress": "0xabc"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch portfolio data"}


async def test_optimization_uses_default_tolerance_without_profile(make_client, stub_gateway):
    stub_gateway.snapshot = _snapshot()
    async with make_client(stub_gateway)() as client:
        await _user_with_ai_wallet(client)
        response = await client.post("/api/user/optimization", json={"walletAddress": "0xabc"})

    assert response.status_code == 200
    suggestions = response.json()
    assert [item["title"] for item in suggestions] == [
        "USDC-APT Liquidity Pool",
        "USDC Lending",
        "Tortuga Finance Liquid Staking",
    ]
    assert suggestions[0]["potentialGain"] == "+$16.80/year"
    assert suggestions[1]["protocol"] == "animeSwapLend"
