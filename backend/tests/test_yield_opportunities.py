"""Scoring of lending pools against user risk preferences."""

from __future__ import annotations

from aptomizer.providers.joule import MarketPool
from aptomizer.services.yield_opportunities import (
    YieldQuery,
    half_up,
    is_preferred,
    pool_risk_score,
    rank_yield_opportunities,
    risk_level,
    time_horizon_factor,
)


def _pool(name: str, *, apy: float | None = 5.0, size: float | None = 1000.0, borrowed: float | None = 500.0, ltv="70"):
    return MarketPool(
        asset_type=f"0x1::{name.lower()}::{name}",
        display_name=name,
        asset_name=name,
        icon="",
        fa_address=None,
        ltv=ltv,
        asset_ltv=None,
        market_size=size,
        total_borrowed=borrowed,
        deposit_apy=apy,
        borrow_apy=None,
    )


def test_half_up_rounding():
    assert half_up(2.5) == 3
    assert half_up(2.49) == 2
    assert half_up(4.4) == 4


def test_risk_score_worked_example():
    # 0.5 * 0.7 + (1 - 0.70) * 0.3 = 0.44
    assert pool_risk_score(0.5, 70) == 4
    assert risk_level(3) == "Low"
    assert risk_level(4) == "Medium"
    assert risk_level(7) == "Medium"
    assert risk_level(8) == "High"


def test_time_horizon_penalties():
    assert time_horizon_factor("Short", 0.9, 5.0) == 0.7
    assert time_horizon_factor("Short", 0.5, 5.0) == 1.0
    assert time_horizon_factor("Long", 0.1, 2.0) == 0.8
    assert time_horizon_factor("Medium", 0.95, 1.0) == 1.0


def test_preferred_assets_match_case_insensitively():
    pool = _pool("USDC")
    assert is_preferred(pool, ())
    assert is_preferred(pool, ("usd",))
    assert not is_preferred(pool, ("btc",))


def test_ranking_filters_unscorable_and_low_apy_pools():
    pools = [
        _pool("AAA", apy=None),
        _pool("BBB", size=None),
        _pool("CCC", apy=1.0),
        _pool("DDD", apy=6.0),
    ]
    ranked = rank_yield_opportunities(pools, YieldQuery(min_apy=2.0))
    assert [opportunity.symbol for opportunity in ranked] == ["DDD"]
    assert ranked[0].liquidity == 500.0


def test_ranking_prefers_assets_and_caps_results():
    pools = [_pool(name, apy=3.0 + index) for index, name in enumerate(["A", "B", "C", "D", "E", "F", "USDC"])]
    ranked = rank_yield_opportunities(pools, YieldQuery(preferred_assets=("usdc",)))
    assert len(ranked) == 5
    assert ranked[0].symbol == "USDC"
    assert ranked[0].preferred
    # equal scores fall back to the higher deposit APY
    assert [opportunity.symbol for opportunity in ranked[1:]] == ["F", "E", "D", "C"]


def test_ranking_is_deterministic():
    pools = [_pool(name, apy=4.0, borrowed=100.0 * index) for index, name in enumerate(["A", "B", "C", "D"])]
    query = YieldQuery(risk_tolerance=2, time_horizon="Short")
    assert rank_yield_opportunities(pools, query) == rank_yield_opportunities(list(pools), query)
