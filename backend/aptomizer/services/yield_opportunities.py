"""Score live lending pools against a user's risk preferences."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Literal, Sequence

from aptomizer.providers.joule import MarketPool

TimeHorizon = Literal["Short", "Medium", "Long"]
RiskLevel = Literal["Low", "Medium", "High"]

MAX_RESULTS = 5
PREFERRED_FACTOR = 1.2
SHORT_HORIZON_FACTOR = 0.7
LONG_HORIZON_FACTOR = 0.8


def half_up(value: float) -> int:
    """Round half toward positive infinity."""

    return math.floor(value + 0.5)


def pool_risk_score(utilization: float, ltv: float) -> int:
    """Composite 1-10 risk score; ``ltv`` is the pool's loan-to-value figure."""

    return half_up((utilization * 0.7 + (1 - ltv / 100) * 0.3) * 10)


def risk_level(score: int) -> RiskLevel:
    if score <= 3:
        return "Low"
    if score <= 7:
        return "Medium"
    return "High"


def time_horizon_factor(horizon: str, utilization: float, deposit_apy: float) -> float:
    if horizon == "Short" and utilization > 0.8:
        return SHORT_HORIZON_FACTOR
    if horizon == "Long" and deposit_apy < 3:
        return LONG_HORIZON_FACTOR
    return 1.0


def is_preferred(pool: MarketPool, preferred_assets: Sequence[str]) -> bool:
    """Case-insensitive substring match on asset name or type; no preferences matches all."""

    if not preferred_assets:
        return True
    name = (pool.display_name or pool.asset_name).lower()
    asset_type = pool.asset_type.lower()
    return any(wanted.lower() in name or wanted.lower() in asset_type for wanted in preferred_assets)


@dataclass(frozen=True)
class YieldOpportunity:
    name: str
    symbol: str
    asset_type: str
    logo_url: str
    deposit_apy: float
    utilization_rate: float
    risk_score: int
    risk_level: RiskLevel
    recommendation_score: float
    liquidity: float
    ltv: float
    preferred: bool


@dataclass(frozen=True)
class YieldQuery:
    risk_tolerance: int = 5
    time_horizon: TimeHorizon = "Medium"
    min_apy: float = 0.0
    preferred_assets: tuple[str, ...] = field(default_factory=tuple)


def score_pool(pool: MarketPool, query: YieldQuery) -> YieldOpportunity:
    utilization = pool.utilization
    ltv = pool.ltv_ratio
    apy = pool.total_deposit_apy
    risk_score = pool_risk_score(utilization, ltv)
    suitability = 10 - abs(query.risk_tolerance - risk_score)
    preferred = is_preferred(pool, query.preferred_assets)
    final = (
        suitability
        * time_horizon_factor(query.time_horizon, utilization, apy)
        * (PREFERRED_FACTOR if preferred else 1.0)
    )
    market_size = pool.market_size or 0.0
    total_borrowed = pool.total_borrowed or 0.0
    return YieldOpportunity(
        name=pool.display_name or pool.asset_name or "Unknown",
        symbol=pool.asset_name or "UNKNOWN",
        asset_type=pool.asset_type,
        logo_url=pool.icon,
        deposit_apy=apy,
        utilization_rate=utilization,
        risk_score=risk_score,
        risk_level=risk_level(risk_score),
        recommendation_score=final,
        liquidity=market_size - total_borrowed,
        ltv=ltv,
        preferred=preferred,
    )


def is_scorable(pool: MarketPool) -> bool:
    return pool.deposit_apy is not None and pool.market_size is not None and pool.total_borrowed is not None


def rank_yield_opportunities(pools: Sequence[MarketPool], query: YieldQuery | None = None) -> list[YieldOpportunity]:
    query = query or YieldQuery()
    scored = [score_pool(pool, query) for pool in pools if is_scorable(pool)]
    eligible = [opportunity for opportunity in scored if opportunity.deposit_apy >= query.min_apy]
    eligible.sort(key=lambda o: (o.recommendation_score, o.deposit_apy), reverse=True)
    return eligible[:MAX_RESULTS]


__all__ = [
    "YieldOpportunity",
    "YieldQuery",
    "half_up",
    "is_preferred",
    "pool_risk_score",
    "rank_yield_opportunities",
    "risk_level",
    "score_pool",
    "time_horizon_factor",
]
