"""Rule-based optimisation suggestions over a portfolio snapshot.

Four categories are evaluated independently against a static table of
protocols (liquid staking, stablecoin lending, liquidity provision and
yield farming). Each category proposes at most one suggestion when the
projected yearly gain clears its threshold. The final list is ordered by
projected gain and capped at three.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from aptomizer.services.portfolio import Asset, Strategy

DEFAULT_RISK_TOLERANCE = 5
MAX_OPPORTUNITIES = 3
STABLECOINS = ("USDC", "USDT", "DAI")


@dataclass(frozen=True)
class Protocol:
    name: str
    apy: float
    protocol: str
    risk: str
    min_amount: float
    pairs: tuple[str, ...] = ()


LIQUID_STAKING = (
    Protocol("Amnis Finance", 7.5, "amnisStake", "Low", 0.1),
    Protocol("Tortuga Finance", 7.8, "tortugaStake", "Low", 0.1),
    Protocol("Ditto Finance", 7.6, "dittoStake", "Low", 0.1),
)
LENDING = (
    Protocol("AnimeSwap", 6.2, "animeSwapLend", "Low-Medium", 1),
    Protocol("Abel Finance", 4.8, "abelLend", "Low-Medium", 5),
    Protocol("Aries Markets", 8.5, "ariesLend", "Medium", 10),
)
LIQUIDITY = (
    Protocol("PancakeSwap", 11.2, "pancakeLP", "Medium", 10, ("APT-USDC", "APT-USDT")),
    Protocol("Thala Labs", 15.5, "thalaLP", "Medium-High", 5, ("APT-USDC", "APT-tAPT")),
    Protocol("Econia", 9.7, "econiaLP", "Medium", 5, ("APT-USDC",)),
)
FARMING = (
    Protocol("Merkle", 32.4, "merkleFarm", "High", 25),
    Protocol("Pontem", 21.8, "pontemFarm", "Medium-High", 20),
    Protocol("Hippo", 18.3, "hippoFarm", "Medium-High", 15),
)


@dataclass(frozen=True)
class Opportunity:
    title: str
    description: str
    yearly_gain: float
    risk: str
    apy: float
    protocol: str

    @property
    def potential_gain(self) -> str:
        return f"+${self.yearly_gain:.2f}/year"


def yearly_gain(value: float, current_apy: Optional[float], new_apy: float) -> float:
    return value * (new_apy - (current_apy or 0)) / 100


def best_by_apy(options: Sequence[Protocol]) -> Protocol | None:
    """Highest APY; the first listed protocol wins a tie."""

    return max(options, key=lambda option: option.apy, default=None)


def _existing_apy(strategies: Sequence[Strategy], name_part: str, protocol_part: str) -> float:
    existing = next(
        (s for s in strategies if name_part in s.name or protocol_part in s.protocol),
        None,
    )
    return existing.apy if existing else 0.0


def staking_opportunity(
    assets: Sequence[Asset], strategies: Sequence[Strategy], risk_tolerance: int
) -> Opportunity | None:
    apt = next((asset for asset in assets if asset.symbol == "APT"), None)
    if apt is None or apt.value <= 10:
        return None
    best = best_by_apy(
        [p for p in LIQUID_STAKING if (p.risk == "Low" and risk_tolerance <= 6) or risk_tolerance > 6]
    )
    if best is None:
        return None
    current = _existing_apy(strategies, "Staking", "Stake")
    gain = yearly_gain(apt.value * 0.7, current, best.apy)
    if gain <= 5:
        return None
    return Opportunity(
        title=f"{best.name} Liquid Staking",
        description=f"Convert APT to liquid staked tokens for {best.apy}% APY while maintaining liquidity.",
        yearly_gain=gain,
        risk=best.risk,
        apy=best.apy,
        protocol=best.protocol,
    )


def lending_opportunity(
    assets: Sequence[Asset], strategies: Sequence[Strategy], risk_tolerance: int
) -> Opportunity | None:
    stablecoins = [asset for asset in assets if asset.symbol in STABLECOINS]
    total = sum(asset.value for asset in stablecoins)
    if not stablecoins or total <= 5:
        return None
    best = best_by_apy(
        [
            p
            for p in LENDING
            if (p.risk == "Low-Medium" and risk_tolerance <= 5) or (p.risk == "Medium" and risk_tolerance > 5)
        ]
    )
    if best is None:
        return None
    current = _existing_apy(strategies, "Lending", best.name)
    gain = yearly_gain(total, current, best.apy)
    if gain <= 3:
        return None
    symbol = stablecoins[0].symbol
    return Opportunity(
        title=f"{symbol} Lending",
        description=f"Lend your {symbol} for {best.apy}% APY on {best.name}.",
        yearly_gain=gain,
        risk=best.risk,
        apy=best.apy,
        protocol=best.protocol,
    )


def liquidity_opportunity(
    assets: Sequence[Asset], strategies: Sequence[Strategy], risk_tolerance: int
) -> Opportunity | None:
    if len(assets) < 2 or risk_tolerance < 4:
        return None
    significant = [asset for asset in assets if asset.value > 20]
    if len(significant) < 2:
        return None
    best = best_by_apy(
        [
            p
            for p in LIQUIDITY
            if (p.risk == "Medium" and risk_tolerance <= 7) or (p.risk == "Medium-High" and risk_tolerance > 7)
        ]
    )
    if best is None:
        return None
    first, second = significant[0], significant[1]
    current = _existing_apy(strategies, "Liquidity", best.name)
    gain = yearly_gain(min(first.value, second.value) * 1.5, current, best.apy)
    if gain <= 10:
        return None
    pair = f"{first.symbol}-{second.symbol}"
    return Opportunity(
        title=f"{pair} Liquidity Pool",
        description=f"Provide liquidity to {best.name} {pair} pool for {best.apy}% APY.",
        yearly_gain=gain,
        risk=best.risk,
        apy=best.apy,
        protocol=best.protocol,
    )


def farming_opportunity(assets: Sequence[Asset], risk_tolerance: int) -> Opportunity | None:
    if risk_tolerance < 8:
        return None
    farmable = next((asset for asset in assets if asset.value > 50), None)
    best = best_by_apy(FARMING)
    if farmable is None or best is None:
        return None
    gain = farmable.value * 0.4 * best.apy / 100
    return Opportunity(
        title=f"{best.name} Yield Farming",
        description=(
            f"Stake {farmable.symbol} in {best.name} farming protocol for high {best.apy}% APY returns."
        ),
        yearly_gain=gain,
        risk=best.risk,
        apy=best.apy,
        protocol=best.protocol,
    )


def rank_opportunities(
    assets: Sequence[Asset],
    strategies: Sequence[Strategy],
    risk_tolerance: Optional[int] = None,
) -> list[Opportunity]:
    tolerance = risk_tolerance or DEFAULT_RISK_TOLERANCE
    candidates = [
        staking_opportunity(assets, strategies, tolerance),
        lending_opportunity(assets, strategies, tolerance),
        liquidity_opportunity(assets, strategies, tolerance),
        farming_opportunity(assets, tolerance),
    ]
    found = [candidate for candidate in candidates if candidate is not None]
    found.sort(key=lambda opportunity: round(opportunity.yearly_gain, 2), reverse=True)
    return found[:MAX_OPPORTUNITIES]


__all__ = [
    "FARMING",
    "LENDING",
    "LIQUIDITY",
    "LIQUID_STAKING",
    "Opportunity",
    "Protocol",
    "best_by_apy",
    "farming_opportunity",
    "lending_opportunity",
    "liquidity_opportunity",
    "rank_opportunities",
    "staking_opportunity",
    "yearly_gain",
]
