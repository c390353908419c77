"""Portfolio aggregation from a fetched wallet snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from aptomizer.providers.joule import MarketPool
from aptomizer.services.fetcher import FetchedWallet, WalletFetcher
from aptomizer.services.health import UserPosition, merge_leg, score_position

JOULE_PROTOCOL = "Joule Finance"
LEND_APY_FALLBACK = 0.5
BORROW_APY_FALLBACK = 1.5
DEFAULT_RISK_SCORE = 50


@dataclass
class Asset:
    name: str
    symbol: str
    balance: float
    value: float
    price_usd: float
    logo_url: str = ""
    change24h: Optional[float] = None
    apy: Optional[float] = None


@dataclass
class Strategy:
    name: str
    protocol: str
    balance: float
    value: float
    apy: float
    health: str
    time_left: Optional[str] = None


@dataclass
class PortfolioSnapshot:
    ai_wallet_address: str
    total_value: float
    risk_score: int
    assets: list[Asset] = field(default_factory=list)
    strategies: list[Strategy] = field(default_factory=list)
    positions: list[UserPosition] = field(default_factory=list)
    net_position_value: float = 0.0
    change24h: Optional[float] = None
    change7d: Optional[float] = None
    change30d: Optional[float] = None


def risk_score_for(risk_tolerance: Optional[int]) -> int:
    """Profile tolerance x 10, or 50 when the user has no profile."""

    return risk_tolerance * 10 if risk_tolerance else DEFAULT_RISK_SCORE


def find_pool(pools: Iterable[MarketPool], token_address: str) -> MarketPool | None:
    return next(
        (pool for pool in pools if token_address in (pool.price_token_address, pool.asset_type)),
        None,
    )


def lend_terms(pool: MarketPool | None) -> tuple[float, str]:
    total = pool.total_deposit_apy if pool else 0.0
    if total > 0:
        return total, "Healthy"
    return LEND_APY_FALLBACK, "Neutral"


def borrow_apy(pool: MarketPool | None) -> float:
    rate = (pool.borrow_apy or 0.0) if pool else 0.0
    return -rate if rate > 0 else -BORROW_APY_FALLBACK


def build_assets(wallet: FetchedWallet) -> list[Asset]:
    assets = []
    for held in wallet.balances:
        price = wallet.price_of(held.token.symbol)
        assets.append(
            Asset(
                name=held.token.name,
                symbol=held.token.symbol,
                balance=held.balance,
                value=held.balance * price,
                price_usd=price,
                logo_url=held.token.logo_url,
            )
        )
    assets.sort(key=lambda asset: asset.value, reverse=True)
    return assets


def build_strategies(wallet: FetchedWallet) -> list[Strategy]:
    """One strategy per non-zero lend or borrow leg, lend legs first per position."""

    strategies: list[Strategy] = []
    for position in wallet.positions:
        for leg in position.lend:
            token = wallet.tokens.resolve(leg.token_address)
            balance = token.to_units(leg.raw_amount)
            if balance <= 0:
                continue
            apy, health = lend_terms(find_pool(wallet.pools, leg.token_address))
            strategies.append(
                Strategy(
                    name=f"{position.name} (Lend)",
                    protocol=JOULE_PROTOCOL,
                    balance=balance,
                    value=balance * wallet.price_of(token.symbol),
                    apy=apy,
                    health=health,
                )
            )
        for leg in position.borrow:
            token = wallet.tokens.resolve(leg.token_address)
            balance = token.to_units(leg.raw_amount)
            if balance <= 0:
                continue
            strategies.append(
                Strategy(
                    name=f"{position.name} (Borrow)",
                    protocol=JOULE_PROTOCOL,
                    balance=balance,
                    value=balance * wallet.price_of(token.symbol),
                    apy=borrow_apy(find_pool(wallet.pools, leg.token_address)),
                    health="Warning",
                )
            )
    return strategies


def build_user_positions(wallet: FetchedWallet) -> list[UserPosition]:
    """Reconcile lend and borrow legs into one record per position and token.

    Health is scored per position, so every record of a position carries the
    same ratio of its summed supplied USD to its summed borrowed USD.
    """

    records: dict[tuple[str, str], UserPosition] = {}
    for position in wallet.positions:
        legs = [(leg, True) for leg in position.lend] + [(leg, False) for leg in position.borrow]
        for leg, is_lend in legs:
            token = wallet.tokens.resolve(leg.token_address)
            amount = token.to_units(leg.raw_amount)
            if amount <= 0:
                continue
            usd = amount * wallet.price_of(token.symbol)
            key = (position.position_id, leg.token_address)
            current = records.get(key) or UserPosition(
                position_id=position.position_id,
                position_name=position.name,
                token_address=leg.token_address,
                token_symbol=token.symbol,
            )
            if is_lend:
                records[key] = merge_leg(current, supplied=amount, supplied_usd=usd)
            else:
                records[key] = merge_leg(current, borrowed=amount, borrowed_usd=usd)

    by_position: dict[str, list[UserPosition]] = {}
    for record in records.values():
        by_position.setdefault(record.position_id, []).append(record)
    return [scored for group in by_position.values() for scored in score_position(group)]


def aggregate(
    wallet: FetchedWallet,
    *,
    ai_wallet_address: str,
    risk_tolerance: Optional[int] = None,
    include_positions_in_total: bool = False,
) -> PortfolioSnapshot:
    """Build the dashboard snapshot.

    ``total_value`` is the sum of liquid asset values. Lending positions are
    reported separately as ``net_position_value`` (supplied minus borrowed USD)
    and only added to the total when ``include_positions_in_total`` is set.
    """

    assets = build_assets(wallet)
    positions = build_user_positions(wallet)
    net_position_value = sum(p.supplied_usd - p.borrowed_usd for p in positions)
    total_value = sum(asset.value for asset in assets)
    if include_positions_in_total:
        total_value += net_position_value
    return PortfolioSnapshot(
        ai_wallet_address=ai_wallet_address,
        total_value=total_value,
        risk_score=risk_score_for(risk_tolerance),
        assets=assets,
        strategies=build_strategies(wallet),
        positions=positions,
        net_position_value=net_position_value,
    )


async def build_portfolio(
    fetcher: WalletFetcher,
    ai_wallet_address: str,
    *,
    risk_tolerance: Optional[int] = None,
    include_positions_in_total: bool = False,
) -> PortfolioSnapshot:
    wallet = await fetcher.fetch(ai_wallet_address)
    return aggregate(
        wallet,
        ai_wallet_address=ai_wallet_address,
        risk_tolerance=risk_tolerance,
        include_positions_in_total=include_positions_in_total,
    )


__all__ = [
    "Asset",
    "PortfolioSnapshot",
    "Strategy",
    "aggregate",
    "borrow_apy",
    "build_assets",
    "build_portfolio",
    "build_strategies",
    "build_user_positions",
    "find_pool",
    "lend_terms",
    "risk_score_for",
]
