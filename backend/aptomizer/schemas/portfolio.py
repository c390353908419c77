"""Portfolio snapshot and optimisation response schemas."""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from aptomizer.services.formatting import format_portfolio_percentage
from aptomizer.services.optimization import Opportunity
from aptomizer.services.portfolio import PortfolioSnapshot

from .base import ApiModel


class AssetSchema(ApiModel):
    name: str
    symbol: str
    balance: float
    value: float
    price_usd: float
    change24h: Optional[float] = Field(default=None, alias="change24h")
    apy: Optional[float] = None
    logo_url: str = ""
    allocation: str = Field(default="0.00%", description="Share of total value, e.g. 60.00%")


class StrategySchema(ApiModel):
    name: str
    protocol: str
    balance: float
    value: float
    apy: float
    time_left: Optional[str] = None
    health: str


class PositionSchema(ApiModel):
    position_id: str
    position_name: str
    token_address: str
    token_symbol: str
    supplied: float
    supplied_usd: float
    borrowed: float
    borrowed_usd: float
    health: float
    health_status: str


class PortfolioResponse(ApiModel):
    ai_wallet_address: str
    total_value: float
    change24h: Optional[float] = Field(default=None, alias="change24h")
    change7d: Optional[float] = Field(default=None, alias="change7d")
    change30d: Optional[float] = Field(default=None, alias="change30d")
    risk_score: int
    assets: list[AssetSchema]
    strategies: list[StrategySchema]
    positions: list[PositionSchema] = Field(default_factory=list)
    net_position_value: float = 0.0

    @classmethod
    def from_snapshot(cls, snapshot: PortfolioSnapshot) -> "PortfolioResponse":
        assets = [
            AssetSchema.model_validate(asset).model_copy(
                update={"allocation": format_portfolio_percentage(asset.value, snapshot.total_value)}
            )
            for asset in snapshot.assets
        ]
        return cls(
            ai_wallet_address=snapshot.ai_wallet_address,
            total_value=snapshot.total_value,
            change24h=snapshot.change24h,
            change7d=snapshot.change7d,
            change30d=snapshot.change30d,
            risk_score=snapshot.risk_score,
            assets=assets,
            strategies=[StrategySchema.model_validate(strategy) for strategy in snapshot.strategies],
            positions=[PositionSchema.model_validate(position) for position in snapshot.positions],
            net_position_value=snapshot.net_position_value,
        )


class OpportunitySchema(ApiModel):
    title: str
    description: str
    potential_gain: str
    yearly_gain: float
    risk: str
    apy: float
    protocol: str

    @classmethod
    def from_opportunity(cls, opportunity: Opportunity) -> "OpportunitySchema":
        return cls(
            title=opportunity.title,
            description=opportunity.description,
            potential_gain=opportunity.potential_gain,
            yearly_gain=opportunity.yearly_gain,
            risk=opportunity.risk,
            apy=opportunity.apy,
            protocol=opportunity.protocol,
        )


__all__ = [
    "AssetSchema",
    "OpportunitySchema",
    "PortfolioResponse",
    "PositionSchema",
    "StrategySchema",
]
