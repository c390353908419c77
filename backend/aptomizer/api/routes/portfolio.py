"""Portfolio snapshot and optimisation suggestion endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from aptomizer.api.dependencies.services import get_gateway, get_session
from aptomizer.schemas import OpportunitySchema, PortfolioResponse, WalletAddressRequest
from aptomizer.services import wallets
from aptomizer.services.gateway import ChainGateway
from aptomizer.services.optimization import rank_opportunities
from aptomizer.services.portfolio import PortfolioSnapshot

logger = logging.getLogger(__name__)

router = APIRouter()


async def _snapshot_for(wallet_address: str, session: AsyncSession, gateway: ChainGateway) -> tuple[PortfolioSnapshot, int | None]:
    user = await wallets.get_user_by_wallet_address(session, wallet_address)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if user.ai_wallet is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="AI wallet not found")
    risk_tolerance = user.risk_profile.risk_tolerance if user.risk_profile else None
    try:
        snapshot = await gateway.portfolio(user.ai_wallet.wallet_address, risk_tolerance)
    except Exception as exc:
        logger.exception("Error fetching portfolio data for %s", wallet_address)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch portfolio data"
        ) from exc
    return snapshot, risk_tolerance


@router.post("/portfolio", response_model=PortfolioResponse)
async def get_portfolio(
    payload: WalletAddressRequest,
    session: AsyncSession = Depends(get_session),
    gateway: ChainGateway = Depends(get_gateway),
) -> PortfolioResponse:
    snapshot, _ = await _snapshot_for(payload.wallet_address, session, gateway)
    return PortfolioResponse.from_snapshot(snapshot)


@router.post("/optimization", response_model=list[OpportunitySchema])
async def get_optimization(
    payload: WalletAddressRequest,
    session: AsyncSession = Depends(get_session),
    gateway: ChainGateway = Depends(get_gateway),
) -> list[OpportunitySchema]:
    snapshot, risk_tolerance = await _snapshot_for(payload.wallet_address, session, gateway)
    opportunities = rank_opportunities(snapshot.assets, snapshot.strategies, risk_tolerance)
    return [OpportunitySchema.from_opportunity(opportunity) for opportunity in opportunities]
