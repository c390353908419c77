"""Streaming chat endpoint backed by the tool-calling assistant."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from openai import AsyncOpenAI
from sqlalchemy.ext.asyncio import AsyncSession

from aptomizer.api.dependencies.services import (
    get_app_settings,
    get_gateway,
    get_openai_client,
    get_secret_store,
    get_session,
)
from aptomizer.chat.prompt import build_system_prompt
from aptomizer.chat.runner import stream_chat
from aptomizer.chat.tools import ToolContext, registry
from aptomizer.config import AppSettings
from aptomizer.core.secrets import SecretStore
from aptomizer.schemas import ChatRequest
from aptomizer.services import wallets
from aptomizer.services.gateway import ChainGateway

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("")
async def chat(
    payload: ChatRequest,
    session: AsyncSession = Depends(get_session),
    gateway: ChainGateway = Depends(get_gateway),
    store: SecretStore = Depends(get_secret_store),
    client: AsyncOpenAI = Depends(get_openai_client),
    settings: AppSettings = Depends(get_app_settings),
) -> StreamingResponse:
    user = await wallets.get_user_by_wallet_address(session, payload.user_wallet_address)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    ai_wallet = await wallets.get_ai_wallet(session, user.id, store)
    if ai_wallet is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="AI wallet not found")

    risk_tolerance = user.risk_profile.risk_tolerance if user.risk_profile else None
    context = ToolContext(
        user_id=user.id,
        wallet_address=user.wallet_address,
        ai_wallet_address=ai_wallet.wallet_address,
        agent_factory=lambda: gateway.agent_for(ai_wallet),
        portfolio_loader=lambda: gateway.portfolio(ai_wallet.wallet_address, risk_tolerance),
        risk_tolerance=risk_tolerance,
    )
    stream = stream_chat(
        client,
        model=settings.openai_model,
        system_prompt=build_system_prompt(user, ai_wallet.wallet_address),
        messages=[message.model_dump() for message in payload.messages],
        registry=registry,
        context=context,
        max_steps=settings.chat_max_steps,
    )
    return StreamingResponse(stream, media_type="text/plain; charset=utf-8")
