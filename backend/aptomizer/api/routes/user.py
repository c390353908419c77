"""User, risk profile and AI wallet endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from aptomizer.api.dependencies.services import get_secret_store, get_session
from aptomizer.core.secrets import SecretStore
from aptomizer.schemas import (
    GenerateAiWalletResponse,
    GeneratedAiWalletSchema,
    HasAiWalletResponse,
    RiskProfileResponse,
    RiskProfileSchema,
    SaveRiskProfileRequest,
    UpdateProfileRequest,
    UpdateRiskProfileRequest,
    UserIdRequest,
    UserResponse,
    UserSchema,
    WalletAddressRequest,
)
from aptomizer.services import wallets

logger = logging.getLogger(__name__)

router = APIRouter()

USER_NOT_FOUND = "User not found"


@router.post("/create", response_model=UserResponse)
async def create_user(payload: WalletAddressRequest, session: AsyncSession = Depends(get_session)) -> UserResponse:
    try:
        user = await wallets.create_user(session, payload.wallet_address)
    except Exception as exc:
        logger.exception("Error creating user")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create user") from exc
    return UserResponse(user=UserSchema.model_validate(user))


@router.post("/profile", response_model=UserResponse)
async def get_profile(payload: WalletAddressRequest, session: AsyncSession = Depends(get_session)) -> UserResponse:
    user = await wallets.get_user_by_wallet_address(session, payload.wallet_address)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND)
    return UserResponse(user=UserSchema.model_validate(user))


@router.post("/has-ai-wallet", response_model=HasAiWalletResponse)
async def has_ai_wallet(
    payload: WalletAddressRequest, session: AsyncSession = Depends(get_session)
) -> HasAiWalletResponse:
    return HasAiWalletResponse(has_ai_wallet=await wallets.has_ai_wallet(session, payload.wallet_address))


@router.post("/generate-ai-wallet", response_model=GenerateAiWalletResponse)
async def generate_ai_wallet(
    payload: UserIdRequest,
    session: AsyncSession = Depends(get_session),
    store: SecretStore = Depends(get_secret_store),
) -> GenerateAiWalletResponse:
    try:
        generated = await wallets.generate_ai_wallet(session, payload.user_id, store)
    except wallets.UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND) from exc
    except wallets.AiWalletExistsError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="AI wallet already exists") from exc
    record = generated.record
    return GenerateAiWalletResponse(
        ai_wallet=GeneratedAiWalletSchema(
            id=record.id,
            user_id=record.user_id,
            wallet_address=record.wallet_address,
            public_key=record.public_key,
            private_key=generated.private_key,
            created_at=record.created_at,
        )
    )


@router.post("/save-risk-profile", response_model=RiskProfileResponse)
async def save_risk_profile(
    payload: SaveRiskProfileRequest, session: AsyncSession = Depends(get_session)
) -> RiskProfileResponse:
    try:
        profile = await wallets.save_risk_profile(session, payload.user_id, payload.risk_profile_data.model_dump())
    except wallets.UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND) from exc
    return RiskProfileResponse(risk_profile=RiskProfileSchema.model_validate(profile))


@router.post("/update-risk-profile", response_model=UserResponse)
async def update_risk_profile(
    payload: UpdateRiskProfileRequest, session: AsyncSession = Depends(get_session)
) -> UserResponse:
    try:
        user = await wallets.update_risk_profile(session, payload.wallet_address, payload.risk_profile.model_dump())
    except wallets.UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND) from exc
    return UserResponse(user=UserSchema.model_validate(user))


@router.post("/update-profile", response_model=UserResponse)
async def update_profile(payload: UpdateProfileRequest, session: AsyncSession = Depends(get_session)) -> UserResponse:
    try:
        user = await wallets.update_user_profile(
            session,
            payload.wallet_address,
            display_name=payload.display_name,
            email=payload.email,
            bio=payload.bio,
        )
    except wallets.UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND) from exc
    return UserResponse(user=UserSchema.model_validate(user))
