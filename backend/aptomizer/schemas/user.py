"""Request and response schemas for user, profile and AI wallet endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import ApiModel


class WalletAddressRequest(ApiModel):
    wallet_address: str = Field(..., min_length=1, examples=["0x1"])


class UserIdRequest(ApiModel):
    user_id: str = Field(..., min_length=1)


class RiskProfileData(ApiModel):
    risk_tolerance: int = Field(default=5, ge=1, le=10)
    investment_goals: list[str] = Field(default_factory=list)
    time_horizon: str = Field(default="Medium")
    experience_level: str = Field(default="Beginner")
    preferred_assets: list[str] = Field(default_factory=list)
    volatility_tolerance: int = Field(default=5, ge=1, le=10)
    income_requirement: bool = False
    rebalancing_frequency: str = Field(default="Monthly")
    max_drawdown: Optional[float] = None
    target_apy: Optional[float] = Field(default=None, alias="targetAPY")


class SaveRiskProfileRequest(ApiModel):
    user_id: str = Field(..., min_length=1)
    risk_profile_data: RiskProfileData


class UpdateRiskProfileRequest(ApiModel):
    wallet_address: str = Field(..., min_length=1)
    risk_profile: RiskProfileData


class UpdateProfileRequest(ApiModel):
    wallet_address: str = Field(..., min_length=1)
    display_name: Optional[str] = None
    email: Optional[str] = None
    bio: Optional[str] = None


class RiskProfileSchema(RiskProfileData):
    id: str
    user_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AiWalletSummary(ApiModel):
    wallet_address: str
    public_key: str
    created_at: Optional[datetime] = None


class UserSchema(ApiModel):
    id: str
    wallet_address: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    bio: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    risk_profile: Optional[RiskProfileSchema] = None
    ai_wallet: Optional[AiWalletSummary] = None


class UserResponse(ApiModel):
    user: UserSchema


class RiskProfileResponse(ApiModel):
    risk_profile: RiskProfileSchema


class HasAiWalletResponse(ApiModel):
    has_ai_wallet: bool


class GeneratedAiWalletSchema(AiWalletSummary):
    """Returned once at creation; the private key is never readable again."""

    id: str
    user_id: str
    private_key: str


class GenerateAiWalletResponse(ApiModel):
    ai_wallet: GeneratedAiWalletSchema


__all__ = [
    "AiWalletSummary",
    "GenerateAiWalletResponse",
    "GeneratedAiWalletSchema",
    "HasAiWalletResponse",
    "RiskProfileData",
    "RiskProfileResponse",
    "RiskProfileSchema",
    "SaveRiskProfileRequest",
    "UpdateProfileRequest",
    "UpdateRiskProfileRequest",
    "UserIdRequest",
    "UserResponse",
    "UserSchema",
    "WalletAddressRequest",
]
