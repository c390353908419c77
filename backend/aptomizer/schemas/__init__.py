"""Pydantic schema exports."""

from .base import ApiModel
from .chat import ChatMessage, ChatRequest
from .portfolio import AssetSchema, OpportunitySchema, PortfolioResponse, PositionSchema, StrategySchema
from .user import (
    AiWalletSummary,
    GenerateAiWalletResponse,
    GeneratedAiWalletSchema,
    HasAiWalletResponse,
    RiskProfileData,
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

__all__ = [
    "AiWalletSummary",
    "ApiModel",
    "AssetSchema",
    "ChatMessage",
    "ChatRequest",
    "GenerateAiWalletResponse",
    "GeneratedAiWalletSchema",
    "HasAiWalletResponse",
    "OpportunitySchema",
    "PortfolioResponse",
    "PositionSchema",
    "RiskProfileData",
    "RiskProfileResponse",
    "RiskProfileSchema",
    "SaveRiskProfileRequest",
    "StrategySchema",
    "UpdateProfileRequest",
    "UpdateRiskProfileRequest",
    "UserIdRequest",
    "UserResponse",
    "UserSchema",
    "WalletAddressRequest",
]
