"""Chat request schema."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from .base import ApiModel


class ChatMessage(ApiModel):
    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(ApiModel):
    messages: list[ChatMessage] = Field(..., min_length=1)
    user_wallet_address: str = Field(..., min_length=1)


__all__ = ["ChatMessage", "ChatRequest"]
