"""Route registration helpers."""

from __future__ import annotations

from fastapi import APIRouter

from .chat import router as chat_router
from .portfolio import router as portfolio_router
from .user import router as user_router

api_router = APIRouter(prefix="/api")
api_router.include_router(user_router, prefix="/user", tags=["user"])
api_router.include_router(portfolio_router, prefix="/user", tags=["portfolio"])
api_router.include_router(chat_router, prefix="/chat", tags=["chat"])

__all__ = ["api_router"]
