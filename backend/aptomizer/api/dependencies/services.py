"""Request-scoped dependencies resolved from application state."""

from __future__ import annotations

from typing import AsyncIterator

from fastapi import HTTPException, Request, status
from openai import AsyncOpenAI
from sqlalchemy.ext.asyncio import AsyncSession

from aptomizer.config import AppSettings
from aptomizer.core.secrets import AesCbcSecretStore, SecretStore, SecretStoreError
from aptomizer.services.gateway import ChainGateway


def get_app_settings(request: Request) -> AppSettings:
    return request.app.state.settings


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    async for session in request.app.state.database.get_session():
        yield session


def get_gateway(request: Request) -> ChainGateway:
    return request.app.state.gateway


def get_secret_store(request: Request) -> SecretStore:
    store = getattr(request.app.state, "secret_store", None)
    if store is not None:
        return store
    try:
        store = AesCbcSecretStore(request.app.state.settings.encryption_key)
    except SecretStoreError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    request.app.state.secret_store = store
    return store


def get_openai_client(request: Request) -> AsyncOpenAI:
    client = getattr(request.app.state, "openai", None)
    if client is not None:
        return client
    api_key = request.app.state.settings.openai_api_key
    if not api_key:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Chat is not configured")
    client = AsyncOpenAI(api_key=api_key)
    request.app.state.openai = client
    return client


__all__ = [
    "get_app_settings",
    "get_gateway",
    "get_openai_client",
    "get_secret_store",
    "get_session",
]
