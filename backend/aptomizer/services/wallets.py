"""User accounts, risk profiles and custodial AI wallets."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from aptos_sdk.account import Account
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from aptomizer.core.secrets import SecretStore
from aptomizer.models import AiWallet, RiskProfile, User

logger = logging.getLogger(__name__)

RISK_PROFILE_FIELDS = (
    "risk_tolerance",
    "investment_goals",
    "time_horizon",
    "experience_level",
    "preferred_assets",
    "volatility_tolerance",
    "income_requirement",
    "rebalancing_frequency",
    "max_drawdown",
    "target_apy",
)


class UserNotFoundError(LookupError):
    """Raised when an operation targets a user that does not exist."""


class AiWalletExistsError(RuntimeError):
    """Raised when a user already owns an AI wallet."""


@dataclass(frozen=True)
class GeneratedWallet:
    record: AiWallet
    private_key: str


@dataclass(frozen=True)
class UnlockedWallet:
    """An AI wallet with its private key decrypted for signing."""

    user_id: str
    wallet_address: str
    public_key: str
    private_key: str


async def _fetch_user(session: AsyncSession, *criteria: Any) -> Optional[User]:
    statement = select(User).where(*criteria).execution_options(populate_existing=True)
    result = await session.execute(statement)
    return result.scalar_one_or_none()


async def get_user_by_wallet_address(session: AsyncSession, wallet_address: str) -> Optional[User]:
    return await _fetch_user(session, User.wallet_address == wallet_address)


async def get_user(session: AsyncSession, user_id: str) -> Optional[User]:
    return await _fetch_user(session, User.id == user_id)


async def _require_user(session: AsyncSession, wallet_address: str) -> User:
    user = await get_user_by_wallet_address(session, wallet_address)
    if user is None:
        raise UserNotFoundError(wallet_address)
    return user


async def create_user(session: AsyncSession, wallet_address: str) -> User:
    """Return the user for ``wallet_address``, creating it on first sight."""

    existing = await get_user_by_wallet_address(session, wallet_address)
    if existing is not None:
        return existing
    session.add(User(wallet_address=wallet_address))
    try:
        await session.commit()
    except IntegrityError:
        # A concurrent request created the same user first.
        await session.rollback()
    return await _require_user(session, wallet_address)


async def has_ai_wallet(session: AsyncSession, wallet_address: str) -> bool:
    user = await get_user_by_wallet_address(session, wallet_address)
    return user is not None and user.ai_wallet is not None


async def save_risk_profile(session: AsyncSession, user_id: str, data: Mapping[str, Any]) -> RiskProfile:
    """Create or overwrite the user's risk profile; the last write wins."""

    user = await get_user(session, user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    values = {key: value for key, value in data.items() if key in RISK_PROFILE_FIELDS}
    profile = user.risk_profile
    if profile is None:
        profile = RiskProfile(user_id=user.id, **values)
        session.add(profile)
    else:
        for key, value in values.items():
            setattr(profile, key, value)
    await session.commit()
    await session.refresh(profile)
    return profile


async def update_risk_profile(session: AsyncSession, wallet_address: str, data: Mapping[str, Any]) -> User:
    user = await _require_user(session, wallet_address)
    await save_risk_profile(session, user.id, data)
    return await _require_user(session, wallet_address)


async def update_user_profile(
    session: AsyncSession,
    wallet_address: str,
    *,
    display_name: Optional[str] = None,
    email: Optional[str] = None,
    bio: Optional[str] = None,
) -> User:
    """Update the provided fields only; ``None`` leaves a field untouched."""

    user = await _require_user(session, wallet_address)
    for key, value in (("display_name", display_name), ("email", email), ("bio", bio)):
        if value is not None:
            setattr(user, key, value)
    await session.commit()
    return await _require_user(session, wallet_address)


async def generate_ai_wallet(session: AsyncSession, user_id: str, store: SecretStore) -> GeneratedWallet:
    """Create a fresh Aptos account for the user; only the encrypted key is stored."""

    user = await get_user(session, user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    if user.ai_wallet is not None:
        raise AiWalletExistsError(user_id)

    account = Account.generate()
    private_key = account.private_key.hex()
    record = AiWallet(
        user_id=user.id,
        wallet_address=str(account.address()),
        private_key=store.encrypt(private_key.encode("utf-8")),
        public_key=str(account.public_key()),
    )
    session.add(record)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise AiWalletExistsError(user_id) from exc
    await session.refresh(record)
    logger.info("Generated AI wallet %s for user %s", record.wallet_address, user.id)
    return GeneratedWallet(record=record, private_key=private_key)


async def get_ai_wallet(session: AsyncSession, user_id: str, store: SecretStore) -> Optional[UnlockedWallet]:
    result = await session.execute(select(AiWallet).where(AiWallet.user_id == user_id))
    record = result.scalar_one_or_none()
    if record is None:
        return None
    return UnlockedWallet(
        user_id=record.user_id,
        wallet_address=record.wallet_address,
        public_key=record.public_key,
        private_key=store.decrypt(record.private_key).decode("utf-8"),
    )


__all__ = [
    "AiWalletExistsError",
    "GeneratedWallet",
    "RISK_PROFILE_FIELDS",
    "UnlockedWallet",
    "UserNotFoundError",
    "create_user",
    "generate_ai_wallet",
    "get_ai_wallet",
    "get_user",
    "get_user_by_wallet_address",
    "has_ai_wallet",
    "save_risk_profile",
    "update_risk_profile",
    "update_user_profile",
]
