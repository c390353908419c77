"""User, AI wallet, risk profile and transaction models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from aptomizer.db.base import Base


def _uuid_pk() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_pk)
    wallet_address: Mapped[str] = mapped_column(String(80), unique=True, index=True)
    display_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    ai_wallet: Mapped[Optional["AiWallet"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", uselist=False, lazy="selectin"
    )
    risk_profile: Mapped[Optional["RiskProfile"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", uselist=False, lazy="selectin"
    )
    transactions: Mapped[list["Transaction"]] = relationship(back_populates="user", cascade="all, delete-orphan")


class AiWallet(Base):
    __tablename__ = "ai_wallets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_pk)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True)
    wallet_address: Mapped[str] = mapped_column(String(80), unique=True)
    # ivHex:cipherHex
    private_key: Mapped[str] = mapped_column(Text)
    public_key: Mapped[str] = mapped_column(String(130))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    user: Mapped[User] = relationship(back_populates="ai_wallet")


class RiskProfile(Base):
    __tablename__ = "risk_profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_pk)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True)
    risk_tolerance: Mapped[int] = mapped_column(Integer, default=5)
    investment_goals: Mapped[list[str]] = mapped_column(JSON, default=list)
    time_horizon: Mapped[str] = mapped_column(String(32), default="Medium")
    experience_level: Mapped[str] = mapped_column(String(32), default="Beginner")
    preferred_assets: Mapped[list[str]] = mapped_column(JSON, default=list)
    volatility_tolerance: Mapped[int] = mapped_column(Integer, default=5)
    income_requirement: Mapped[bool] = mapped_column(Boolean, default=False)
    rebalancing_frequency: Mapped[str] = mapped_column(String(32), default="Monthly")
    max_drawdown: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    target_apy: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    user: Mapped[User] = relationship(back_populates="risk_profile")


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (Index("ix_transactions_user_created", "user_id", "created_at"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_pk)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    tx_hash: Mapped[str] = mapped_column(String(80), index=True)
    tx_type: Mapped[str] = mapped_column(String(32))
    token: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="pending")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    user: Mapped[User] = relationship(back_populates="transactions")
