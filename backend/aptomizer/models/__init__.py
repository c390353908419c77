"""Database model exports."""

from .user import AiWallet, RiskProfile, Transaction, User

__all__ = [
    "User",
    "AiWallet",
    "RiskProfile",
    "Transaction",
]
