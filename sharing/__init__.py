"""
Backend for two-person accountability partnerships

This package provides:
- A shared wallet per partnership with a running balance
- An append-only transaction log (contributions, gratitude, splits)
- Savings goals tracked per partnership
- Splitting the balance between both partners in one unit of work
- Users, partnerships and gratitude journal entries with soft deletes
"""

from .models import (
    PartnershipStatus,
    TransactionKind,
    TransactionStatus,
    GoalStatus,
    Transaction,
    WalletBalance,
    Goal,
    SplitResult,
)
from .database import Database
from .wallet import WalletService
from .accounts import UserService, PartnershipService, GratitudeService

__all__ = [
    "PartnershipStatus",
    "TransactionKind",
    "TransactionStatus",
    "GoalStatus",
    "Transaction",
    "WalletBalance",
    "Goal",
    "SplitResult",
    "Database",
    "WalletService",
    "UserService",
    "PartnershipService",
    "GratitudeService",
]
