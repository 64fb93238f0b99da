"""Shared enumerations."""

from .categories import (
    CATEGORIES,
    MONTHLY,
    TRANSACTION_KINDS,
    Category,
    GoalStatus,
    TransactionKind,
    normalize_category,
    normalize_kind,
)

__all__ = [
    "CATEGORIES",
    "MONTHLY",
    "TRANSACTION_KINDS",
    "Category",
    "GoalStatus",
    "TransactionKind",
    "normalize_category",
    "normalize_kind",
]
