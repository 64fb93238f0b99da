"""
Centralized enumerations for expense categories, transaction kinds and goal status.
Values are persisted as plain strings, so members subclass ``str``.
"""

from __future__ import annotations

from enum import Enum


class Category(str, Enum):
    """Spending buckets; only expenses carry one."""

    INVESTMENT = "investment"
    DEBT = "debt"
    NEEDS = "needs"
    LEISURE = "leisure"


class TransactionKind(str, Enum):
    """Discriminant of the income/expense union."""

    INCOME = "income"
    EXPENSE = "expense"


class GoalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


CATEGORIES: tuple[str, ...] = tuple(c.value for c in Category)
TRANSACTION_KINDS: tuple[str, ...] = tuple(k.value for k in TransactionKind)

# Recurring templates only support a monthly cadence
MONTHLY = "monthly"


def normalize_category(value: object) -> str | None:
    """Return the canonical category string, or None when the value is unknown."""

    if value is None:
        return None
    raw = value.value if isinstance(value, Enum) else str(value)
    raw = raw.strip().lower()
    return raw if raw in CATEGORIES else None


def normalize_kind(value: object) -> str | None:
    if value is None:
        return None
    raw = value.value if isinstance(value, Enum) else str(value)
    raw = raw.strip().lower()
    return raw if raw in TRANSACTION_KINDS else None
