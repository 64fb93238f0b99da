"""SQLModel definitions for income and expense rows.

Income and expense share most columns but live in separate tables. Each
class carries a ``kind`` discriminant so callers can treat them as one
tagged union (``LedgerEntry``).
"""

from __future__ import annotations

import datetime as dt
from typing import ClassVar, Optional, Union

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from ..constants import TransactionKind


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class TransactionBase(SQLModel):
    """Columns common to both transaction tables."""

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=120)
    amount: float = Field(nullable=False)
    date: dt.date = Field(nullable=False, index=True)
    created_at: dt.datetime = Field(default_factory=_utcnow, nullable=False)
    is_recurring: bool = Field(default=False, nullable=False)
    recurring_id: Optional[int] = Field(
        default=None, foreign_key="recurring_templates.id", index=True
    )
    # "YYYY-MM" month a template was materialized for; None for hand-entered rows
    recurring_period: Optional[str] = Field(default=None, max_length=7)


class Income(TransactionBase, table=True):
    """Money in. Never categorized."""

    __tablename__: ClassVar[str] = "income_transactions"
    __table_args__: ClassVar[tuple] = (
        UniqueConstraint("recurring_id", "recurring_period", name="uq_income_recurring_period"),
    )

    kind: ClassVar[TransactionKind] = TransactionKind.INCOME


class Expense(TransactionBase, table=True):
    """Money out, always in one of the four spending categories."""

    __tablename__: ClassVar[str] = "expense_transactions"
    __table_args__: ClassVar[tuple] = (
        UniqueConstraint("recurring_id", "recurring_period", name="uq_expense_recurring_period"),
    )

    kind: ClassVar[TransactionKind] = TransactionKind.EXPENSE

    category: str = Field(nullable=False, max_length=16, index=True)
    goal_id: Optional[int] = Field(default=None, foreign_key="savings_goals.id", index=True)


LedgerEntry = Union[Income, Expense]


def period_key(day: dt.date) -> str:
    """Return the ``YYYY-MM`` key of the month containing ``day``."""

    return f"{day.year:04d}-{day.month:02d}"


def month_bounds(day: dt.date) -> tuple[dt.date, dt.date]:
    """Return ``[first day of month, first day of next month)``."""

    start = day.replace(day=1)
    if start.month == 12:
        end = dt.date(start.year + 1, 1, 1)
    else:
        end = dt.date(start.year, start.month + 1, 1)
    return start, end
