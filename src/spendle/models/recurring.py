"""Recurring income/expense templates."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

from ..constants import MONTHLY, TransactionKind


class RecurringTemplate(SQLModel, table=True):
    """A monthly pattern that is materialized into one transaction per month."""

    __tablename__: ClassVar[str] = "recurring_templates"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=120)
    amount: float = Field(nullable=False)
    type: str = Field(nullable=False, max_length=16, index=True)
    category: Optional[str] = Field(default=None, max_length=16)
    active: bool = Field(default=True, nullable=False, index=True)
    frequency: str = Field(default=MONTHLY, nullable=False, max_length=16)
    goal_id: Optional[int] = Field(default=None, foreign_key="savings_goals.id", index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    @property
    def kind(self) -> TransactionKind:
        return TransactionKind(self.type)

    @property
    def is_income(self) -> bool:
        return self.type == TransactionKind.INCOME.value
