"""Savings goals."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

from ..constants import GoalStatus


class SavingsGoal(SQLModel, table=True):
    """A savings target.

    Progress is not stored here: the current amount is always the sum of the
    expenses whose ``goal_id`` points at this row.
    """

    __tablename__: ClassVar[str] = "savings_goals"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=120)
    target_amount: float = Field(nullable=False)
    monthly_contribution: float = Field(default=0.0, nullable=False)
    category: str = Field(nullable=False, max_length=16)
    status: str = Field(default=GoalStatus.ACTIVE.value, nullable=False, max_length=16, index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    @property
    def is_completed(self) -> bool:
        return self.status == GoalStatus.COMPLETED.value
