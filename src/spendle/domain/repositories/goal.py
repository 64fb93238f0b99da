"""Savings goal repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.goal import SavingsGoal


class SavingsGoalRepository(Protocol):
    def get_by_id(self, goal_id: int, *, user_id: int) -> Optional[SavingsGoal]:
        ...

    def list_for_user(self, *, user_id: int) -> list[SavingsGoal]:
        ...

    def create(self, goal: SavingsGoal, *, user_id: int) -> SavingsGoal:
        ...

    def update(self, goal_id: int, changes: dict, *, user_id: int) -> Optional[SavingsGoal]:
        ...

    def delete(self, goal_id: int, *, user_id: int) -> bool:
        ...
