"""SQLModel implementation of the savings goal repository."""

from __future__ import annotations

from typing import Optional

from sqlmodel import select

from ...models.goal import SavingsGoal
from ..database import SessionFactory

_IMMUTABLE_FIELDS = {"id", "user_id", "created_at"}


class SQLModelSavingsGoalRepository:
    """SQLModel-based savings goal repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get_by_id(self, goal_id: int, *, user_id: int) -> Optional[SavingsGoal]:
        with self.session_factory() as session:
            obj = session.exec(
                select(SavingsGoal)
                .where(SavingsGoal.id == goal_id)
                .where(SavingsGoal.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_for_user(self, *, user_id: int) -> list[SavingsGoal]:
        with self.session_factory() as session:
            statement = (
                select(SavingsGoal)
                .where(SavingsGoal.user_id == user_id)
                .order_by(SavingsGoal.created_at.desc(), SavingsGoal.id.desc())  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, goal: SavingsGoal, *, user_id: int) -> SavingsGoal:
        with self.session_factory() as session:
            goal.user_id = user_id
            session.add(goal)
            session.commit()
            session.refresh(goal)
            session.expunge(goal)
            return goal

    def update(self, goal_id: int, changes: dict, *, user_id: int) -> Optional[SavingsGoal]:
        with self.session_factory() as session:
            goal = session.exec(
                select(SavingsGoal)
                .where(SavingsGoal.id == goal_id)
                .where(SavingsGoal.user_id == user_id)
            ).first()
            if goal is None:
                return None
            for key, value in changes.items():
                if key in _IMMUTABLE_FIELDS:
                    continue
                setattr(goal, key, value)
            session.add(goal)
            session.commit()
            session.refresh(goal)
            session.expunge(goal)
            return goal

    def delete(self, goal_id: int, *, user_id: int) -> bool:
        with self.session_factory() as session:
            goal = session.exec(
                select(SavingsGoal)
                .where(SavingsGoal.id == goal_id)
                .where(SavingsGoal.user_id == user_id)
            ).first()
            if goal is None:
                return False
            session.delete(goal)
            session.commit()
            return True
