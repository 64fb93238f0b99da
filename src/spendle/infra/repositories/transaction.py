"""SQLModel implementations of the income and expense repositories."""

from __future__ import annotations

from datetime import date
from typing import Generic, Iterable, Optional, Sequence, TypeVar

from sqlalchemy import func, update
from sqlmodel import select

from ...models.transaction import Expense, Income, TransactionBase
from ..database import SessionFactory

T = TypeVar("T", bound=TransactionBase)

_IMMUTABLE_FIELDS = {"id", "user_id", "created_at"}


class _SQLModelTransactionRepository(Generic[T]):
    """Shared row-store logic; subclasses pin the table via ``model``."""

    model: type[T]

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get_by_id(self, transaction_id: int, *, user_id: int) -> Optional[T]:
        model = self.model
        with self.session_factory() as session:
            obj = session.exec(
                select(model).where(model.id == transaction_id).where(model.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def filter_by_date_range(self, start_date: date, end_date: date, *, user_id: int) -> list[T]:
        model = self.model
        with self.session_factory() as session:
            statement = (
                select(model)
                .where(model.user_id == user_id)
                .where(model.date >= start_date)
                .where(model.date < end_date)
                .order_by(model.date.desc(), model.id.desc())  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def recurring_ids_in_range(self, start_date: date, end_date: date, *, user_id: int) -> set[int]:
        model = self.model
        with self.session_factory() as session:
            statement = (
                select(model.recurring_id)
                .where(model.user_id == user_id)
                .where(model.is_recurring == True)  # noqa: E712
                .where(model.recurring_id.is_not(None))  # type: ignore
                .where(model.date >= start_date)
                .where(model.date < end_date)
            )
            return {rid for rid in session.exec(statement).all() if rid is not None}

    def create(self, transaction: T, *, user_id: int) -> T:
        with self.session_factory() as session:
            transaction.user_id = user_id
            session.add(transaction)
            session.commit()
            session.refresh(transaction)
            session.expunge(transaction)
            return transaction

    def create_many(self, transactions: Sequence[T], *, user_id: int) -> list[T]:
        if not transactions:
            return []
        with self.session_factory() as session:
            for txn in transactions:
                txn.user_id = user_id
                session.add(txn)
            session.commit()
            for txn in transactions:
                session.refresh(txn)
            session.expunge_all()
            return list(transactions)

    def update(self, transaction_id: int, changes: dict, *, user_id: int) -> Optional[T]:
        model = self.model
        with self.session_factory() as session:
            obj = session.exec(
                select(model).where(model.id == transaction_id).where(model.user_id == user_id)
            ).first()
            if obj is None:
                return None
            for key, value in changes.items():
                if key in _IMMUTABLE_FIELDS:
                    continue
                setattr(obj, key, value)
            session.add(obj)
            session.commit()
            session.refresh(obj)
            session.expunge(obj)
            return obj

    def delete(self, transaction_id: int, *, user_id: int) -> bool:
        model = self.model
        with self.session_factory() as session:
            obj = session.exec(
                select(model).where(model.id == transaction_id).where(model.user_id == user_id)
            ).first()
            if obj is None:
                return False
            session.delete(obj)
            session.commit()
            return True

    def clear_recurring_reference(self, template_ids: Iterable[int], *, user_id: int) -> int:
        ids = [tid for tid in template_ids if tid is not None]
        if not ids:
            return 0
        model = self.model
        with self.session_factory() as session:
            result = session.execute(
                update(model)
                .where(model.user_id == user_id)
                .where(model.recurring_id.in_(ids))  # type: ignore
                .values(recurring_id=None, is_recurring=False, recurring_period=None)
            )
            session.commit()
            return result.rowcount or 0


class SQLModelIncomeRepository(_SQLModelTransactionRepository[Income]):
    """SQLModel-based income repository."""

    model = Income


class SQLModelExpenseRepository(_SQLModelTransactionRepository[Expense]):
    """SQLModel-based expense repository with goal linkage helpers."""

    model = Expense

    def list_for_goal(self, goal_id: int, *, user_id: int) -> list[Expense]:
        with self.session_factory() as session:
            statement = (
                select(Expense)
                .where(Expense.user_id == user_id)
                .where(Expense.goal_id == goal_id)
                .order_by(Expense.date.desc(), Expense.id.desc())  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def total_for_goals(self, goal_ids: Iterable[int], *, user_id: int) -> dict[int, float]:
        """Sum linked expense amounts per goal; goals without expenses map to 0."""

        ids = [gid for gid in goal_ids if gid is not None]
        totals: dict[int, float] = {gid: 0.0 for gid in ids}
        if not ids:
            return totals
        with self.session_factory() as session:
            statement = (
                select(Expense.goal_id, func.sum(Expense.amount))
                .where(Expense.user_id == user_id)
                .where(Expense.goal_id.in_(ids))  # type: ignore
                .group_by(Expense.goal_id)
            )
            for goal_id, total in session.exec(statement).all():
                totals[goal_id] = float(total or 0.0)
        return totals

    def delete_for_goal(self, goal_id: int, *, user_id: int) -> int:
        with self.session_factory() as session:
            rows = session.exec(
                select(Expense).where(Expense.user_id == user_id).where(Expense.goal_id == goal_id)
            ).all()
            for row in rows:
                session.delete(row)
            session.commit()
            return len(rows)

    def unlink_goal(self, goal_id: int, *, user_id: int) -> int:
        with self.session_factory() as session:
            result = session.execute(
                update(Expense)
                .where(Expense.user_id == user_id)
                .where(Expense.goal_id == goal_id)
                .values(goal_id=None)
            )
            session.commit()
            return result.rowcount or 0
