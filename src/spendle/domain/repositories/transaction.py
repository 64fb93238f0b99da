"""Income/expense repository protocols."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol, Sequence, TypeVar

from ...models.transaction import Expense, TransactionBase

T = TypeVar("T", bound=TransactionBase)


class TransactionRepository(Protocol[T]):
    """Row store over one transaction table."""

    def get_by_id(self, transaction_id: int, *, user_id: int) -> Optional[T]:
        ...

    def filter_by_date_range(
        self, start_date: date, end_date: date, *, user_id: int
    ) -> list[T]:
        """Rows dated in ``[start_date, end_date)``, newest first."""
        ...

    def recurring_ids_in_range(
        self, start_date: date, end_date: date, *, user_id: int
    ) -> set[int]:
        """Template ids already materialized in ``[start_date, end_date)``."""
        ...

    def create(self, transaction: T, *, user_id: int) -> T:
        ...

    def create_many(self, transactions: Sequence[T], *, user_id: int) -> list[T]:
        """Insert all rows in one unit of work."""
        ...

    def update(self, transaction_id: int, changes: dict, *, user_id: int) -> Optional[T]:
        ...

    def delete(self, transaction_id: int, *, user_id: int) -> bool:
        ...

    def clear_recurring_reference(self, template_ids: Iterable[int], *, user_id: int) -> int:
        """Detach rows from the given templates; returns the number touched."""
        ...


class ExpenseRepository(TransactionRepository[Expense], Protocol):
    """Expense rows additionally link to savings goals."""

    def list_for_goal(self, goal_id: int, *, user_id: int) -> list[Expense]:
        ...

    def total_for_goals(self, goal_ids: Iterable[int], *, user_id: int) -> dict[int, float]:
        ...

    def delete_for_goal(self, goal_id: int, *, user_id: int) -> int:
        ...

    def unlink_goal(self, goal_id: int, *, user_id: int) -> int:
        ...
