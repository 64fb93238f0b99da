"""Ledger helpers: hand-entered income/expense rows and month listings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from ..constants import TransactionKind, normalize_category, normalize_kind
from ..context import AppContext
from ..domain.identity import IdentityProvider, require_user_id
from ..errors import NotFoundError, ValidationError
from ..logging_config import get_logger
from ..models.transaction import Expense, Income, LedgerEntry, month_bounds
from . import goals

logger = get_logger("services.ledger")

_EDITABLE = {
    TransactionKind.INCOME: {"name", "amount", "date"},
    TransactionKind.EXPENSE: {"name", "amount", "date", "category", "goal_id"},
}


@dataclass
class MonthListing:
    """Both kinds of rows dated inside one month."""

    month: date
    incomes: list[Income]
    expenses: list[Expense]

    @property
    def total_income(self) -> float:
        return sum(row.amount for row in self.incomes)

    @property
    def total_expenses(self) -> float:
        return sum(row.amount for row in self.expenses)


def _kind(value: Any) -> TransactionKind:
    kind = normalize_kind(value)
    if kind is None:
        raise ValidationError({"kind": ["Kind must be 'income' or 'expense'."]})
    return TransactionKind(kind)


def _repo(ctx: AppContext, kind: TransactionKind):
    return ctx.income_repo if kind is TransactionKind.INCOME else ctx.expense_repo


def _validate_common(name: Any, amount: Any, when: Any, errors: dict[str, list[str]]) -> dict:
    clean: dict[str, Any] = {}
    clean["name"] = name.strip() if isinstance(name, str) else ""
    if not clean["name"]:
        errors.setdefault("name", []).append("Name is required.")
    try:
        clean["amount"] = float(amount)
    except (TypeError, ValueError):
        errors.setdefault("amount", []).append("Enter a valid number for the amount.")
    else:
        if clean["amount"] <= 0:
            errors.setdefault("amount", []).append("Amount must be greater than zero.")
    if isinstance(when, date):
        clean["date"] = when
    else:
        try:
            clean["date"] = date.fromisoformat(str(when)[:10])
        except (TypeError, ValueError):
            errors.setdefault("date", []).append("Enter a valid date (YYYY-MM-DD).")
    return clean


def _check_goal(ctx: AppContext, goal_id: Optional[int], uid: int) -> None:
    if goal_id is not None and ctx.goal_repo.get_by_id(goal_id, user_id=uid) is None:
        raise NotFoundError("Savings goal", goal_id)


def add_income(
    ctx: AppContext, identity: IdentityProvider, *, name: str, amount: float, when: date | str
) -> Income:
    uid = require_user_id(identity)
    errors: dict[str, list[str]] = {}
    clean = _validate_common(name, amount, when, errors)
    if errors:
        raise ValidationError(errors)
    income = ctx.income_repo.create(Income(user_id=uid, **clean), user_id=uid)
    logger.info("Income recorded", extra={"income_id": income.id, "user_id": uid})
    return income


def add_expense(
    ctx: AppContext,
    identity: IdentityProvider,
    *,
    name: str,
    amount: float,
    when: date | str,
    category: str,
    goal_id: Optional[int] = None,
) -> Expense:
    uid = require_user_id(identity)
    errors: dict[str, list[str]] = {}
    clean = _validate_common(name, amount, when, errors)
    clean["category"] = normalize_category(category)
    if clean["category"] is None:
        errors.setdefault("category", []).append(
            "Category must be one of: investment, debt, needs, leisure."
        )
    if errors:
        raise ValidationError(errors)
    _check_goal(ctx, goal_id, uid)

    expense = ctx.expense_repo.create(Expense(user_id=uid, goal_id=goal_id, **clean), user_id=uid)
    logger.info("Expense recorded", extra={"expense_id": expense.id, "user_id": uid})
    if goal_id is not None:
        goals.evaluate_completion(ctx, identity, goal_id)
    return expense


def get_entry(
    ctx: AppContext, identity: IdentityProvider, kind: str | TransactionKind, entry_id: int
) -> LedgerEntry:
    uid = require_user_id(identity)
    txn_kind = _kind(kind)
    entry = _repo(ctx, txn_kind).get_by_id(entry_id, user_id=uid)
    if entry is None:
        raise NotFoundError(txn_kind.value.capitalize(), entry_id)
    return entry


def update_entry(
    ctx: AppContext,
    identity: IdentityProvider,
    kind: str | TransactionKind,
    entry_id: int,
    **changes: Any,
) -> LedgerEntry:
    """Edit a row in place; materialization links are left untouched."""

    uid = require_user_id(identity)
    txn_kind = _kind(kind)
    unknown = set(changes) - _EDITABLE[txn_kind]
    if unknown:
        raise ValidationError({field: ["Field cannot be edited."] for field in sorted(unknown)})

    existing = get_entry(ctx, identity, txn_kind, entry_id)
    errors: dict[str, list[str]] = {}
    clean = _validate_common(
        changes.get("name", existing.name),
        changes.get("amount", existing.amount),
        changes.get("date", existing.date),
        errors,
    )
    if txn_kind is TransactionKind.EXPENSE:
        clean["category"] = normalize_category(changes.get("category", existing.category))
        if clean["category"] is None:
            errors.setdefault("category", []).append(
                "Category must be one of: investment, debt, needs, leisure."
            )
        if "goal_id" in changes:
            clean["goal_id"] = changes["goal_id"]
    if errors:
        raise ValidationError(errors)
    if "goal_id" in clean:
        _check_goal(ctx, clean["goal_id"], uid)

    updated = _repo(ctx, txn_kind).update(entry_id, clean, user_id=uid)
    if updated is None:
        raise NotFoundError(txn_kind.value.capitalize(), entry_id)

    if txn_kind is TransactionKind.EXPENSE:
        for goal_id in {getattr(existing, "goal_id", None), getattr(updated, "goal_id", None)}:
            if goal_id is not None:
                goals.evaluate_completion(ctx, identity, goal_id)
    return updated


def delete_entry(
    ctx: AppContext, identity: IdentityProvider, kind: str | TransactionKind, entry_id: int
) -> None:
    uid = require_user_id(identity)
    txn_kind = _kind(kind)
    existing = get_entry(ctx, identity, txn_kind, entry_id)
    if not _repo(ctx, txn_kind).delete(entry_id, user_id=uid):
        raise NotFoundError(txn_kind.value.capitalize(), entry_id)
    logger.info(
        "Ledger entry deleted",
        extra={"kind": txn_kind.value, "entry_id": entry_id, "user_id": uid},
    )
    goal_id = getattr(existing, "goal_id", None)
    if goal_id is not None:
        goals.evaluate_completion(ctx, identity, goal_id)


def list_month(ctx: AppContext, identity: IdentityProvider, month: date) -> MonthListing:
    """Rows dated within the month containing ``month``, newest first."""

    uid = require_user_id(identity)
    start, end = month_bounds(month)
    return MonthListing(
        month=start,
        incomes=ctx.income_repo.filter_by_date_range(start, end, user_id=uid),
        expenses=ctx.expense_repo.filter_by_date_range(start, end, user_id=uid),
    )


def entry_to_dict(entry: LedgerEntry) -> dict[str, Any]:
    data = entry.model_dump()
    data["kind"] = entry.kind.value
    data["date"] = entry.date.isoformat()
    data["created_at"] = entry.created_at.isoformat() if entry.created_at else None
    return data
