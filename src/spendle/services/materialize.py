"""Monthly materialization of recurring templates.

Every active template of a user gets exactly one concrete income/expense
row per calendar month. Dedupe rests on the persisted data: rows carry the
template id and the ``YYYY-MM`` period they were created for, backed by a
unique constraint. The per-user marker kept by ``RecurringProcessor`` only
saves a round trip when the month has already been handled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Optional, Sequence, TypeVar

from ..context import AppContext
from ..domain.identity import IdentityProvider, require_user_id
from ..domain.repositories import KeyValueStore, TransactionRepository
from ..errors import ConflictError
from ..logging_config import get_logger
from ..models.recurring import RecurringTemplate
from ..models.transaction import Expense, Income, TransactionBase, month_bounds, period_key
from . import goals

logger = get_logger("services.materialize")

MARKER_KEY = "last_processed_recurring"

T = TypeVar("T", bound=TransactionBase)


@dataclass
class MaterializationResult:
    """Outcome of one materialization run."""

    period: str
    incomes: list[Income] = field(default_factory=list)
    expenses: list[Expense] = field(default_factory=list)
    skipped_template_ids: list[int] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.incomes) + len(self.expenses)

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "created": self.created_count,
            "income_ids": [row.id for row in self.incomes],
            "expense_ids": [row.id for row in self.expenses],
            "skipped_template_ids": list(self.skipped_template_ids),
        }


def _income_from(template: RecurringTemplate, month_start: date, user_id: int) -> Income:
    return Income(
        user_id=user_id,
        name=template.name,
        amount=template.amount,
        date=month_start,
        is_recurring=True,
        recurring_id=template.id,
        recurring_period=period_key(month_start),
    )


def _expense_from(template: RecurringTemplate, month_start: date, user_id: int) -> Expense:
    return Expense(
        user_id=user_id,
        name=template.name,
        amount=template.amount,
        category=template.category or "",
        goal_id=template.goal_id,
        date=month_start,
        is_recurring=True,
        recurring_id=template.id,
        recurring_period=period_key(month_start),
    )


def _materialized_ids(ctx: AppContext, month_start: date, user_id: int) -> set[int]:
    """Template ids with a row of either kind dated in the month of ``month_start``."""

    start, end = month_bounds(month_start)
    return ctx.income_repo.recurring_ids_in_range(
        start, end, user_id=user_id
    ) | ctx.expense_repo.recurring_ids_in_range(start, end, user_id=user_id)


def _insert_pending(
    ctx: AppContext,
    repo: TransactionRepository[T],
    templates: Sequence[RecurringTemplate],
    build: Callable[[RecurringTemplate, date, int], T],
    month_start: date,
    user_id: int,
) -> list[T]:
    """Bulk insert one row per template, re-checking once if a concurrent run got there first."""

    if not templates:
        return []
    try:
        return repo.create_many([build(t, month_start, user_id) for t in templates], user_id=user_id)
    except ConflictError:
        logger.warning(
            "Concurrent materialization detected; re-checking pending templates",
            extra={"user_id": user_id, "period": period_key(month_start)},
        )

    present = _materialized_ids(ctx, month_start, user_id)
    created: list[T] = []
    for template in templates:
        if template.id in present:
            continue
        try:
            created.append(repo.create(build(template, month_start, user_id), user_id=user_id))
        except ConflictError:
            logger.info(
                "Template already materialized by another run",
                extra={"template_id": template.id, "user_id": user_id},
            )
    return created


def materialize_month(
    ctx: AppContext, identity: IdentityProvider, *, today: Optional[date] = None
) -> MaterializationResult:
    """Create this month's rows for every active template not yet represented.

    Safe to call repeatedly: a second call in the same month inserts nothing.
    Storage errors propagate; templates whose insert failed stay pending and
    are picked up by the next call.
    """

    uid = require_user_id(identity)
    today = today or date.today()
    month_start, _ = month_bounds(today)
    result = MaterializationResult(period=period_key(month_start))

    templates = ctx.template_repo.list_for_user(user_id=uid, active=True)
    income_templates = [t for t in templates if t.is_income]
    expense_templates = [t for t in templates if not t.is_income]

    # One set across both kinds: a template whose type changed mid-month
    # already has its row for this month in the other table
    done = _materialized_ids(ctx, month_start, uid)

    pending_income = [t for t in income_templates if t.id not in done]
    pending_expense = [t for t in expense_templates if t.id not in done]
    result.skipped_template_ids = sorted(t.id for t in templates if t.id in done)  # type: ignore[misc]

    logger.info(
        "Materializing recurring templates",
        extra={
            "user_id": uid,
            "period": result.period,
            "active_templates": len(templates),
            "pending_income": len(pending_income),
            "pending_expense": len(pending_expense),
        },
    )

    result.incomes = _insert_pending(ctx, ctx.income_repo, pending_income, _income_from, month_start, uid)
    result.expenses = _insert_pending(
        ctx, ctx.expense_repo, pending_expense, _expense_from, month_start, uid
    )

    touched_goals = sorted({e.goal_id for e in result.expenses if e.goal_id is not None})
    for goal_id in touched_goals:
        goals.evaluate_completion(ctx, identity, goal_id)

    logger.info(
        "Materialization finished",
        extra={"user_id": uid, "period": result.period, "created_count": result.created_count},
    )
    return result


def month_marker(day: date) -> str:
    """Marker value for the month containing ``day`` ("YYYY-M")."""

    return f"{day.year}-{day.month}"


class RecurringProcessor:
    """Trigger policy: run automatically at most once per user and month.

    ``run_if_due`` is what login/page-load calls; ``import_now`` backs the
    explicit "Import Recurring Transactions" action and ignores the marker.
    """

    def __init__(self, ctx: AppContext, store: KeyValueStore):
        self.ctx = ctx
        self.store = store

    @staticmethod
    def marker_key(user_id: int) -> str:
        return f"{MARKER_KEY}:{user_id}"

    def last_processed(self, identity: IdentityProvider) -> Optional[str]:
        uid = require_user_id(identity)
        return self.store.get(self.marker_key(uid))

    def is_due(self, identity: IdentityProvider, *, today: Optional[date] = None) -> bool:
        today = today or date.today()
        return self.last_processed(identity) != month_marker(today)

    def run_if_due(
        self, identity: IdentityProvider, *, today: Optional[date] = None
    ) -> Optional[MaterializationResult]:
        """Materialize unless the marker says this month is done; None when skipped."""

        today = today or date.today()
        if not self.is_due(identity, today=today):
            logger.debug("Recurring already processed this month", extra={"marker": month_marker(today)})
            return None
        return self._run(identity, today)

    def import_now(
        self, identity: IdentityProvider, *, today: Optional[date] = None
    ) -> MaterializationResult:
        return self._run(identity, today or date.today())

    def reset(self, identity: IdentityProvider) -> None:
        uid = require_user_id(identity)
        self.store.remove(self.marker_key(uid))

    def _run(self, identity: IdentityProvider, today: date) -> MaterializationResult:
        result = materialize_month(self.ctx, identity, today=today)
        # Only a successful run advances the marker
        uid = require_user_id(identity)
        self.store.set(self.marker_key(uid), month_marker(today))
        return result
