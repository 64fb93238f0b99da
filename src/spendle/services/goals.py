"""Savings goals: auto-contributions, derived progress, completion and deletion."""

from __future__ import annotations

import calendar
import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from ..constants import MONTHLY, GoalStatus, TransactionKind, normalize_category
from ..context import AppContext
from ..domain.identity import IdentityProvider, require_user_id
from ..errors import NotFoundError, SpendleError, ValidationError
from ..logging_config import get_logger
from ..models.goal import SavingsGoal
from ..models.recurring import RecurringTemplate
from ..models.transaction import Expense, month_bounds, period_key

logger = get_logger("services.goals")

SUGGESTED_CONTRIBUTION_CAP = 1000.0
SUGGESTED_CONTRIBUTION_SHARE = 0.1


@dataclass
class GoalProgress:
    """Read model: a goal plus everything derived from its linked rows."""

    goal: SavingsGoal
    current_amount: float
    has_recurring: bool = False
    recurring_active: bool = False
    recurring_id: Optional[int] = None

    @property
    def remaining(self) -> float:
        return max(self.goal.target_amount - self.current_amount, 0.0)

    @property
    def progress_percent(self) -> float:
        if self.goal.target_amount <= 0:
            return 100.0
        return min(self.current_amount / self.goal.target_amount * 100.0, 100.0)

    def to_dict(self, *, today: Optional[date] = None) -> dict[str, Any]:
        estimate = estimated_completion(
            self.goal.target_amount,
            self.goal.monthly_contribution,
            self.current_amount,
            today=today,
        )
        return {
            "id": self.goal.id,
            "name": self.goal.name,
            "target_amount": self.goal.target_amount,
            "monthly_contribution": self.goal.monthly_contribution,
            "category": self.goal.category,
            "status": self.goal.status,
            "created_at": self.goal.created_at.isoformat() if self.goal.created_at else None,
            "current_amount": self.current_amount,
            "remaining": self.remaining,
            "progress_percent": round(self.progress_percent, 2),
            "has_recurring": self.has_recurring,
            "recurring_active": self.recurring_active,
            "recurring_id": self.recurring_id,
            "estimated_completion": estimate.strftime("%Y-%m") if estimate else None,
            "time_remaining": describe_time_remaining(
                self.goal.target_amount, self.goal.monthly_contribution, self.current_amount
            ),
        }


@dataclass
class ContributionResult:
    expense: Expense
    goal: SavingsGoal
    current_amount: float
    template: Optional[RecurringTemplate] = None
    recurring_ignored: bool = False

    @property
    def completed(self) -> bool:
        return self.goal.is_completed


# -- projections -------------------------------------------------------------


def months_to_target(target: float, monthly: float, current: float = 0.0) -> Optional[int]:
    """Whole months of ``monthly`` contributions needed to close the gap."""

    if monthly <= 0:
        return None
    remaining = target - current
    if remaining <= 0:
        return 0
    return math.ceil(remaining / monthly)


def _add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def estimated_completion(
    target: float, monthly: float, current: float = 0.0, *, today: Optional[date] = None
) -> Optional[date]:
    months = months_to_target(target, monthly, current)
    if months is None:
        return None
    return _add_months(today or date.today(), months)


def describe_time_remaining(target: float, monthly: float, current: float = 0.0) -> Optional[str]:
    """Render e.g. "2 years and 3 months"; None without a contribution."""

    months_needed = months_to_target(target, monthly, current)
    if months_needed is None:
        return None
    years, months = divmod(months_needed, 12)
    if years > 0:
        text = f"{years} year{'s' if years > 1 else ''}"
        if months > 0:
            text += f" and {months} month{'s' if months > 1 else ''}"
        return text
    return f"{months} month{'s' if months != 1 else ''}"


def suggest_contribution(target: float, current: float = 0.0) -> float:
    """Default contribution: 10% of what is left, capped at 1000."""

    remaining = max(target - current, 0.0)
    return min(SUGGESTED_CONTRIBUTION_CAP, remaining * SUGGESTED_CONTRIBUTION_SHARE)


# -- reads -------------------------------------------------------------------


def get_goal(ctx: AppContext, identity: IdentityProvider, goal_id: int) -> SavingsGoal:
    uid = require_user_id(identity)
    goal = ctx.goal_repo.get_by_id(goal_id, user_id=uid)
    if goal is None:
        raise NotFoundError("Savings goal", goal_id)
    return goal


def current_amount(ctx: AppContext, identity: IdentityProvider, goal_id: int) -> float:
    """Sum of linked expenses, recomputed on every call."""

    uid = require_user_id(identity)
    return ctx.expense_repo.total_for_goals([goal_id], user_id=uid)[goal_id]


def _progress_for(ctx: AppContext, goal: SavingsGoal, total: float, uid: int) -> GoalProgress:
    templates = ctx.template_repo.list_for_goal(goal.id, user_id=uid)  # type: ignore[arg-type]
    active = [t for t in templates if t.active]
    chosen = active[0] if active else (templates[0] if templates else None)
    return GoalProgress(
        goal=goal,
        current_amount=total,
        has_recurring=chosen is not None,
        recurring_active=bool(active),
        recurring_id=chosen.id if chosen else None,
    )


def list_goals(ctx: AppContext, identity: IdentityProvider) -> list[GoalProgress]:
    uid = require_user_id(identity)
    goals = ctx.goal_repo.list_for_user(user_id=uid)
    totals = ctx.expense_repo.total_for_goals([g.id for g in goals if g.id is not None], user_id=uid)
    return [_progress_for(ctx, goal, totals.get(goal.id, 0.0), uid) for goal in goals]  # type: ignore[arg-type]


def goal_progress(ctx: AppContext, identity: IdentityProvider, goal_id: int) -> GoalProgress:
    uid = require_user_id(identity)
    goal = get_goal(ctx, identity, goal_id)
    return _progress_for(ctx, goal, current_amount(ctx, identity, goal_id), uid)


# -- writes ------------------------------------------------------------------


def _validate_goal_fields(
    name: Any, target_amount: Any, monthly_contribution: Any, category: Any
) -> dict[str, Any]:
    errors: dict[str, list[str]] = {}
    clean: dict[str, Any] = {}

    clean["name"] = name.strip() if isinstance(name, str) else ""
    if not clean["name"]:
        errors.setdefault("name", []).append("Name is required.")

    for key, raw, allow_zero in (
        ("target_amount", target_amount, False),
        ("monthly_contribution", monthly_contribution, True),
    ):
        try:
            value = float(raw if raw is not None else 0.0)
        except (TypeError, ValueError):
            errors.setdefault(key, []).append("Enter a valid number.")
            continue
        if value < 0 or (value == 0 and not allow_zero):
            errors.setdefault(key, []).append("Must be greater than zero.")
        clean[key] = value

    clean["category"] = normalize_category(category)
    if clean["category"] is None:
        errors.setdefault("category", []).append(
            "Category must be one of: investment, debt, needs, leisure."
        )

    if errors:
        raise ValidationError(errors)
    if clean["monthly_contribution"] > clean["target_amount"]:
        clean["monthly_contribution"] = clean["target_amount"]
    return clean


def create_goal(
    ctx: AppContext,
    identity: IdentityProvider,
    *,
    name: str,
    target_amount: float,
    monthly_contribution: float = 0.0,
    category: str,
    auto_contribute: bool = False,
    today: Optional[date] = None,
) -> GoalProgress:
    """Persist a goal; optionally start its monthly auto-contribution right away."""

    uid = require_user_id(identity)
    clean = _validate_goal_fields(name, target_amount, monthly_contribution, category)
    goal = ctx.goal_repo.create(
        SavingsGoal(
            user_id=uid,
            name=clean["name"],
            target_amount=clean["target_amount"],
            monthly_contribution=clean["monthly_contribution"],
            category=clean["category"],
            status=GoalStatus.ACTIVE.value,
        ),
        user_id=uid,
    )
    logger.info("Savings goal created", extra={"goal_id": goal.id, "user_id": uid})

    if auto_contribute and goal.monthly_contribution > 0:
        _start_auto_contribution(ctx, goal, goal.monthly_contribution, uid, today or date.today())
        evaluate_completion(ctx, identity, goal.id)  # type: ignore[arg-type]

    return goal_progress(ctx, identity, goal.id)  # type: ignore[arg-type]


def _contribution_expense(
    goal: SavingsGoal,
    amount: float,
    month_start: date,
    uid: int,
    template: Optional[RecurringTemplate] = None,
) -> Expense:
    return Expense(
        user_id=uid,
        name=f"Contribution to {goal.name}",
        amount=amount,
        category=goal.category,
        date=month_start,
        goal_id=goal.id,
        is_recurring=template is not None,
        recurring_id=template.id if template else None,
        recurring_period=period_key(month_start) if template else None,
    )


def _start_auto_contribution(
    ctx: AppContext, goal: SavingsGoal, amount: float, uid: int, today: date
) -> tuple[RecurringTemplate, Expense]:
    """Create the goal's template and this month's first contribution.

    The two writes are not atomic; when the expense fails the template is
    removed again so no orphan is left behind.
    """

    month_start, _ = month_bounds(today)
    template = ctx.template_repo.create(
        RecurringTemplate(
            user_id=uid,
            name=f"Monthly contribution to {goal.name}",
            amount=amount,
            type=TransactionKind.EXPENSE.value,
            category=goal.category,
            active=True,
            frequency=MONTHLY,
            goal_id=goal.id,
        ),
        user_id=uid,
    )
    try:
        expense = ctx.expense_repo.create(
            _contribution_expense(goal, amount, month_start, uid, template), user_id=uid
        )
    except SpendleError:
        logger.error(
            "First contribution failed; removing auto-contribution template",
            extra={"goal_id": goal.id, "template_id": template.id, "user_id": uid},
            exc_info=True,
        )
        ctx.template_repo.delete(template.id, user_id=uid)  # type: ignore[arg-type]
        raise
    logger.info(
        "Auto-contribution started",
        extra={"goal_id": goal.id, "template_id": template.id, "user_id": uid},
    )
    return template, expense


def add_contribution(
    ctx: AppContext,
    identity: IdentityProvider,
    goal_id: int,
    amount: float,
    *,
    recurring: bool = False,
    today: Optional[date] = None,
) -> ContributionResult:
    """Record a contribution and settle the goal's status.

    A recurring request for a goal that already has an active template, or
    that is already completed, does not start a new one; the contribution is
    booked once instead and the result says so via ``recurring_ignored``.
    """

    uid = require_user_id(identity)
    goal = get_goal(ctx, identity, goal_id)
    try:
        amount = float(amount)
    except (TypeError, ValueError):
        raise ValidationError({"amount": ["Enter a valid number for the amount."]}) from None
    if amount <= 0:
        raise ValidationError({"amount": ["Amount must be greater than zero."]})

    today = today or date.today()
    month_start, _ = month_bounds(today)
    template: Optional[RecurringTemplate] = None
    recurring_ignored = False

    if recurring and goal.is_completed:
        recurring_ignored = True
        logger.info(
            "Goal already completed; booking one-time contribution",
            extra={"goal_id": goal_id, "user_id": uid},
        )
    elif recurring:
        existing = ctx.template_repo.list_for_goal(goal_id, user_id=uid, active=True)
        if existing:
            recurring_ignored = True
            logger.info(
                "Goal already has an active auto-contribution; booking one-time contribution",
                extra={"goal_id": goal_id, "template_id": existing[0].id, "user_id": uid},
            )
        else:
            template, expense = _start_auto_contribution(ctx, goal, amount, uid, today)

    if template is None:
        expense = ctx.expense_repo.create(
            _contribution_expense(goal, amount, month_start, uid), user_id=uid
        )

    goal, total = evaluate_completion(ctx, identity, goal_id)
    return ContributionResult(
        expense=expense,
        goal=goal,
        current_amount=total,
        template=template,
        recurring_ignored=recurring_ignored,
    )


def evaluate_completion(
    ctx: AppContext, identity: IdentityProvider, goal_id: int
) -> tuple[SavingsGoal, float]:
    """Mark the goal completed once linked expenses reach the target.

    Completion deactivates (never deletes) every active template of the goal.
    """

    uid = require_user_id(identity)
    goal = get_goal(ctx, identity, goal_id)
    total = current_amount(ctx, identity, goal_id)
    if total < goal.target_amount:
        return goal, total
    if goal.status == GoalStatus.ACTIVE.value:
        goal = ctx.goal_repo.update(goal_id, {"status": GoalStatus.COMPLETED.value}, user_id=uid) or goal
        logger.info("Savings goal reached", extra={"goal_id": goal_id, "user_id": uid, "total": total})
    # Re-checked on every call: a template can be re-enabled after completion
    paused = []
    for template in ctx.template_repo.list_for_goal(goal_id, user_id=uid, active=True):
        ctx.template_repo.update(template.id, {"active": False}, user_id=uid)  # type: ignore[arg-type]
        paused.append(template.id)
    if paused:
        logger.info(
            "Paused auto-contributions of a funded goal",
            extra={"goal_id": goal_id, "user_id": uid, "paused_templates": paused},
        )
    return goal, total


def toggle_auto_contribution(
    ctx: AppContext, identity: IdentityProvider, goal_id: int
) -> RecurringTemplate:
    """Pause an active auto-contribution or resume a paused one."""

    uid = require_user_id(identity)
    goal = get_goal(ctx, identity, goal_id)
    templates = ctx.template_repo.list_for_goal(goal_id, user_id=uid)
    if not templates:
        raise NotFoundError("Auto-contribution for goal", goal_id)
    active = [t for t in templates if t.active]
    if active:
        for template in active:
            ctx.template_repo.update(template.id, {"active": False}, user_id=uid)  # type: ignore[arg-type]
        target = active[0]
        target.active = False
        return target
    if goal.is_completed:
        raise ValidationError({"goal": ["Goal is already completed."]})
    target = templates[0]
    return ctx.template_repo.update(target.id, {"active": True}, user_id=uid) or target  # type: ignore[arg-type]


def delete_goal(
    ctx: AppContext,
    identity: IdentityProvider,
    goal_id: int,
    *,
    delete_recurring: bool = True,
    delete_expenses: bool = True,
) -> dict[str, int]:
    """Delete a goal, deleting or unlinking its templates and expenses.

    Expenses that point at one of the goal's templates lose that reference
    before the template is touched, so nothing is left dangling.
    """

    uid = require_user_id(identity)
    get_goal(ctx, identity, goal_id)
    summary = {"templates": 0, "expenses": 0, "detached": 0}

    templates = ctx.template_repo.list_for_goal(goal_id, user_id=uid)
    if templates:
        template_ids = [t.id for t in templates if t.id is not None]
        summary["detached"] = ctx.expense_repo.clear_recurring_reference(template_ids, user_id=uid)
        summary["detached"] += ctx.income_repo.clear_recurring_reference(template_ids, user_id=uid)
        for template_id in template_ids:
            if delete_recurring:
                ctx.template_repo.delete(template_id, user_id=uid)
            else:
                ctx.template_repo.update(template_id, {"goal_id": None}, user_id=uid)
        summary["templates"] = len(template_ids)

    if delete_expenses:
        summary["expenses"] = ctx.expense_repo.delete_for_goal(goal_id, user_id=uid)
    else:
        summary["expenses"] = ctx.expense_repo.unlink_goal(goal_id, user_id=uid)

    ctx.goal_repo.delete(goal_id, user_id=uid)
    logger.info(
        "Savings goal deleted",
        extra={
            "goal_id": goal_id,
            "user_id": uid,
            "delete_recurring": delete_recurring,
            "delete_expenses": delete_expenses,
            **summary,
        },
    )
    return summary
