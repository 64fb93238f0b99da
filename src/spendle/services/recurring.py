"""Recurring template CRUD, scoped to the signed-in user."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..constants import MONTHLY, GoalStatus, TransactionKind, normalize_category, normalize_kind
from ..context import AppContext
from ..domain.identity import IdentityProvider, require_user_id
from ..errors import NotFoundError, ValidationError
from ..logging_config import get_logger
from ..models.recurring import RecurringTemplate

logger = get_logger("services.recurring")

_EDITABLE_FIELDS = {"name", "amount", "type", "category", "active", "goal_id"}


@dataclass
class TemplateDraft:
    """Input for a new recurring template."""

    name: str
    amount: float
    type: str
    category: Optional[str] = None
    active: bool = True
    goal_id: Optional[int] = None


def validate_template_fields(
    *, name: Any, amount: Any, type: Any, category: Any
) -> tuple[dict[str, Any], dict[str, list[str]]]:
    """Normalize template fields; return (clean values, errors by field)."""

    errors: dict[str, list[str]] = {}
    clean: dict[str, Any] = {}

    name_str = (name or "").strip() if isinstance(name, str) else ""
    if not name_str:
        errors.setdefault("name", []).append("Name is required.")
    elif len(name_str) > 120:
        errors.setdefault("name", []).append("Name must be 120 characters or fewer.")
    clean["name"] = name_str

    try:
        amount_val = float(amount)
    except (TypeError, ValueError):
        errors.setdefault("amount", []).append("Enter a valid number for the amount.")
        amount_val = None
    else:
        if amount_val <= 0:
            errors.setdefault("amount", []).append("Amount must be greater than zero.")
    clean["amount"] = amount_val

    kind = normalize_kind(type)
    if kind is None:
        errors.setdefault("type", []).append("Type must be 'income' or 'expense'.")
    clean["type"] = kind

    if kind == TransactionKind.EXPENSE.value:
        cat = normalize_category(category)
        if cat is None:
            errors.setdefault("category", []).append(
                "Expense templates need one of: investment, debt, needs, leisure."
            )
        clean["category"] = cat
    elif kind == TransactionKind.INCOME.value:
        if category not in (None, ""):
            errors.setdefault("category", []).append("Income templates cannot have a category.")
        clean["category"] = None

    return clean, errors


def _require_goal(ctx: AppContext, goal_id: Optional[int], user_id: int) -> None:
    if goal_id is not None and ctx.goal_repo.get_by_id(goal_id, user_id=user_id) is None:
        raise NotFoundError("Savings goal", goal_id)


def _reject_completed_goal(ctx: AppContext, goal_id: Optional[int], user_id: int) -> None:
    """Active templates may not feed a goal that is already completed."""

    if goal_id is None:
        return
    goal = ctx.goal_repo.get_by_id(goal_id, user_id=user_id)
    if goal is not None and goal.status == GoalStatus.COMPLETED.value:
        raise ValidationError({"active": ["Goal is already completed."]})


def list_templates(
    ctx: AppContext, identity: IdentityProvider, *, active: Optional[bool] = None
) -> list[RecurringTemplate]:
    """Return the user's templates, newest first."""

    uid = require_user_id(identity)
    return ctx.template_repo.list_for_user(user_id=uid, active=active)


def get_template(ctx: AppContext, identity: IdentityProvider, template_id: int) -> RecurringTemplate:
    uid = require_user_id(identity)
    template = ctx.template_repo.get_by_id(template_id, user_id=uid)
    if template is None:
        raise NotFoundError("Recurring template", template_id)
    return template


def create_template(
    ctx: AppContext, identity: IdentityProvider, draft: TemplateDraft
) -> RecurringTemplate:
    """Validate and persist a new template."""

    uid = require_user_id(identity)
    clean, errors = validate_template_fields(
        name=draft.name, amount=draft.amount, type=draft.type, category=draft.category
    )
    if errors:
        raise ValidationError(errors)
    _require_goal(ctx, draft.goal_id, uid)
    if draft.active:
        _reject_completed_goal(ctx, draft.goal_id, uid)

    template = ctx.template_repo.create(
        RecurringTemplate(
            user_id=uid,
            name=clean["name"],
            amount=clean["amount"],
            type=clean["type"],
            category=clean["category"],
            active=bool(draft.active),
            frequency=MONTHLY,
            goal_id=draft.goal_id,
        ),
        user_id=uid,
    )
    logger.info(
        "Recurring template created",
        extra={"template_id": template.id, "user_id": uid, "type": template.type},
    )
    return template


def update_template(
    ctx: AppContext, identity: IdentityProvider, template_id: int, **changes: Any
) -> RecurringTemplate:
    """Merge ``changes`` into an existing template and re-validate the result."""

    uid = require_user_id(identity)
    unknown = set(changes) - _EDITABLE_FIELDS
    if unknown:
        raise ValidationError({field: ["Field cannot be edited."] for field in sorted(unknown)})

    existing = ctx.template_repo.get_by_id(template_id, user_id=uid)
    if existing is None:
        raise NotFoundError("Recurring template", template_id)

    merged = existing.model_dump()
    merged.update(changes)
    # Switching to income drops a stale category unless the caller sent one
    if normalize_kind(merged["type"]) == TransactionKind.INCOME.value and "category" not in changes:
        merged["category"] = None

    clean, errors = validate_template_fields(
        name=merged["name"], amount=merged["amount"], type=merged["type"], category=merged["category"]
    )
    if errors:
        raise ValidationError(errors)
    if "goal_id" in changes:
        _require_goal(ctx, changes["goal_id"], uid)

    update = dict(clean)
    if "active" in changes:
        update["active"] = bool(changes["active"])
    if "goal_id" in changes:
        update["goal_id"] = changes["goal_id"]
    if update.get("active", existing.active):
        _reject_completed_goal(ctx, update.get("goal_id", existing.goal_id), uid)

    updated = ctx.template_repo.update(template_id, update, user_id=uid)
    if updated is None:
        raise NotFoundError("Recurring template", template_id)
    return updated


def toggle_active(
    ctx: AppContext, identity: IdentityProvider, template_id: int, active: bool
) -> RecurringTemplate:
    """Flip the active flag only."""

    uid = require_user_id(identity)
    if active:
        _reject_completed_goal(ctx, get_template(ctx, identity, template_id).goal_id, uid)
    updated = ctx.template_repo.update(template_id, {"active": bool(active)}, user_id=uid)
    if updated is None:
        raise NotFoundError("Recurring template", template_id)
    logger.info(
        "Recurring template %s", "resumed" if active else "paused",
        extra={"template_id": template_id, "user_id": uid},
    )
    return updated


def delete_template(ctx: AppContext, identity: IdentityProvider, template_id: int) -> bool:
    """Remove a template, detaching materialized rows first.

    A template still feeding a goal that has contribution history is only
    deactivated. Returns True when the row was actually removed.
    """

    uid = require_user_id(identity)
    template = ctx.template_repo.get_by_id(template_id, user_id=uid)
    if template is None:
        raise NotFoundError("Recurring template", template_id)

    if template.goal_id is not None and ctx.expense_repo.list_for_goal(template.goal_id, user_id=uid):
        ctx.template_repo.update(template_id, {"active": False}, user_id=uid)
        logger.info(
            "Goal-linked template deactivated instead of deleted",
            extra={"template_id": template_id, "goal_id": template.goal_id, "user_id": uid},
        )
        return False

    ctx.income_repo.clear_recurring_reference([template_id], user_id=uid)
    ctx.expense_repo.clear_recurring_reference([template_id], user_id=uid)
    removed = ctx.template_repo.delete(template_id, user_id=uid)
    logger.info("Recurring template deleted", extra={"template_id": template_id, "user_id": uid})
    return removed


def template_to_dict(template: RecurringTemplate) -> dict[str, Any]:
    data = template.model_dump()
    data["created_at"] = template.created_at.isoformat() if template.created_at else None
    return data
