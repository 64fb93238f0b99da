"""Savings goal routes."""

from __future__ import annotations

from flask import jsonify, request

from ...extensions import get_context
from ...services import goals as goal_service
from ...services import ledger_service, recurring as recurring_service
from ..common import current_identity, parse_bool, request_data
from . import bp


@bp.get("/")
def list_goals():
    goals = goal_service.list_goals(get_context(), current_identity())
    return jsonify({"goals": [progress.to_dict() for progress in goals]})


@bp.get("/<int:goal_id>")
def show_goal(goal_id: int):
    progress = goal_service.goal_progress(get_context(), current_identity(), goal_id)
    payload = progress.to_dict()
    payload["suggested_contribution"] = goal_service.suggest_contribution(
        progress.goal.target_amount, progress.current_amount
    )
    return jsonify(payload)


@bp.post("/")
def create_goal():
    data = request_data()
    progress = goal_service.create_goal(
        get_context(),
        current_identity(),
        name=data.get("name"),  # type: ignore[arg-type]
        target_amount=data.get("target_amount"),  # type: ignore[arg-type]
        monthly_contribution=data.get("monthly_contribution") or 0.0,  # type: ignore[arg-type]
        category=data.get("category"),  # type: ignore[arg-type]
        auto_contribute=parse_bool(data.get("auto_contribute"), field="auto_contribute"),
    )
    return jsonify(progress.to_dict()), 201


@bp.post("/<int:goal_id>/contributions")
def add_contribution(goal_id: int):
    data = request_data()
    result = goal_service.add_contribution(
        get_context(),
        current_identity(),
        goal_id,
        data.get("amount"),  # type: ignore[arg-type]
        recurring=parse_bool(data.get("recurring"), field="recurring"),
    )
    return (
        jsonify(
            {
                "expense": ledger_service.entry_to_dict(result.expense),
                "template": recurring_service.template_to_dict(result.template)
                if result.template
                else None,
                "current_amount": result.current_amount,
                "status": result.goal.status,
                "completed": result.completed,
                "recurring_ignored": result.recurring_ignored,
            }
        ),
        201,
    )


@bp.post("/<int:goal_id>/toggle")
def toggle_auto_contribution(goal_id: int):
    template = goal_service.toggle_auto_contribution(get_context(), current_identity(), goal_id)
    return jsonify(recurring_service.template_to_dict(template))


@bp.delete("/<int:goal_id>")
def delete_goal(goal_id: int):
    summary = goal_service.delete_goal(
        get_context(),
        current_identity(),
        goal_id,
        delete_recurring=parse_bool(
            request.args.get("delete_recurring"), field="delete_recurring", default=True
        ),
        delete_expenses=parse_bool(
            request.args.get("delete_expenses"), field="delete_expenses", default=True
        ),
    )
    return jsonify({"id": goal_id, **summary})
