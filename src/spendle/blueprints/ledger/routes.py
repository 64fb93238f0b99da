"""Ledger routes."""

from __future__ import annotations

from flask import jsonify, request

from ...constants import TransactionKind, normalize_kind
from ...errors import NotFoundError
from ...extensions import get_context
from ...services import ledger_service, reports
from ..common import current_identity, parse_int, parse_month, request_data
from . import bp

_UPDATABLE = ("name", "amount", "date", "category", "goal_id")


def _kind_or_404(kind: str) -> TransactionKind:
    normalized = normalize_kind(kind)
    if normalized is None:
        raise NotFoundError("Ledger kind", kind)
    return TransactionKind(normalized)


@bp.get("/")
def list_transactions():
    """Income and expenses of one month (``?month=YYYY-MM``)."""

    month = parse_month(request.args.get("month"))
    listing = ledger_service.list_month(get_context(), current_identity(), month)
    return jsonify(
        {
            "month": listing.month.strftime("%Y-%m"),
            "incomes": [ledger_service.entry_to_dict(row) for row in listing.incomes],
            "expenses": [ledger_service.entry_to_dict(row) for row in listing.expenses],
            "total_income": listing.total_income,
            "total_expenses": listing.total_expenses,
        }
    )


@bp.post("/income")
def create_income():
    data = request_data()
    income = ledger_service.add_income(
        get_context(),
        current_identity(),
        name=data.get("name"),  # type: ignore[arg-type]
        amount=data.get("amount"),  # type: ignore[arg-type]
        when=data.get("date"),  # type: ignore[arg-type]
    )
    return jsonify(ledger_service.entry_to_dict(income)), 201


@bp.post("/expenses")
def create_expense():
    data = request_data()
    expense = ledger_service.add_expense(
        get_context(),
        current_identity(),
        name=data.get("name"),  # type: ignore[arg-type]
        amount=data.get("amount"),  # type: ignore[arg-type]
        when=data.get("date"),  # type: ignore[arg-type]
        category=data.get("category"),  # type: ignore[arg-type]
        goal_id=parse_int(data.get("goal_id"), field="goal_id"),
    )
    return jsonify(ledger_service.entry_to_dict(expense)), 201


@bp.patch("/<kind>/<int:entry_id>")
def update_transaction(kind: str, entry_id: int):
    txn_kind = _kind_or_404(kind)
    data = request_data()
    changes = {key: data[key] for key in _UPDATABLE if key in data}
    if "goal_id" in changes:
        changes["goal_id"] = parse_int(changes["goal_id"], field="goal_id")
    entry = ledger_service.update_entry(
        get_context(), current_identity(), txn_kind, entry_id, **changes
    )
    return jsonify(ledger_service.entry_to_dict(entry))


@bp.delete("/<kind>/<int:entry_id>")
def delete_transaction(kind: str, entry_id: int):
    txn_kind = _kind_or_404(kind)
    ledger_service.delete_entry(get_context(), current_identity(), txn_kind, entry_id)
    return "", 204


@bp.get("/summary")
def monthly_summary():
    month = parse_month(request.args.get("month"))
    summary = reports.monthly_summary(get_context(), current_identity(), month)
    return jsonify(summary.to_dict())
