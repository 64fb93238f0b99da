"""Hand-entered income and expenses."""

from __future__ import annotations

from datetime import date

import pytest

from spendle.domain.identity import ANONYMOUS
from spendle.errors import AuthError, NotFoundError, ValidationError
from spendle.services import ledger_service


def test_add_income_and_expense(ctx, identity):
    income = ledger_service.add_income(ctx, identity, name="Salary", amount="3200", when="2024-03-01")
    expense = ledger_service.add_expense(
        ctx, identity, name="Groceries", amount=85.2, when=date(2024, 3, 4), category="Needs"
    )

    assert income.kind.value == "income"
    assert income.amount == 3200.0
    assert income.is_recurring is False
    assert expense.category == "needs"
    assert expense.date == date(2024, 3, 4)


@pytest.mark.parametrize(
    "kwargs, field",
    [
        ({"name": "", "amount": 10, "when": "2024-03-01", "category": "needs"}, "name"),
        ({"name": "X", "amount": 0, "when": "2024-03-01", "category": "needs"}, "amount"),
        ({"name": "X", "amount": 10, "when": "not-a-date", "category": "needs"}, "date"),
        ({"name": "X", "amount": 10, "when": "2024-03-01", "category": None}, "category"),
    ],
)
def test_add_expense_validation(ctx, identity, kwargs, field):
    with pytest.raises(ValidationError) as excinfo:
        ledger_service.add_expense(ctx, identity, **kwargs)
    assert field in excinfo.value.errors


def test_expense_goal_must_belong_to_user(ctx, identity, other_identity, goal_factory):
    theirs = goal_factory(owner=other_identity)

    with pytest.raises(NotFoundError):
        ledger_service.add_expense(
            ctx, identity, name="X", amount=10, when="2024-03-01", category="needs", goal_id=theirs.id
        )


def test_goal_linked_expense_can_complete_goal(ctx, identity, goal_factory):
    goal = goal_factory(target_amount=100, monthly_contribution=0)

    ledger_service.add_expense(
        ctx, identity, name="Deposit", amount=100, when="2024-03-02", category="investment", goal_id=goal.id
    )

    assert ctx.goal_repo.get_by_id(goal.id, user_id=identity.user_id).status == "completed"


def test_list_month_returns_only_that_month(ctx, identity, income_factory, expense_factory):
    income_factory(when=date(2024, 3, 1))
    expense_factory(name="Early", when=date(2024, 3, 2))
    expense_factory(name="Late", when=date(2024, 3, 31))
    expense_factory(name="April", when=date(2024, 4, 1))
    expense_factory(name="February", when=date(2024, 2, 29))

    listing = ledger_service.list_month(ctx, identity, date(2024, 3, 17))

    assert listing.month == date(2024, 3, 1)
    assert [e.name for e in listing.expenses] == ["Late", "Early"]
    assert len(listing.incomes) == 1
    assert listing.total_expenses == pytest.approx(100.0)


def test_update_and_delete_entry(ctx, identity, expense_factory):
    expense = expense_factory(name="Coffee", amount=4.5)

    updated = ledger_service.update_entry(ctx, identity, "expense", expense.id, amount=5.0, category="leisure")
    assert updated.amount == 5.0
    assert updated.category == "leisure"

    ledger_service.delete_entry(ctx, identity, "expense", expense.id)
    with pytest.raises(NotFoundError):
        ledger_service.get_entry(ctx, identity, "expense", expense.id)


def test_income_has_no_editable_category(ctx, identity, income_factory):
    income = income_factory()

    with pytest.raises(ValidationError):
        ledger_service.update_entry(ctx, identity, "income", income.id, category="needs")


def test_entries_are_user_scoped(ctx, identity, other_identity, expense_factory):
    theirs = expense_factory(user_id=other_identity.user_id)

    with pytest.raises(NotFoundError):
        ledger_service.update_entry(ctx, identity, "expense", theirs.id, amount=1)
    with pytest.raises(NotFoundError):
        ledger_service.delete_entry(ctx, identity, "expense", theirs.id)


def test_unknown_kind_and_anonymous_caller(ctx, identity):
    with pytest.raises(ValidationError):
        ledger_service.get_entry(ctx, identity, "transfer", 1)
    with pytest.raises(AuthError):
        ledger_service.list_month(ctx, ANONYMOUS, date(2024, 3, 1))
