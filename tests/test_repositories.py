"""Unit tests for repository implementations."""

from __future__ import annotations

from datetime import date

import pytest

from spendle.errors import ConflictError, StorageError
from spendle.infra.repositories import (
    SQLModelExpenseRepository,
    SQLModelIncomeRepository,
    SQLModelRecurringTemplateRepository,
    SQLModelSavingsGoalRepository,
    SQLModelSettingsRepository,
)
from spendle.models import Expense, Income, RecurringTemplate, SavingsGoal, User


def test_template_repository_crud(session_factory):
    repo = SQLModelRecurringTemplateRepository(session_factory)
    uid = session_factory.user.id

    created = repo.create(
        RecurringTemplate(user_id=uid, name="Rent", amount=900.0, type="expense", category="needs"),
        user_id=uid,
    )
    assert created.id is not None
    assert repo.get_by_id(created.id, user_id=uid).name == "Rent"
    assert repo.get_by_id(created.id, user_id=uid + 1) is None

    updated = repo.update(created.id, {"amount": 950.0, "user_id": 999}, user_id=uid)
    assert updated.amount == 950.0
    assert updated.user_id == uid

    assert repo.update(12345, {"amount": 1.0}, user_id=uid) is None
    assert repo.delete(created.id, user_id=uid) is True
    assert repo.delete(created.id, user_id=uid) is False


def test_template_repository_filters_active(session_factory):
    repo = SQLModelRecurringTemplateRepository(session_factory)
    uid = session_factory.user.id
    repo.create(RecurringTemplate(user_id=uid, name="On", amount=1, type="income"), user_id=uid)
    repo.create(RecurringTemplate(user_id=uid, name="Off", amount=1, type="income", active=False), user_id=uid)

    assert [t.name for t in repo.list_for_user(user_id=uid, active=True)] == ["On"]
    assert [t.name for t in repo.list_for_user(user_id=uid, active=False)] == ["Off"]
    assert len(repo.list_for_user(user_id=uid)) == 2


def test_transaction_repository_ranges_and_bulk_insert(session_factory):
    incomes = SQLModelIncomeRepository(session_factory)
    uid = session_factory.user.id

    rows = incomes.create_many(
        [
            Income(user_id=uid, name="Jan", amount=1, date=date(2024, 1, 31)),
            Income(user_id=uid, name="Feb", amount=2, date=date(2024, 2, 1)),
            Income(user_id=uid, name="Mar", amount=3, date=date(2024, 3, 1)),
        ],
        user_id=uid,
    )

    assert all(r.id is not None for r in rows)
    in_feb = incomes.filter_by_date_range(date(2024, 2, 1), date(2024, 3, 1), user_id=uid)
    assert [r.name for r in in_feb] == ["Feb"]
    assert incomes.create_many([], user_id=uid) == []


def test_recurring_ids_in_range_only_counts_recurring_rows(session_factory):
    templates = SQLModelRecurringTemplateRepository(session_factory)
    expenses = SQLModelExpenseRepository(session_factory)
    uid = session_factory.user.id
    template = templates.create(
        RecurringTemplate(user_id=uid, name="Rent", amount=5, type="expense", category="needs"),
        user_id=uid,
    )
    expenses.create(
        Expense(
            user_id=uid,
            name="Rent",
            amount=5,
            category="needs",
            date=date(2024, 3, 1),
            is_recurring=True,
            recurring_id=template.id,
            recurring_period="2024-03",
        ),
        user_id=uid,
    )
    expenses.create(
        Expense(user_id=uid, name="Coffee", amount=3, category="leisure", date=date(2024, 3, 2)),
        user_id=uid,
    )

    assert expenses.recurring_ids_in_range(date(2024, 3, 1), date(2024, 4, 1), user_id=uid) == {template.id}
    assert expenses.recurring_ids_in_range(date(2024, 4, 1), date(2024, 5, 1), user_id=uid) == set()

    assert expenses.clear_recurring_reference([template.id], user_id=uid) == 1
    assert expenses.recurring_ids_in_range(date(2024, 3, 1), date(2024, 4, 1), user_id=uid) == set()


def test_expense_goal_helpers(session_factory):
    goals = SQLModelSavingsGoalRepository(session_factory)
    expenses = SQLModelExpenseRepository(session_factory)
    uid = session_factory.user.id
    goal = goals.create(
        SavingsGoal(user_id=uid, name="Fund", target_amount=100, category="investment"), user_id=uid
    )
    empty = goals.create(
        SavingsGoal(user_id=uid, name="Empty", target_amount=100, category="investment"), user_id=uid
    )
    for amount in (10.0, 15.5):
        expenses.create(
            Expense(user_id=uid, name="C", amount=amount, category="investment", date=date(2024, 3, 1), goal_id=goal.id),
            user_id=uid,
        )

    assert expenses.total_for_goals([goal.id, empty.id], user_id=uid) == {goal.id: 25.5, empty.id: 0.0}
    assert expenses.unlink_goal(goal.id, user_id=uid) == 2
    assert expenses.list_for_goal(goal.id, user_id=uid) == []


def test_settings_repository_round_trip(session_factory):
    repo = SQLModelSettingsRepository(session_factory)

    assert repo.get("missing") is None
    repo.set("last_processed_recurring:1", "2024-3")
    repo.set("last_processed_recurring:1", "2024-4", description="recurring marker")

    assert repo.get("last_processed_recurring:1") == "2024-4"
    assert repo.get_setting("last_processed_recurring:1").description == "recurring marker"
    repo.remove("last_processed_recurring:1")
    assert repo.get("last_processed_recurring:1") is None


def test_session_scope_translates_integrity_errors(session_factory):
    with pytest.raises(ConflictError):
        with session_factory() as session:
            session.add(User(username="tester", password_hash="x"))
            session.commit()


def test_session_scope_reports_foreign_key_failures_as_storage_errors(session_factory):
    uid = session_factory.user.id

    with pytest.raises(StorageError) as excinfo:
        with session_factory() as session:
            session.add(
                Expense(user_id=uid, name="Orphan", amount=5.0, category="investment", date=date(2024, 3, 1), goal_id=9999)
            )
            session.commit()

    assert not isinstance(excinfo.value, ConflictError)
    assert "FOREIGN KEY" in excinfo.value.message
