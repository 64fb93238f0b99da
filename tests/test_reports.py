"""Monthly summary and analytics series."""

from __future__ import annotations

from datetime import date

import pytest

from spendle.errors import ValidationError
from spendle.services import reports


def test_monthly_summary_groups_by_category(ctx, identity, income_factory, expense_factory):
    income_factory(amount=3000.0, when=date(2024, 3, 1))
    expense_factory(amount=900.0, category="needs", when=date(2024, 3, 1))
    expense_factory(amount=150.0, category="leisure", when=date(2024, 3, 12))
    expense_factory(amount=40.0, category="leisure", when=date(2024, 3, 20))
    expense_factory(amount=999.0, category="needs", when=date(2024, 4, 1))

    summary = reports.monthly_summary(ctx, identity, date(2024, 3, 5))

    assert summary.month == "2024-03"
    assert summary.total_income == 3000.0
    assert summary.total_expenses == pytest.approx(1090.0)
    assert summary.remaining == pytest.approx(1910.0)
    assert summary.by_category == {
        "investment": 0.0,
        "debt": 0.0,
        "needs": 900.0,
        "leisure": pytest.approx(190.0),
    }


def test_monthly_series_covers_window_oldest_first(ctx, identity, income_factory, expense_factory):
    income_factory(amount=2000.0, when=date(2023, 12, 1))
    income_factory(amount=2100.0, when=date(2024, 2, 1))
    expense_factory(amount=300.0, category="debt", when=date(2024, 1, 15))
    expense_factory(amount=75.0, category="investment", when=date(2024, 2, 28))
    expense_factory(amount=5.0, category="needs", when=date(2023, 11, 30))

    series = reports.monthly_series(ctx, identity, end_month=date(2024, 2, 10), months=3)

    assert [p.label for p in series] == ["2023-12", "2024-01", "2024-02"]
    assert [p.salary for p in series] == [2000.0, 0.0, 2100.0]
    assert series[1].by_category["debt"] == 300.0
    assert series[2].to_dict() == {
        "label": "2024-02",
        "salary": 2100.0,
        "investment": 75.0,
        "debt": 0.0,
        "needs": 0.0,
        "leisure": 0.0,
    }


def test_yearly_series(ctx, identity, income_factory, expense_factory):
    income_factory(amount=1000.0, when=date(2022, 6, 1))
    income_factory(amount=500.0, when=date(2024, 1, 1))
    expense_factory(amount=20.0, category="leisure", when=date(2023, 7, 4))

    series = reports.yearly_series(ctx, identity, end_year=2024, years=3)

    assert [p.label for p in series] == ["2022", "2023", "2024"]
    assert [p.salary for p in series] == [1000.0, 0.0, 500.0]
    assert series[1].by_category["leisure"] == 20.0


def test_series_window_is_validated(ctx, identity):
    with pytest.raises(ValidationError):
        reports.monthly_series(ctx, identity, end_month=date(2024, 1, 1), months=0)
    with pytest.raises(ValidationError):
        reports.yearly_series(ctx, identity, end_year=2024, years=500)
