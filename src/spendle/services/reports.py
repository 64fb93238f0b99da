"""Reporting utilities for Spendle.

Aggregations are computed in Python over the rows of the requested range;
analytics windows are small (a year of months, a handful of years).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from ..constants import CATEGORIES
from ..context import AppContext
from ..domain.identity import IdentityProvider, require_user_id
from ..errors import ValidationError
from ..models.transaction import Expense, Income, month_bounds, period_key

DEFAULT_MONTHS = 12
DEFAULT_YEARS = 5
MAX_POINTS = 120


def _empty_categories() -> dict[str, float]:
    return {category: 0.0 for category in CATEGORIES}


@dataclass
class MonthlySummary:
    month: str
    total_income: float = 0.0
    total_expenses: float = 0.0
    by_category: dict[str, float] = field(default_factory=_empty_categories)

    @property
    def remaining(self) -> float:
        return self.total_income - self.total_expenses

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "total_income": round(self.total_income, 2),
            "total_expenses": round(self.total_expenses, 2),
            "remaining": round(self.remaining, 2),
            "by_category": {k: round(v, 2) for k, v in self.by_category.items()},
        }


@dataclass
class SeriesPoint:
    """One bar of the analytics chart: category spend plus salary."""

    label: str
    salary: float = 0.0
    by_category: dict[str, float] = field(default_factory=_empty_categories)

    def to_dict(self) -> dict:
        data = {"label": self.label, "salary": round(self.salary, 2)}
        data.update({k: round(v, 2) for k, v in self.by_category.items()})
        return data


def _shift_month(day: date, months: int) -> date:
    index = day.year * 12 + day.month - 1 + months
    return date(index // 12, index % 12 + 1, 1)


def _check_window(value: int, name: str) -> int:
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise ValidationError({name: ["Enter a whole number."]}) from None
    if not 1 <= value <= MAX_POINTS:
        raise ValidationError({name: [f"Must be between 1 and {MAX_POINTS}."]})
    return value


def _rows(ctx: AppContext, uid: int, start: date, end: date) -> tuple[list[Income], list[Expense]]:
    return (
        ctx.income_repo.filter_by_date_range(start, end, user_id=uid),
        ctx.expense_repo.filter_by_date_range(start, end, user_id=uid),
    )


def _accumulate(
    points: dict[str, SeriesPoint],
    incomes: Iterable[Income],
    expenses: Iterable[Expense],
    key,
) -> None:
    for income in incomes:
        point = points.get(key(income.date))
        if point is not None:
            point.salary += income.amount
    for expense in expenses:
        point = points.get(key(expense.date))
        if point is not None and expense.category in point.by_category:
            point.by_category[expense.category] += expense.amount


def monthly_summary(ctx: AppContext, identity: IdentityProvider, month: date) -> MonthlySummary:
    """Totals and per-category spending for the month containing ``month``."""

    uid = require_user_id(identity)
    start, end = month_bounds(month)
    incomes, expenses = _rows(ctx, uid, start, end)

    summary = MonthlySummary(month=period_key(start))
    summary.total_income = sum(i.amount for i in incomes)
    for expense in expenses:
        summary.total_expenses += expense.amount
        if expense.category in summary.by_category:
            summary.by_category[expense.category] += expense.amount
    return summary


def monthly_series(
    ctx: AppContext,
    identity: IdentityProvider,
    *,
    end_month: Optional[date] = None,
    months: int = DEFAULT_MONTHS,
) -> list[SeriesPoint]:
    """``months`` consecutive months ending with ``end_month``, oldest first."""

    uid = require_user_id(identity)
    months = _check_window(months, "months")
    last_start, end = month_bounds(end_month or date.today())
    first_start = _shift_month(last_start, -(months - 1))

    points = {
        period_key(_shift_month(first_start, i)): SeriesPoint(label=period_key(_shift_month(first_start, i)))
        for i in range(months)
    }
    incomes, expenses = _rows(ctx, uid, first_start, end)
    _accumulate(points, incomes, expenses, period_key)
    return list(points.values())


def yearly_series(
    ctx: AppContext,
    identity: IdentityProvider,
    *,
    end_year: Optional[int] = None,
    years: int = DEFAULT_YEARS,
) -> list[SeriesPoint]:
    """``years`` calendar years ending with ``end_year``, oldest first."""

    uid = require_user_id(identity)
    years = _check_window(years, "years")
    last_year = end_year or date.today().year
    if not 1 <= last_year <= 9999 or last_year - years + 1 < 1:
        raise ValidationError({"year": ["Year out of range."]})
    first_year = last_year - years + 1

    points = {str(year): SeriesPoint(label=str(year)) for year in range(first_year, last_year + 1)}
    incomes, expenses = _rows(ctx, uid, date(first_year, 1, 1), date(last_year + 1, 1, 1))
    _accumulate(points, incomes, expenses, lambda day: str(day.year))
    return list(points.values())
