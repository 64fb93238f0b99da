"""Concrete repository implementations using SQLModel."""

from .goal import SQLModelSavingsGoalRepository
from .recurring import SQLModelRecurringTemplateRepository
from .settings import SQLModelSettingsRepository
from .transaction import SQLModelExpenseRepository, SQLModelIncomeRepository

__all__ = [
    "SQLModelExpenseRepository",
    "SQLModelIncomeRepository",
    "SQLModelRecurringTemplateRepository",
    "SQLModelSavingsGoalRepository",
    "SQLModelSettingsRepository",
]
