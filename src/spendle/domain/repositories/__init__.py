"""Repository protocol definitions for domain layer."""

from .goal import SavingsGoalRepository
from .recurring import RecurringTemplateRepository
from .settings import KeyValueStore
from .transaction import ExpenseRepository, TransactionRepository

__all__ = [
    "ExpenseRepository",
    "KeyValueStore",
    "RecurringTemplateRepository",
    "SavingsGoalRepository",
    "TransactionRepository",
]
