"""SQLModel table exports."""

from .goal import SavingsGoal
from .recurring import RecurringTemplate
from .settings import AppSetting
from .transaction import Expense, Income, LedgerEntry, TransactionBase
from .user import User

__all__ = [
    "AppSetting",
    "Expense",
    "Income",
    "LedgerEntry",
    "RecurringTemplate",
    "SavingsGoal",
    "TransactionBase",
    "User",
]
