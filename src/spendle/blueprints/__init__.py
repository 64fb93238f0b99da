"""Blueprint exports."""

from . import analytics, auth, goals, ledger, recurring

__all__ = [
    "analytics",
    "auth",
    "goals",
    "ledger",
    "recurring",
]
