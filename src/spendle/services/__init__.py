"""Service module exports."""

from . import auth, goals, ledger_service, materialize, recurring, reports

__all__ = [
    "auth",
    "goals",
    "ledger_service",
    "materialize",
    "recurring",
    "reports",
]
