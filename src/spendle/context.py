"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .config import BaseConfig
from .domain.repositories import (
    ExpenseRepository,
    KeyValueStore,
    RecurringTemplateRepository,
    SavingsGoalRepository,
    TransactionRepository,
)
from .infra.database import SessionFactory, create_db_engine, create_session_factory, init_database
from .infra.repositories import (
    SQLModelExpenseRepository,
    SQLModelIncomeRepository,
    SQLModelRecurringTemplateRepository,
    SQLModelSavingsGoalRepository,
    SQLModelSettingsRepository,
)
from .models.transaction import Income


@dataclass
class AppContext:
    """Configuration, session factory and repositories shared by services."""

    config: BaseConfig
    session_factory: SessionFactory

    template_repo: RecurringTemplateRepository
    income_repo: TransactionRepository[Income]
    expense_repo: ExpenseRepository
    goal_repo: SavingsGoalRepository
    settings_repo: KeyValueStore

    engine: Optional[object] = None


def build_context(config: BaseConfig, session_factory: SessionFactory, engine=None) -> AppContext:
    """Wire repositories around an existing session factory."""

    return AppContext(
        config=config,
        session_factory=session_factory,
        template_repo=SQLModelRecurringTemplateRepository(session_factory),
        income_repo=SQLModelIncomeRepository(session_factory),
        expense_repo=SQLModelExpenseRepository(session_factory),
        goal_repo=SQLModelSavingsGoalRepository(session_factory),
        settings_repo=SQLModelSettingsRepository(session_factory),
        engine=engine,
    )


def create_app_context(config: Optional[BaseConfig] = None) -> AppContext:
    """Create the engine, initialize the schema and return a wired context."""

    if config is None:
        config = BaseConfig()

    engine = create_db_engine(config)
    init_database(engine)
    return build_context(config, create_session_factory(engine), engine=engine)
