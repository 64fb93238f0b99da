"""Pytest configuration and shared fixtures for Spendle tests.

This module provides database fixtures, test data factories, and helper utilities
for testing domain logic, repositories, and services without touching the real app database.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

import pytest
from sqlmodel import select

from spendle.config import TestConfig
from spendle.context import build_context
from spendle.domain.identity import StaticIdentity
from spendle.infra.database import create_db_engine, create_session_factory, init_database
from spendle.models import Expense, Income, User
from spendle.services import goals as goal_service
from spendle.services.recurring import TemplateDraft, create_template

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def test_config(tmp_path, monkeypatch: pytest.MonkeyPatch) -> TestConfig:
    """Configuration pointing at a throwaway data dir and SQLite file."""

    monkeypatch.setenv("SPENDLE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("SPENDLE_DATABASE_URL", f"sqlite:///{tmp_path / 'spendle-test.db'}")
    monkeypatch.setenv("SPENDLE_DEV_MODE", "true")
    monkeypatch.delenv("SPENDLE_MARKER_BACKEND", raising=False)
    return TestConfig()


@pytest.fixture(scope="function")
def db_engine(test_config):
    """Create an isolated SQLite database for each test.

    Uses the production engine factory so the SQLite pragmas (foreign keys)
    apply in tests too.
    """

    engine = create_db_engine(test_config)
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching the repositories' ``session_scope`` contract.

    A default user is bootstrapped and exposed as ``factory.user``.
    """

    factory = create_session_factory(db_engine)
    with factory() as session:
        existing = session.exec(select(User).where(User.username == "tester")).first()
        if existing is None:
            existing = User(username="tester", password_hash="dummy-hash")
            session.add(existing)
            session.commit()
            session.refresh(existing)
        session.expunge(existing)
    factory.user = existing  # type: ignore[attr-defined]
    return factory


@pytest.fixture
def ctx(test_config, session_factory, db_engine):
    return build_context(test_config, session_factory, engine=db_engine)


@pytest.fixture
def user(session_factory) -> User:
    return session_factory.user  # type: ignore[attr-defined]


@pytest.fixture
def identity(user) -> StaticIdentity:
    return StaticIdentity(user.id)


@pytest.fixture
def other_identity(session_factory) -> StaticIdentity:
    """A second account for user-scoping checks."""

    with session_factory() as session:
        other = User(username="someone-else", password_hash="dummy-hash")
        session.add(other)
        session.commit()
        session.refresh(other)
        return StaticIdentity(other.id)


class MemoryStore:
    """Dict-backed marker store."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


@pytest.fixture
def marker_store() -> MemoryStore:
    return MemoryStore()


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def template_factory(ctx, identity):
    """Factory for creating recurring templates through the service layer."""

    def _create_template(
        name: str = "Rent",
        amount: float = 500.0,
        type: str = "expense",
        category: Optional[str] = "needs",
        active: bool = True,
        goal_id: Optional[int] = None,
        owner: Optional[StaticIdentity] = None,
    ):
        if type == "income" and category == "needs":
            category = None
        draft = TemplateDraft(
            name=name, amount=amount, type=type, category=category, active=active, goal_id=goal_id
        )
        return create_template(ctx, owner or identity, draft)

    return _create_template


@pytest.fixture
def goal_factory(ctx, identity):
    """Factory for creating savings goals; returns the persisted goal row."""

    def _create_goal(
        name: str = "Emergency fund",
        target_amount: float = 1000.0,
        monthly_contribution: float = 100.0,
        category: str = "investment",
        auto_contribute: bool = False,
        today: Optional[date] = None,
        owner: Optional[StaticIdentity] = None,
    ):
        progress = goal_service.create_goal(
            ctx,
            owner or identity,
            name=name,
            target_amount=target_amount,
            monthly_contribution=monthly_contribution,
            category=category,
            auto_contribute=auto_contribute,
            today=today,
        )
        return progress.goal

    return _create_goal


@pytest.fixture
def expense_factory(ctx, user):
    """Factory for inserting expense rows directly through the repository."""

    def _create_expense(
        name: str = "Groceries",
        amount: float = 50.0,
        when: date = date(2024, 3, 10),
        category: str = "needs",
        goal_id: Optional[int] = None,
        user_id: Optional[int] = None,
        **extra,
    ) -> Expense:
        uid = user_id or user.id
        return ctx.expense_repo.create(
            Expense(
                user_id=uid,
                name=name,
                amount=amount,
                date=when,
                category=category,
                goal_id=goal_id,
                **extra,
            ),
            user_id=uid,
        )

    return _create_expense


@pytest.fixture
def income_factory(ctx, user):
    def _create_income(
        name: str = "Salary",
        amount: float = 3000.0,
        when: date = date(2024, 3, 1),
        user_id: Optional[int] = None,
        **extra,
    ) -> Income:
        uid = user_id or user.id
        return ctx.income_repo.create(
            Income(user_id=uid, name=name, amount=amount, date=when, **extra), user_id=uid
        )

    return _create_income


# =============================================================================
# Flask app fixtures
# =============================================================================


@pytest.fixture()
def app(tmp_path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SPENDLE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("SPENDLE_DATABASE_URL", f"sqlite:///{tmp_path / 'spendle-app.db'}")
    monkeypatch.setenv("SPENDLE_DEV_MODE", "true")
    monkeypatch.delenv("SPENDLE_MARKER_BACKEND", raising=False)
    from spendle import create_app

    return create_app("testing")


@pytest.fixture()
def client(app):
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture()
def signed_in_client(client):
    """Client with a registered and logged-in account."""

    response = client.post("/auth/register", json={"username": "alice", "password": "hunter2-long"})
    assert response.status_code == 201
    response = client.post("/auth/login", json={"username": "alice", "password": "hunter2-long"})
    assert response.status_code == 200
    return client
