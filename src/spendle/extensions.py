"""Database and extension wiring for Spendle."""

from __future__ import annotations

from typing import Optional

from flask import Flask, current_app, session

from .config import BaseConfig
from .context import AppContext, create_app_context
from .domain.identity import require_user_id
from .domain.repositories import KeyValueStore
from .infra.database import SessionFactory

EXTENSION_KEY = "spendle"
SESSION_USER_KEY = "user_id"


def init_db(app: Flask) -> AppContext:
    """Create the engine and repositories once and attach them to the app."""

    config: BaseConfig = app.config["SPENDLE_CONFIG"]
    ctx = create_app_context(config)
    app.extensions[EXTENSION_KEY] = ctx
    return ctx


def get_context() -> AppContext:
    """Return the ``AppContext`` of the current Flask app."""

    try:
        return current_app.extensions[EXTENSION_KEY]
    except KeyError:  # pragma: no cover - exercised only on mis-wired apps
        raise RuntimeError("Database not initialized; call init_db(app) first") from None


def get_session_factory() -> SessionFactory:
    return get_context().session_factory


class FlaskSessionIdentity:
    """Identity backed by the signed Flask session cookie."""

    @property
    def user_id(self) -> Optional[int]:
        value = session.get(SESSION_USER_KEY)
        return int(value) if value is not None else None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def require_user_id(self) -> int:
        return require_user_id(self)

    # Only the user id is touched; per-user recurring markers outlive a login
    def sign_in(self, user_id: int) -> None:
        session[SESSION_USER_KEY] = user_id

    def sign_out(self) -> None:
        session.pop(SESSION_USER_KEY, None)


class FlaskSessionStore:
    """Marker store kept in the signed session cookie.

    Keys are scoped per user and survive logout; clearing the cookie resets them.
    """

    def get(self, key: str) -> Optional[str]:
        value = session.get(key)
        return str(value) if value is not None else None

    def set(self, key: str, value: str) -> None:
        session[key] = value

    def remove(self, key: str) -> None:
        session.pop(key, None)


def get_marker_store() -> KeyValueStore:
    """Pick the marker backend configured by ``SPENDLE_MARKER_BACKEND``."""

    ctx = get_context()
    if ctx.config.MARKER_BACKEND == "database":
        return ctx.settings_repo
    return FlaskSessionStore()
