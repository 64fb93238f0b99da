"""Database engine, schema bootstrap and session factory."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator

from sqlalchemy import event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine

from ..config import BaseConfig
from ..errors import ConflictError, StorageError
from ..logging_config import get_logger

logger = get_logger("infra.database")

SessionFactory = Callable[[], ContextManager[Session]]


def create_db_engine(config: BaseConfig):
    """Create SQLModel engine from configuration."""
    engine = create_engine(config.DATABASE_URL, **config.sqlalchemy_engine_options())
    if config.DATABASE_URL.startswith("sqlite"):
        _apply_sqlite_pragmas(engine, config.SQLITE_PRAGMAS)
    return engine


def _apply_sqlite_pragmas(engine, pragmas: dict[str, str]) -> None:
    @event.listens_for(engine, "connect")
    def _set_pragmas(dbapi_connection, _record):  # pragma: no cover - driver hook
        cursor = dbapi_connection.cursor()
        for name, value in pragmas.items():
            cursor.execute(f"PRAGMA {name}={value}")
        cursor.close()


def init_database(engine) -> None:
    """Initialize database schema."""
    from .. import models  # noqa: F401  # register tables with SQLModel metadata

    SQLModel.metadata.create_all(engine)


def _is_unique_violation(exc: IntegrityError) -> bool:
    # psycopg exposes SQLSTATE; sqlite3 only has the message text
    if getattr(exc.orig, "pgcode", None) == "23505":
        return True
    return "unique" in str(exc.orig).lower()


@contextmanager
def session_scope(engine) -> Iterator[Session]:
    """Provide a transactional scope around operations.

    Backend failures surface as ``StorageError`` (``ConflictError`` for
    unique-constraint violations) so callers never see driver exceptions.
    Other integrity failures, such as a dangling foreign key, are storage errors.
    """
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        if _is_unique_violation(exc):
            logger.warning("Unique constraint violation", extra={"detail": str(exc.orig)})
            raise ConflictError(str(exc.orig)) from exc
        logger.error("Integrity violation", extra={"detail": str(exc.orig)})
        raise StorageError(str(exc.orig)) from exc
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Storage failure", exc_info=True)
        raise StorageError(str(exc)) from exc
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_session_factory(engine) -> SessionFactory:
    """Return a zero-argument callable yielding ``session_scope`` contexts."""

    def factory() -> ContextManager[Session]:
        return session_scope(engine)

    return factory

