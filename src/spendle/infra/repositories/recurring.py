"""SQLModel implementation of the recurring template repository."""

from __future__ import annotations

from typing import Optional

from sqlmodel import select

from ...models.recurring import RecurringTemplate
from ..database import SessionFactory

_IMMUTABLE_FIELDS = {"id", "user_id", "created_at"}


class SQLModelRecurringTemplateRepository:
    """SQLModel-based recurring template repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get_by_id(self, template_id: int, *, user_id: int) -> Optional[RecurringTemplate]:
        with self.session_factory() as session:
            obj = session.exec(
                select(RecurringTemplate)
                .where(RecurringTemplate.id == template_id)
                .where(RecurringTemplate.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_for_user(
        self, *, user_id: int, active: Optional[bool] = None
    ) -> list[RecurringTemplate]:
        with self.session_factory() as session:
            statement = select(RecurringTemplate).where(RecurringTemplate.user_id == user_id)
            if active is not None:
                statement = statement.where(RecurringTemplate.active == active)
            statement = statement.order_by(
                RecurringTemplate.created_at.desc(),  # type: ignore
                RecurringTemplate.id.desc(),  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_for_goal(
        self, goal_id: int, *, user_id: int, active: Optional[bool] = None
    ) -> list[RecurringTemplate]:
        with self.session_factory() as session:
            statement = (
                select(RecurringTemplate)
                .where(RecurringTemplate.user_id == user_id)
                .where(RecurringTemplate.goal_id == goal_id)
            )
            if active is not None:
                statement = statement.where(RecurringTemplate.active == active)
            rows = list(session.exec(statement.order_by(RecurringTemplate.id)).all())  # type: ignore
            session.expunge_all()
            return rows

    def create(self, template: RecurringTemplate, *, user_id: int) -> RecurringTemplate:
        with self.session_factory() as session:
            template.user_id = user_id
            session.add(template)
            session.commit()
            session.refresh(template)
            session.expunge(template)
            return template

    def update(
        self, template_id: int, changes: dict, *, user_id: int
    ) -> Optional[RecurringTemplate]:
        with self.session_factory() as session:
            template = session.exec(
                select(RecurringTemplate)
                .where(RecurringTemplate.id == template_id)
                .where(RecurringTemplate.user_id == user_id)
            ).first()
            if template is None:
                return None
            for key, value in changes.items():
                if key in _IMMUTABLE_FIELDS:
                    continue
                setattr(template, key, value)
            session.add(template)
            session.commit()
            session.refresh(template)
            session.expunge(template)
            return template

    def delete(self, template_id: int, *, user_id: int) -> bool:
        with self.session_factory() as session:
            template = session.exec(
                select(RecurringTemplate)
                .where(RecurringTemplate.id == template_id)
                .where(RecurringTemplate.user_id == user_id)
            ).first()
            if template is None:
                return False
            session.delete(template)
            session.commit()
            return True
