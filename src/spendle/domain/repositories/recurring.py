"""Recurring template repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.recurring import RecurringTemplate


class RecurringTemplateRepository(Protocol):
    """Repository for managing recurring templates."""

    def get_by_id(self, template_id: int, *, user_id: int) -> Optional[RecurringTemplate]:
        ...

    def list_for_user(
        self, *, user_id: int, active: Optional[bool] = None
    ) -> list[RecurringTemplate]:
        """List templates newest first, optionally filtered by the active flag."""
        ...

    def list_for_goal(
        self, goal_id: int, *, user_id: int, active: Optional[bool] = None
    ) -> list[RecurringTemplate]:
        ...

    def create(self, template: RecurringTemplate, *, user_id: int) -> RecurringTemplate:
        ...

    def update(self, template_id: int, changes: dict, *, user_id: int) -> Optional[RecurringTemplate]:
        """Merge ``changes`` into the row; None when absent or foreign."""
        ...

    def delete(self, template_id: int, *, user_id: int) -> bool:
        ...
