"""Recurring template form binding."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from ...errors import ValidationError
from ...services.recurring import TemplateDraft
from ..common import parse_bool, parse_int

_FIELDS = ("name", "amount", "type", "category", "active", "goal_id")


@dataclass(slots=True)
class TemplateForm:
    """Raw template input; only keys present in the request are kept."""

    raw_data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TemplateForm:
        return cls(raw_data={key: data[key] for key in _FIELDS if key in data})

    def changes(self) -> dict[str, Any]:
        """Typed partial update for PATCH requests."""

        values = dict(self.raw_data)
        if "active" in values:
            values["active"] = parse_bool(values["active"], field="active")
        if "goal_id" in values:
            values["goal_id"] = parse_int(values["goal_id"], field="goal_id")
        if values.get("category") == "":
            values["category"] = None
        return values

    def to_draft(self) -> TemplateDraft:
        values = self.changes()
        missing = [key for key in ("name", "amount", "type") if key not in values]
        if missing:
            raise ValidationError({key: ["This field is required."] for key in missing})
        category: Optional[str] = values.get("category")
        return TemplateDraft(
            name=values["name"],
            amount=values["amount"],
            type=values["type"],
            category=category,
            active=values.get("active", True),
            goal_id=values.get("goal_id"),
        )
