"""Request parsing helpers shared by the JSON blueprints."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Optional

from flask import request

from ..errors import ValidationError
from ..extensions import FlaskSessionIdentity

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def current_identity() -> FlaskSessionIdentity:
    return FlaskSessionIdentity()


def request_data() -> Mapping[str, Any]:
    """JSON body when sent, otherwise submitted form fields."""

    if request.is_json:
        payload = request.get_json(silent=True)
        if payload is None:
            return {}
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object.")
        return payload
    return request.form.to_dict(flat=True)


def parse_bool(value: Any, *, field: str, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValidationError({field: ["Expected a boolean."]})


def parse_int(value: Any, *, field: str, default: Optional[int] = None) -> Optional[int]:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValidationError({field: ["Expected a whole number."]})
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError({field: ["Expected a whole number."]}) from None


def parse_month(value: Optional[str], *, field: str = "month") -> date:
    """Parse ``YYYY-MM`` into the first day of that month; default is today."""

    if not value:
        return date.today().replace(day=1)
    try:
        return datetime.strptime(value.strip(), "%Y-%m").date()
    except ValueError:
        raise ValidationError({field: ["Use the YYYY-MM format."]}) from None
