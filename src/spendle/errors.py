"""Error taxonomy shared by services, repositories and the HTTP layer."""

from __future__ import annotations

from typing import Mapping


class SpendleError(Exception):
    """Base class for every error a core operation surfaces to its caller."""

    code = "spendle_error"
    status_code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = message or (self.__class__.__doc__ or self.code).strip()

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class AuthError(SpendleError):
    """No authenticated user for an operation that requires one."""

    code = "not_authenticated"
    status_code = 401


class NotFoundError(SpendleError):
    """Referenced row is absent or owned by another user."""

    code = "not_found"
    status_code = 404

    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class StorageError(SpendleError):
    """Backend failure while reading or writing rows."""

    code = "storage_error"
    status_code = 503


class ConflictError(StorageError):
    """A write violated a uniqueness constraint."""

    code = "conflict"
    status_code = 409


class ValidationError(SpendleError):
    """Input rejected before reaching storage."""

    code = "invalid_input"
    status_code = 400

    def __init__(self, errors: Mapping[str, list[str]] | str) -> None:
        if isinstance(errors, str):
            errors = {"__all__": [errors]}
        self.errors: dict[str, list[str]] = {key: list(value) for key, value in errors.items()}
        flat = "; ".join(
            f"{field}: {msg}" if field != "__all__" else msg
            for field, messages in self.errors.items()
            for msg in messages
        )
        super().__init__(flat)

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["fields"] = self.errors
        return payload


__all__ = [
    "AuthError",
    "ConflictError",
    "NotFoundError",
    "SpendleError",
    "StorageError",
    "ValidationError",
]
