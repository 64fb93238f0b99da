"""Identity provider port: who is acting on the data."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from ..errors import AuthError


class IdentityProvider(Protocol):
    """Yields a stable user id and an "is authenticated" signal."""

    @property
    def user_id(self) -> Optional[int]:
        ...

    @property
    def is_authenticated(self) -> bool:
        ...

    def require_user_id(self) -> int:
        ...


@dataclass(frozen=True)
class StaticIdentity:
    """Fixed identity for the CLI, background callers and tests."""

    user_id: Optional[int] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def require_user_id(self) -> int:
        return require_user_id(self)


ANONYMOUS = StaticIdentity()


def require_user_id(identity: IdentityProvider | None) -> int:
    """Return the current user id or raise ``AuthError`` if nobody is signed in."""

    if identity is None or not identity.is_authenticated or identity.user_id is None:
        raise AuthError("User is not authenticated")
    return identity.user_id
