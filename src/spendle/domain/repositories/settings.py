"""Key-value store protocol used for the recurring marker."""

from __future__ import annotations

from typing import Optional, Protocol


class KeyValueStore(Protocol):
    """Minimal get/set/remove string store."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...
