"""Memory backend protocol."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MemoryBackend(Protocol):
    """Keyed persistent store used by sequencers.

    Implementations raise on storage errors; callers decide how to degrade.
    """

    def get(self, package_id: str, user_id: str, key: str) -> bytes | None:
        """Return the stored value, or None when no row exists."""
        ...

    def put(self, package_id: str, user_id: str, key: str, value: bytes) -> None:
        """Insert or replace the value for (package_id, user_id, key)."""
        ...

    def delete(self, package_id: str, user_id: str, key: str) -> None:
        """Remove the value for (package_id, user_id, key) if present."""
        ...
