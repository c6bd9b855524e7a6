# src/streaks_overload/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage and the upload namespace swappable and makes testing easier.
"""

from typing import Any, Awaitable, Protocol


class RegistryPersister(Protocol):
    """
    Storage-side port: queue a durable snapshot of the registry.

    The snapshot is taken at call time. The returned awaitable resolves once that
    write finished (True) or failed (False); callers may ignore it.
    """

    def persist(self, registry: Any) -> Awaitable[bool]: ...


class UploadResolver(Protocol):
    """
    Validates references into the managed upload namespace and removes files.

    resolve() returns the canonical reference, or None when the reference points
    outside the namespace or at a missing file. remove() is best-effort.
    """

    def resolve(self, ref: str | None) -> str | None: ...
    def remove(self, ref: str | None) -> None: ...
