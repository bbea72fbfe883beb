"""Capabilities the transition engine needs from a machine type."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

InstanceId = Any


def is_empty_id(id: InstanceId) -> bool:
    """True for IDs denoting an instance which does not exist yet."""
    return id is None or id == () or id == [] or id == ""


@runtime_checkable
class StateProvider(Protocol):
    """Resolves instance IDs against the storage holding the instances."""

    def get_state(self, id: InstanceId) -> str:
        """Current state; empty string for an empty or unknown ID."""
        ...

    def get_properties(self, id: InstanceId) -> dict[str, Any]:
        """All stored properties; raises ``NotFoundError`` if there is no record."""
        ...

    def flush_cache(self) -> None:
        ...


@runtime_checkable
class PermissionChecker(Protocol):
    def check_permissions(self, permissions: Any, id: InstanceId) -> bool:
        ...
