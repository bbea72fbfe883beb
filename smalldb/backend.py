"""Backend owning the storage and the registry of machine types."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy.engine import Engine

from smalldb.core.config import get_config
from smalldb.core.exceptions import DatabaseError, NotFoundError
from smalldb.database.db import get_engine, verify_database_connection
from smalldb.machine.base import Machine

logger = logging.getLogger(__name__)

MachineFactory = Callable[..., Machine]


class Backend:
    """Registry of machine types sharing one database engine.

    Machine objects are created on first use and kept for the lifetime of
    the backend, so each type builds its description only once.

    The database is probed on construction. An unreachable database is an
    error when ``DB_CONNECTIVITY_REQUIRED`` is set and a warning otherwise.
    """

    def __init__(self, engine: Engine | None = None) -> None:
        self.engine = engine or get_engine()
        self._factories: dict[str, tuple[MachineFactory, dict[str, Any]]] = {}
        self._machines: dict[str, Machine] = {}
        self.verify_connection()

    def verify_connection(self) -> bool:
        if verify_database_connection(self.engine):
            return True
        if get_config().DB_CONNECTIVITY_REQUIRED:
            raise DatabaseError("Database connectivity check failed.")
        logger.warning(
            "backend.database.connectivity_optional_failed",
            extra={"event": "backend.database.connectivity_optional_failed"},
        )
        return False

    def register_machine_type(self, machine_type: str, factory: MachineFactory, **args: Any) -> None:
        """Register ``factory(backend, machine_type, **args)`` under ``machine_type``."""
        self._factories[machine_type] = (factory, args)
        self._machines.pop(machine_type, None)
        logger.debug(
            "backend.machine_type.registered",
            extra={"event": "backend.machine_type.registered", "machine_type": machine_type},
        )

    def get_known_types(self) -> list[str]:
        return list(self._factories)

    def get_machine(self, machine_type: str) -> Machine:
        machine = self._machines.get(machine_type)
        if machine is not None:
            return machine
        if machine_type not in self._factories:
            raise NotFoundError(f"Unknown machine type: {machine_type}")
        factory, args = self._factories[machine_type]
        machine = factory(self, machine_type, **args)
        self._machines[machine_type] = machine
        return machine

    def describe(self, machine_type: str) -> dict[str, Any] | None:
        """Description of a machine type, ``None`` for an unknown type."""
        if machine_type not in self._factories:
            return None
        return self.get_machine(machine_type).describe()

    def flush_cache(self) -> None:
        for machine in self._machines.values():
            machine.flush_cache()
