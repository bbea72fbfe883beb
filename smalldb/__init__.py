"""State machine engine for entities persisted in SQL databases."""

from smalldb.backend import Backend
from smalldb.machine.base import Machine
from smalldb.machine.description import MachineDescription, ReturnSemantics
from smalldb.machine.sql_machine import SqlMachine

__all__ = [
    "Backend",
    "Machine",
    "MachineDescription",
    "ReturnSemantics",
    "SqlMachine",
]
