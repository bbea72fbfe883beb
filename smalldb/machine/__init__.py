"""Machine descriptions, transition engine, reflection and DOT export."""

from smalldb.machine.contracts import PermissionChecker, StateProvider
from smalldb.machine.description import (
    INITIAL_STATE,
    Action,
    MachineDescription,
    ReturnSemantics,
    State,
    Transition,
    load_machine_description,
)
from smalldb.machine.engine import TransitionEngine
from smalldb.machine.graph import export_dot
from smalldb.machine.reflection import MachineReflection

__all__ = [
    "INITIAL_STATE",
    "Action",
    "MachineDescription",
    "MachineReflection",
    "PermissionChecker",
    "ReturnSemantics",
    "State",
    "StateProvider",
    "Transition",
    "TransitionEngine",
    "export_dot",
    "load_machine_description",
]
