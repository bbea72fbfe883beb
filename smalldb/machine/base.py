"""Base contract for machine types."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from smalldb.machine.contracts import InstanceId
from smalldb.machine.description import Action, MachineDescription, ReturnSemantics, State, Transition
from smalldb.machine.engine import TransitionEngine, TransitionMethod
from smalldb.machine.graph import export_dot
from smalldb.machine.reflection import MachineReflection

if TYPE_CHECKING:
    from smalldb.backend import Backend


class Machine(ABC):
    """One object of this class represents all instances of a machine type.

    Instances themselves live in storage and are referred to by ID only.
    Subclasses provide the description, the state lookup, the permission
    hook and the transition methods; a transition method is an ordinary
    method whose name matches the identifier used in the description and
    whose first argument is the instance ID.
    """

    def __init__(self, backend: "Backend | None", machine_type: str, **args: Any) -> None:
        self.backend = backend
        self.machine_type = machine_type
        self.description = self.initialize_machine(**args)
        self.engine = TransitionEngine(
            self.description,
            provider=self,
            checker=self,
            methods=self.transition_methods(),
            machine_type=machine_type,
        )
        self.reflection = MachineReflection(self.description, provider=self, checker=self)

    @abstractmethod
    def initialize_machine(self, **args: Any) -> MachineDescription:
        """Define the state machine used by all instances of this type."""
        raise NotImplementedError

    @abstractmethod
    def check_permissions(self, permissions: Any, id: InstanceId) -> bool:
        raise NotImplementedError

    @abstractmethod
    def get_state(self, id: InstanceId) -> str:
        raise NotImplementedError

    @abstractmethod
    def get_properties(self, id: InstanceId) -> dict[str, Any]:
        raise NotImplementedError

    def flush_cache(self) -> None:
        """Drop cached data; there is no cache by default."""

    def transition_methods(self) -> dict[str, TransitionMethod]:
        methods: dict[str, TransitionMethod] = {}
        for name in self.description.method_names():
            method = getattr(self, name, None)
            if callable(method):
                methods[name] = method
        return methods

    def get_machine_type(self) -> str:
        return self.machine_type

    def get_backend(self) -> "Backend | None":
        return self.backend

    def all_states(self) -> list[str]:
        return self.reflection.all_states()

    def describe_state(self, state: str) -> State | None:
        return self.reflection.describe_state(state)

    def all_actions(self) -> list[str]:
        return self.reflection.all_actions()

    def describe_action(self, action: str) -> Action | None:
        return self.reflection.describe_action(action)

    def available_transitions(self, id: InstanceId) -> dict[str, Transition]:
        return self.reflection.available_transitions(id)

    def describe(self) -> dict[str, Any]:
        return self.reflection.describe()

    def invoke_transition(
        self, id: InstanceId, action: str, *args: Any, **kwargs: Any
    ) -> tuple[Any, ReturnSemantics]:
        return self.engine.invoke_transition(id, action, *args, **kwargs)

    def export_dot(self) -> str:
        return export_dot(self.description)
