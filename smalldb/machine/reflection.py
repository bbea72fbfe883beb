"""Read-only queries over a machine description."""

from __future__ import annotations

from typing import Any

from smalldb.machine.contracts import InstanceId, PermissionChecker, StateProvider
from smalldb.machine.description import Action, MachineDescription, State, Transition


class MachineReflection:
    """Enumerate states and actions, and compute what an instance may do next.

    Unknown names give ``None`` instead of an error; these queries feed UI
    listings where a missing entry is a normal situation.
    """

    def __init__(
        self,
        description: MachineDescription,
        provider: StateProvider,
        checker: PermissionChecker,
    ) -> None:
        self.description = description
        self.provider = provider
        self.checker = checker

    def all_states(self) -> list[str]:
        return list(self.description.states)

    def describe_state(self, name: str) -> State | None:
        return self.description.states.get(name)

    def all_actions(self) -> list[str]:
        return list(self.description.actions)

    def describe_action(self, name: str) -> Action | None:
        return self.description.actions.get(name)

    def available_transitions(self, id: InstanceId) -> dict[str, Transition]:
        """Actions invokable on ``id`` right now, in declaration order."""
        state = self.provider.get_state(id)
        available: dict[str, Transition] = {}
        for name, action in self.description.actions.items():
            transition = action.transitions.get(state)
            if transition is None:
                continue
            if transition.permissions is None or self.checker.check_permissions(transition.permissions, id):
                available[name] = transition
        return available

    def describe(self) -> dict[str, Any]:
        return self.description.to_dict()
