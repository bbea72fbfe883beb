"""Immutable declarative description of a machine type.

One :class:`MachineDescription` is built per machine type when the type is
registered and then shared, read-only, by every operation on every instance
of that type. States and actions keep their declaration order, which is the
order used by reflection and by the DOT export.

Definition layout (the same as the JSON files loaded by
:func:`load_machine_description`)::

    {
        "states": {
            "draft": {"label": "Draft", "color": "#eeeeee"},
            ...
        },
        "actions": {
            "publish": {
                "label": "Publish",
                "returns": null,            # or "new_id"
                "transitions": {
                    "draft": {
                        "targets": ["published"],
                        "method": "publish",   # defaults to the action name
                        "permissions": "editor"
                    }
                }
            }
        }
    }
"""

from __future__ import annotations

import enum
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from smalldb.core.exceptions import InvalidReturnSemanticsError, MachineConfigurationError
from smalldb.core.schemas import ActionSchema, StateSchema, parse_machine_config

# State of an instance which does not exist (yet or anymore).
INITIAL_STATE = ""


class ReturnSemantics(str, enum.Enum):
    VALUE = "value"
    NEW_ID = "new_id"


def parse_returns(action_name: str, value: ReturnSemantics | str | None) -> ReturnSemantics:
    if value is None:
        return ReturnSemantics.VALUE
    try:
        return ReturnSemantics(value)
    except ValueError:
        raise InvalidReturnSemanticsError(
            f'Unknown semantics of the return value of action "{action_name}": {value}'
        ) from None


def _returns_tag(action_name: str, value: ReturnSemantics | str | None) -> str | None:
    returns = parse_returns(action_name, value)
    return None if returns == ReturnSemantics.VALUE else returns.value


def _frozen(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class State:
    name: str
    label: str | None = None
    description: str | None = None
    color: str | None = None
    options: Mapping[str, Any] = field(default_factory=lambda: _frozen(None))

    @property
    def display_label(self) -> str:
        return self.label or self.name


@dataclass(frozen=True)
class Transition:
    targets: tuple[str, ...]
    method: str | None = None
    permissions: Any = None

    def __post_init__(self) -> None:
        # Sets have no stable iteration order across processes.
        if isinstance(self.targets, (set, frozenset)):
            object.__setattr__(self, "targets", tuple(sorted(self.targets, key=str)))
        elif isinstance(self.targets, list):
            object.__setattr__(self, "targets", tuple(self.targets))


@dataclass(frozen=True)
class Action:
    name: str
    transitions: Mapping[str, Transition] = field(default_factory=lambda: _frozen(None))
    label: str | None = None
    description: str | None = None
    returns: ReturnSemantics = ReturnSemantics.VALUE
    options: Mapping[str, Any] = field(default_factory=lambda: _frozen(None))

    @property
    def display_label(self) -> str:
        return self.label or self.name

    def method_for(self, transition: Transition) -> str:
        """Identifier of the method implementing ``transition``."""
        return transition.method or self.name


@dataclass(frozen=True)
class MachineDescription:
    states: Mapping[str, State]
    actions: Mapping[str, Action]

    def __post_init__(self) -> None:
        if not isinstance(self.states, Mapping) or not isinstance(self.actions, Mapping):
            raise MachineConfigurationError("Machine states and actions must be mappings.")
        object.__setattr__(self, "states", _frozen(self.states))
        object.__setattr__(self, "actions", _frozen(self.actions))

    @classmethod
    def from_config(cls, config: Any) -> "MachineDescription":
        """Build a description from a definition mapping or JSON text."""
        schema = parse_machine_config(config)
        states = {
            name: _build_state(name, state_schema or StateSchema())
            for name, state_schema in schema.states.items()
        }
        actions = {name: _build_action(name, action_schema) for name, action_schema in schema.actions.items()}
        return cls(states=states, actions=actions)

    def has_state(self, name: str) -> bool:
        return name == INITIAL_STATE or name in self.states

    def method_names(self) -> set[str]:
        """All method identifiers referenced by transitions."""
        return {
            action.method_for(transition)
            for action in self.actions.values()
            for transition in action.transitions.values()
        }

    def referenced_states(self) -> list[str]:
        """States used by transitions, in order of first appearance.

        Empty or missing names stand for the initial state and are left out.
        """
        seen: dict[str, None] = {}
        for action in self.actions.values():
            for source, transition in action.transitions.items():
                seen.setdefault(source, None)
                for target in transition.targets or ():
                    seen.setdefault(target, None)
        return [name for name in seen if name]

    def undefined_states(self) -> list[str]:
        return [name for name in self.referenced_states() if name not in self.states]

    def to_dict(self) -> dict[str, Any]:
        """Plain, JSON-serializable form of the description."""
        return {
            "states": {
                name: {
                    "label": state.label,
                    "description": state.description,
                    "color": state.color,
                    **state.options,
                }
                for name, state in self.states.items()
            },
            "actions": {
                name: {
                    "label": action.label,
                    "description": action.description,
                    "returns": _returns_tag(name, action.returns),
                    "transitions": {
                        source: {
                            "targets": list(transition.targets),
                            "method": transition.method,
                            "permissions": transition.permissions,
                        }
                        for source, transition in action.transitions.items()
                    },
                    **action.options,
                }
                for name, action in self.actions.items()
            },
        }


def _build_state(name: str, schema: StateSchema) -> State:
    return State(
        name=name,
        label=schema.label,
        description=schema.description,
        color=schema.color,
        options=_frozen(schema.model_extra),
    )


def _build_action(name: str, schema: ActionSchema) -> Action:
    transitions = {
        source: Transition(
            targets=tuple(transition.targets),
            method=transition.method,
            permissions=transition.permissions,
        )
        for source, transition in schema.transitions.items()
    }
    return Action(
        name=name,
        transitions=_frozen(transitions),
        label=schema.label,
        description=schema.description,
        returns=parse_returns(name, schema.returns),
        options=_frozen(schema.model_extra),
    )


def load_machine_description(path: str | Path) -> MachineDescription:
    """Load and validate a machine definition stored as JSON."""
    source = Path(path)
    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise MachineConfigurationError(f"Cannot read machine definition {source}: {exc}") from exc
    return MachineDescription.from_config(payload)
