"""Pydantic schemas for strict validation of declarative machine definitions."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from smalldb.core.exceptions import MachineConfigurationError


class StateSchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    label: str | None = None
    description: str | None = None
    color: str | None = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")


class TransitionSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    targets: list[str | None] = Field(min_length=1)
    method: str | None = None
    permissions: Any = None

    @field_validator("targets")
    @classmethod
    def targets_are_normalized(cls, value: list[str | None]) -> list[str]:
        # null target is the same as "" (instance ceases to exist)
        return [target or "" for target in value]


class ActionSchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    label: str | None = None
    description: str | None = None
    returns: str | None = None
    transitions: dict[str, TransitionSchema] = Field(default_factory=dict)


class MachineSchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    states: dict[str, StateSchema | None] = Field(default_factory=dict)
    actions: dict[str, ActionSchema]

    @field_validator("actions")
    @classmethod
    def actions_not_empty(cls, value: dict[str, ActionSchema]) -> dict[str, ActionSchema]:
        if not value:
            raise ValueError("machine must declare at least one action")
        return value


def parse_machine_config(payload: Any) -> MachineSchema:
    """Validate a declarative machine definition (mapping or JSON text)."""
    try:
        if isinstance(payload, (str, bytes)):
            return MachineSchema.model_validate_json(payload)
        return MachineSchema.model_validate(payload)
    except ValidationError as exc:
        raise MachineConfigurationError(str(exc)) from exc
