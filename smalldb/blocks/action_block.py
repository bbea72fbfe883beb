"""Block invoking one action of a machine type."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from smalldb.blocks.base import Block
from smalldb.core.exceptions import MachineConfigurationError
from smalldb.machine.base import Machine
from smalldb.machine.description import ReturnSemantics

OUTPUT_VALUES = {"id", "return_value", "properties", "state"}


class ActionBlock(Block):
    """Run a transition with the block inputs as arguments.

    The ``id`` input, if connected, selects the instance; all other inputs
    are passed to the transition method as keyword arguments. Block
    configuration comes from the ``block`` entry of the action definition::

        "block": {
            "inputs": {"id": null, "title": null},
            "outputs": {"id": "id", "article": "properties"}
        }

    Each output is one of ``id``, ``return_value``, ``properties`` or
    ``state``; ``done`` is always present.
    """

    def __init__(self, machine: Machine, action: str, block_config: Mapping[str, Any] | None = None) -> None:
        self.machine = machine
        self.action = action

        if block_config is None:
            action_desc = machine.describe_action(action)
            block_config = action_desc.options.get("block") if action_desc is not None else None
        if not isinstance(block_config, Mapping):
            raise MachineConfigurationError(f'Block is not configured for action "{action}".')

        inputs = block_config.get("inputs")
        if not isinstance(inputs, Mapping):
            raise MachineConfigurationError("Inputs are not specified in block configuration.")
        self.inputs = dict(inputs)

        outputs = block_config.get("outputs")
        if not isinstance(outputs, Mapping):
            raise MachineConfigurationError("Outputs are not specified in block configuration.")
        unknown = sorted(str(value) for value in outputs.values() if value not in OUTPUT_VALUES)
        if unknown:
            raise MachineConfigurationError(f"Unknown block output values: {', '.join(unknown)}")
        self.output_values = dict(outputs)
        self.outputs = {name: True for name in self.output_values}
        self.outputs["done"] = True

    def main(self, **inputs: Any) -> dict[str, Any]:
        args = dict(inputs)
        id = args.pop("id", None)

        result, returns = self.machine.invoke_transition(id, self.action, **args)
        if returns is ReturnSemantics.NEW_ID:
            id = result

        values: dict[str, Any] = {}
        for output, source in self.output_values.items():
            if source == "id":
                values[output] = id
            elif source == "return_value":
                values[output] = result
            elif source == "properties":
                values[output] = self.machine.get_properties(id)
            elif source == "state":
                values[output] = self.machine.get_state(id)
        values["done"] = True
        return values
