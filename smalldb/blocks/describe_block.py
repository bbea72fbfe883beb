"""Block publishing the description of a machine type."""

from __future__ import annotations

from types import MappingProxyType
from typing import Any

from smalldb.backend import Backend
from smalldb.blocks.base import Block


class DescribeBlock(Block):
    inputs = MappingProxyType({"smalldb": ("backend", "smalldb")})
    outputs = MappingProxyType({"desc": True, "done": True})

    def __init__(self, machine_type: str) -> None:
        self.machine_type = machine_type

    def main(self, smalldb: Backend, **inputs: Any) -> dict[str, Any]:
        description = smalldb.describe(self.machine_type)
        return {"desc": description, "done": description is not None}
