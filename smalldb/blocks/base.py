"""Base contract for dataflow blocks."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any


class Block(ABC):
    """Block with named inputs and outputs, executed once per activation.

    Class-level ``inputs``/``outputs`` are read-only; blocks configured at
    runtime set their own on the instance.
    """

    inputs: Mapping[str, Any] = MappingProxyType({})
    outputs: Mapping[str, bool] = MappingProxyType({"done": True})

    @abstractmethod
    def main(self, **inputs: Any) -> dict[str, Any]:
        """Execute the block and return its output values."""
        raise NotImplementedError
