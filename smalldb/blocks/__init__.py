"""Dataflow blocks exposing machine types."""

from smalldb.blocks.action_block import ActionBlock
from smalldb.blocks.describe_block import DescribeBlock

__all__ = ["ActionBlock", "DescribeBlock"]
