"""Command line tools: render a machine definition as Graphviz DOT."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from smalldb.core.exceptions import MachineConfigurationError
from smalldb.core.logging_config import configure_logging
from smalldb.machine.description import load_machine_description
from smalldb.machine.graph import export_dot

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Export a SmallDB machine definition to Graphviz DOT.")
    parser.add_argument("definition", help="Path to the machine definition (JSON).")
    parser.add_argument("-o", "--output", help="Write DOT source to this file instead of stdout.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level.")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(level="DEBUG" if args.verbose else None)

    try:
        description = load_machine_description(args.definition)
    except MachineConfigurationError as exc:
        logger.error("cli.export_dot.invalid_definition", extra={"event": "cli.export_dot.invalid_definition"})
        print(f"Invalid machine definition: {exc}", file=sys.stderr)
        return 1

    dot = export_dot(description)
    if args.output:
        Path(args.output).write_text(dot, encoding="utf-8")
    else:
        sys.stdout.write(dot)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
