"""Structured logging helpers for transition events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class TransitionLogContext:
    """Normalized context fields expected in transition logs."""

    machine_type: str | None = None
    action: str | None = None
    instance_id: Any = None
    source_state: str | None = None


def build_log_event(event: str, context: TransitionLogContext, **fields: Any) -> dict[str, Any]:
    """Build a normalized structured log payload.

    The result is suitable both as ``extra=`` for :mod:`logging` calls and as
    a standalone JSON document.
    """
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "machine_type": context.machine_type,
        "action": context.action,
        "instance_id": context.instance_id,
        "source_state": context.source_state,
    }
    payload.update(fields)
    return payload
