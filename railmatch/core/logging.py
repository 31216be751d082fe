"""Structured logging helpers for API handlers and background tasks."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class LogContext:
    """Normalized context fields expected in structured logs."""

    run_id: str | None = None
    task_name: str | None = None
    request_id: int | None = None
    match_id: int | None = None
    company_id: int | None = None


def build_log_event(event: str, context: LogContext, **fields: Any) -> dict[str, Any]:
    """Build a normalized structured log payload."""
    payload: dict[str, Any] = {
        "event_time": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "run_id": context.run_id,
        "task_name": context.task_name,
        "request_id": context.request_id,
        "match_id": context.match_id,
        "company_id": context.company_id,
    }
    payload.update(fields)
    return payload
