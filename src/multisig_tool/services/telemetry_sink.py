from __future__ import annotations

import logging
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Dict, List

_logger = logging.getLogger("multisig.telemetry")


@dataclass
class TelemetryEvent:
    name: str
    properties: Dict[str, Any] = field(default_factory=dict)


# Keep a rolling buffer of recent events for diagnostics (best-effort only)
_RECENT_EVENTS: List[TelemetryEvent] = []
_MAX_BUFFER = 200
_lock = Lock()


def record_event(event: TelemetryEvent) -> None:
    """Persist a telemetry event by logging and storing in an in-memory buffer."""

    with _lock:
        _RECENT_EVENTS.append(event)
        if len(_RECENT_EVENTS) > _MAX_BUFFER:
            del _RECENT_EVENTS[0 : len(_RECENT_EVENTS) - _MAX_BUFFER]

    _logger.info(
        "telemetry_event name=%s",
        event.name,
        extra={
            "telemetry_name": event.name,
            "telemetry_properties": event.properties,
        },
    )


def list_recent_events(limit: int = 50) -> List[TelemetryEvent]:
    if limit <= 0:
        return []
    with _lock:
        return list(_RECENT_EVENTS[-limit:])


def clear_events() -> None:
    with _lock:
        _RECENT_EVENTS.clear()
