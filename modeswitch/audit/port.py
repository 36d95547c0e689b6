"""
Audit port — the single outbound capability the rules engine depends on.

The engine emits exactly two event types:
    mode_switched   {from, to, trigger, reason, confidence}
    plan_rendered   {plan_id, mode, confidence}
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

MODE_SWITCHED = "mode_switched"
PLAN_RENDERED = "plan_rendered"


class AuditLog(Protocol):
    def log_event(self, event_type: str, payload: Dict[str, Any]) -> None: ...


@dataclass
class AuditRecord:
    event_type: str
    payload: Dict[str, Any]
    timestamp: float = field(default_factory=time.time)


class NullAuditLog:
    """Discards everything."""

    def log_event(self, event_type: str, payload: Dict[str, Any]) -> None:
        return None


class MemoryAuditLog:
    """Keeps records in process; handy for embedding and tests."""

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.time
        self.records: List[AuditRecord] = []

    def log_event(self, event_type: str, payload: Dict[str, Any]) -> None:
        self.records.append(AuditRecord(event_type, dict(payload), self._clock()))

    def of_type(self, event_type: str) -> List[AuditRecord]:
        return [r for r in self.records if r.event_type == event_type]
