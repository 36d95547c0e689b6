"""
Override analytics over audit records.

Override rate = explicit user switches / plans rendered. Every evaluation
renders a plan, so plan_rendered is the denominator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable

from ..rules.types import SwitchTrigger
from .port import MODE_SWITCHED, PLAN_RENDERED, AuditRecord


@dataclass
class OverrideStats:
    plan_renders: int = 0
    mode_switches: int = 0
    manual_overrides: int = 0
    override_rate: float = 0.0
    overrides_by_mode: Dict[str, int] = field(default_factory=dict)   # target mode → count


def compute_override_stats(records: Iterable[AuditRecord]) -> OverrideStats:
    stats = OverrideStats()
    for r in records:
        if r.event_type == PLAN_RENDERED:
            stats.plan_renders += 1
        elif r.event_type == MODE_SWITCHED:
            stats.mode_switches += 1
            if r.payload.get("trigger") == SwitchTrigger.EXPLICIT_USER_ACTION.value:
                stats.manual_overrides += 1
                target = str(r.payload.get("to", "unknown"))
                stats.overrides_by_mode[target] = stats.overrides_by_mode.get(target, 0) + 1

    if stats.plan_renders:
        stats.override_rate = round(stats.manual_overrides / stats.plan_renders, 4)
    return stats
