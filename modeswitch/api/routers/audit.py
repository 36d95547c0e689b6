"""
/audit — raw audit records and override analytics.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request

from ...api.schemas import AuditEntryOut, OverrideStatsOut

router = APIRouter(prefix="/audit", tags=["audit"])


def _get_timeline(request: Request):
    # read-your-writes: let queued engine events land before querying
    request.app.state.engine.flush_audit(timeout=5.0)
    return request.app.state.timeline


@router.get("/events", response_model=List[AuditEntryOut])
def get_events(
    since: Optional[float] = Query(None, description="Unix timestamp (inclusive)"),
    until: Optional[float] = Query(None, description="Unix timestamp (inclusive)"),
    event_type: Optional[str] = Query(None, description="mode_switched | plan_rendered"),
    limit: int = Query(200, ge=1, le=1000),
    timeline=Depends(_get_timeline),
):
    entries = timeline.query(since=since, until=until, event_type=event_type, limit=limit)
    return [
        AuditEntryOut(
            id=e.id,
            timestamp=e.timestamp,
            event_type=e.event_type,
            mode=e.mode,
            trigger=e.switch_trigger,
            confidence=e.confidence,
            payload_json=e.payload_json,
        )
        for e in entries
    ]


@router.get("/overrides", response_model=OverrideStatsOut)
def get_overrides(
    since: Optional[float] = Query(None),
    until: Optional[float] = Query(None),
    timeline=Depends(_get_timeline),
):
    """Share of rendered plans that the user overrode with an explicit switch."""
    s = timeline.get_override_stats(since=since, until=until)
    return OverrideStatsOut(
        plan_renders=s.plan_renders,
        mode_switches=s.mode_switches,
        manual_overrides=s.manual_overrides,
        override_rate=s.override_rate,
        overrides_by_mode=s.overrides_by_mode,
    )
