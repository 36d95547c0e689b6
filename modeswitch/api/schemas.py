"""
Pydantic schemas for the local mode selection API.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..rules.types import (
    BlockedBy,
    CalendarEvent,
    Confidence,
    EvaluationResult,
    LayoutHint,
    Mode,
    StabilityState,
)

# ── Calendar ───────────────────────────────────────────────────────────────

class CalendarEventIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str = ""
    start_time: int = Field(..., alias="startTime", description="epoch ms")
    end_time: int = Field(..., alias="endTime", description="epoch ms")
    attendees: List[str] = Field(default_factory=list)

    def to_event(self) -> CalendarEvent:
        return CalendarEvent.from_dict(self.model_dump())


# ── Requests ───────────────────────────────────────────────────────────────

class EvaluateRequest(BaseModel):
    events: List[CalendarEventIn] = Field(default_factory=list)
    trigger: str = Field(..., description="app_open | meeting_boundary_change | explicit_user_action | ...")


class ForceModeRequest(BaseModel):
    mode: Mode
    events: List[CalendarEventIn] = Field(default_factory=list)


class EndEditRequest(BaseModel):
    token: str


# ── Evaluation ─────────────────────────────────────────────────────────────

class PlanOut(BaseModel):
    id: str
    mode: Mode
    layout: LayoutHint
    reason: str
    confidence: Confidence
    timestamp: int


class AlternativeOut(BaseModel):
    mode: Mode
    reason: str


class CapsuleActionOut(BaseModel):
    type: str
    label: str
    target: Optional[Mode] = None


class DecisionCapsuleOut(BaseModel):
    view_label: str
    confidence: Confidence
    reason: str
    signals_used: List[str]
    alternatives_considered: List[AlternativeOut]
    would_change_if: List[str]
    actions: List[CapsuleActionOut]


class AdjacencySuggestionOut(BaseModel):
    label: str
    target_mode: Mode
    reason: str


class EvaluationOut(BaseModel):
    plan: PlanOut
    capsule: DecisionCapsuleOut
    should_switch: bool
    blocked_reason: Optional[str] = None
    blocked_by: Optional[BlockedBy] = None
    adjacency_suggestion: Optional[AdjacencySuggestionOut] = None

    @classmethod
    def from_result(cls, result: EvaluationResult) -> "EvaluationOut":
        plan, capsule, adj = result.plan, result.capsule, result.adjacency_suggestion
        return cls(
            plan=PlanOut(
                id=plan.id,
                mode=plan.mode,
                layout=plan.layout,
                reason=plan.reason,
                confidence=plan.confidence,
                timestamp=plan.timestamp,
            ),
            capsule=DecisionCapsuleOut(
                view_label=capsule.view_label,
                confidence=capsule.confidence,
                reason=capsule.reason,
                signals_used=list(capsule.signals_used),
                alternatives_considered=[
                    AlternativeOut(mode=a.mode, reason=a.reason)
                    for a in capsule.alternatives_considered
                ],
                would_change_if=list(capsule.would_change_if),
                actions=[
                    CapsuleActionOut(type=a.type, label=a.label, target=a.target)
                    for a in capsule.actions
                ],
            ),
            should_switch=result.should_switch,
            blocked_reason=result.blocked_reason,
            blocked_by=result.blocked_by,
            adjacency_suggestion=(
                AdjacencySuggestionOut(label=adj.label, target_mode=adj.target_mode, reason=adj.reason)
                if adj else None
            ),
        )


class StabilityStateOut(BaseModel):
    initialized: bool
    current_mode: Optional[Mode] = None
    current_plan_id: Optional[str] = None
    last_switch_time: Optional[int] = None
    is_input_focused: bool = False
    minimum_hold_ms: int

    @classmethod
    def from_state(cls, state: Optional[StabilityState], minimum_hold_ms: int, focused: bool) -> "StabilityStateOut":
        if state is None:
            return cls(initialized=False, is_input_focused=focused, minimum_hold_ms=minimum_hold_ms)
        return cls(
            initialized=True,
            current_mode=state.current_mode,
            current_plan_id=state.current_plan_id,
            last_switch_time=state.last_switch_time,
            is_input_focused=state.is_input_focused,
            minimum_hold_ms=state.minimum_hold_ms,
        )


# ── Focus ──────────────────────────────────────────────────────────────────

class EditSessionOut(BaseModel):
    token: str


# ── Audit ──────────────────────────────────────────────────────────────────

class AuditEntryOut(BaseModel):
    id: Optional[int]
    timestamp: float
    event_type: str
    mode: str
    trigger: str
    confidence: str
    payload_json: str


class OverrideStatsOut(BaseModel):
    plan_renders: int
    mode_switches: int
    manual_overrides: int
    override_rate: float = Field(..., ge=0.0)
    overrides_by_mode: Dict[str, int]
