"""
Rules Engine Types — shared vocabulary for mode selection.

Timestamps are epoch milliseconds throughout; calendar collaborators are
expected to hand over events already normalized to that shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from numbers import Real
from typing import Any, Dict, List, Mapping, Optional, Tuple


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Mode(str, Enum):
    NEUTRAL_INTENT = "neutral_intent"
    MEETING_PREP = "meeting_prep"
    MEETING_CAPTURE = "meeting_capture"
    MEETING_SYNTHESIS_MIN = "meeting_synthesis_min"
    # Reserved: never auto-selected, but a valid target for force_mode.
    AGENTIC_WORK_SURFACE = "agentic_work_surface"


class Confidence(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class LayoutHint(str, Enum):
    STACK = "stack"      # single column
    SPLIT = "split"      # context left / action right
    SINGLE = "single"    # minimal canvas


class SwitchTrigger(str, Enum):
    APP_OPEN = "app_open"
    MEETING_BOUNDARY_CHANGE = "meeting_boundary_change"
    EXPLICIT_USER_ACTION = "explicit_user_action"
    BLUR_FOCUS = "blur_focus"
    IDLE_TIMEOUT = "idle_timeout"
    BACKGROUND_POLL = "background_poll"
    TAB_VISIBILITY = "tab_visibility"


class BlockedBy(str, Enum):
    BLOCKED_TRIGGER = "blocked_trigger"
    INPUT_FOCUS = "input_focus"
    MINIMUM_HOLD = "minimum_hold"


ALLOWED_TRIGGERS: Tuple[str, ...] = (
    SwitchTrigger.APP_OPEN.value,
    SwitchTrigger.MEETING_BOUNDARY_CHANGE.value,
    SwitchTrigger.EXPLICIT_USER_ACTION.value,
)

BLOCKED_TRIGGERS: Tuple[str, ...] = (
    SwitchTrigger.BLUR_FOCUS.value,
    SwitchTrigger.IDLE_TIMEOUT.value,
    SwitchTrigger.BACKGROUND_POLL.value,
    SwitchTrigger.TAB_VISIBILITY.value,
)


# Higher number = higher priority
MODE_PRIORITY: Dict[Mode, int] = {
    Mode.MEETING_CAPTURE: 4,
    Mode.MEETING_PREP: 3,
    Mode.MEETING_SYNTHESIS_MIN: 2,
    Mode.NEUTRAL_INTENT: 1,
    Mode.AGENTIC_WORK_SURFACE: 0,
}

MODE_LABELS: Dict[Mode, str] = {
    Mode.NEUTRAL_INTENT: "Neutral",
    Mode.MEETING_PREP: "Meeting Prep",
    Mode.MEETING_CAPTURE: "Live Capture",
    Mode.MEETING_SYNTHESIS_MIN: "Synthesis",
    Mode.AGENTIC_WORK_SURFACE: "Agentic Workspace",
}

MODE_LAYOUTS: Dict[Mode, LayoutHint] = {
    Mode.NEUTRAL_INTENT: LayoutHint.STACK,
    Mode.MEETING_PREP: LayoutHint.SPLIT,
    Mode.MEETING_CAPTURE: LayoutHint.SINGLE,
    Mode.MEETING_SYNTHESIS_MIN: LayoutHint.STACK,
    Mode.AGENTIC_WORK_SURFACE: LayoutHint.STACK,
}


# ---------------------------------------------------------------------------
# Calendar + timing
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CalendarEvent:
    id: str
    title: str
    start_time: int              # epoch ms
    end_time: int                # epoch ms
    attendees: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CalendarEvent":
        """Build from a normalized calendar payload (camelCase or snake_case keys)."""
        start = data["startTime"] if "startTime" in data else data["start_time"]
        end = data["endTime"] if "endTime" in data else data["end_time"]
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            start_time=int(start),
            end_time=int(end),
            attendees=tuple(data.get("attendees") or ()),
        )


@dataclass(frozen=True)
class TimingConfig:
    prep_window_minutes: float = 45
    synthesis_window_minutes: float = 60
    meeting_grace_minutes: float = 2
    minimum_hold_ms: int = 5000

    def __post_init__(self):
        for name in (
            "prep_window_minutes",
            "synthesis_window_minutes",
            "meeting_grace_minutes",
            "minimum_hold_ms",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, Real):
                raise TypeError(f"{name} must be a number, got {value!r}")
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value!r}")

    @property
    def prep_window_ms(self) -> int:
        return int(self.prep_window_minutes * 60_000)

    @property
    def synthesis_window_ms(self) -> int:
        return int(self.synthesis_window_minutes * 60_000)

    @property
    def grace_ms(self) -> int:
        return int(self.meeting_grace_minutes * 60_000)


DEFAULT_TIMING_CONFIG = TimingConfig()


@dataclass(frozen=True)
class MeetingContext:
    current_meeting: Optional[CalendarEvent]   # live (with grace)
    next_meeting: Optional[CalendarEvent]      # within prep window
    last_meeting: Optional[CalendarEvent]      # within synthesis window
    now: int


# ---------------------------------------------------------------------------
# Selection, stability, explanation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ModeSelectionResult:
    mode: Mode
    confidence: Confidence
    reason: str
    trigger: str


@dataclass
class StabilityState:
    current_mode: Mode
    current_plan_id: str
    last_switch_time: int
    is_input_focused: bool = False
    minimum_hold_ms: int = DEFAULT_TIMING_CONFIG.minimum_hold_ms


@dataclass(frozen=True)
class Plan:
    """Render-plan stub. Component lists are looked up from `mode` elsewhere."""
    id: str
    mode: Mode
    layout: LayoutHint
    reason: str
    confidence: Confidence
    timestamp: int


@dataclass(frozen=True)
class Alternative:
    mode: Mode
    reason: str


@dataclass(frozen=True)
class CapsuleAction:
    type: str                        # "switch_view" | "set_intent"
    label: str
    target: Optional[Mode] = None


@dataclass(frozen=True)
class DecisionCapsule:
    view_label: str
    confidence: Confidence
    reason: str
    signals_used: List[str] = field(default_factory=list)
    alternatives_considered: List[Alternative] = field(default_factory=list)
    would_change_if: List[str] = field(default_factory=list)
    actions: List[CapsuleAction] = field(default_factory=list)


@dataclass(frozen=True)
class AdjacencySuggestion:
    label: str
    target_mode: Mode
    reason: str


@dataclass(frozen=True)
class EvaluationResult:
    plan: Plan
    capsule: DecisionCapsule
    should_switch: bool
    blocked_reason: Optional[str] = None
    blocked_by: Optional[BlockedBy] = None
    adjacency_suggestion: Optional[AdjacencySuggestion] = None
