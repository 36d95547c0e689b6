"""
Stability Gate — decides whether a proposed mode switch may happen now.

Guards run in a fixed order and the first failure wins:
  1. trigger allow-list   (focus/blur, polling, tab visibility never switch)
  2. mid-edit lockout     (an open EditSession blocks every switch)
  3. minimum hold         (hysteresis since the last committed switch)
  4. no-op                (already in the proposed mode)

Input focus is tracked with scoped EditSession tokens rather than a bare
boolean: opening a new session supersedes the previous one, so a lost blur
event cannot leave the gate locked.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, replace
from typing import Optional, Union

from .types import (
    ALLOWED_TRIGGERS,
    BLOCKED_TRIGGERS,
    DEFAULT_TIMING_CONFIG,
    BlockedBy,
    Mode,
    StabilityState,
    SwitchTrigger,
)

TriggerLike = Union[SwitchTrigger, str]


@dataclass(frozen=True)
class SwitchCheck:
    allowed: bool
    reason: str
    blocked_by: Optional[BlockedBy] = None


class EditSession:
    """Token held while the user edits a field. Release on blur, submit or cancel."""

    def __init__(self, gate: "StabilityGate"):
        self.token = uuid.uuid4().hex
        self._gate = gate

    def release(self) -> bool:
        return self._gate.end_edit(self.token)

    def __enter__(self) -> "EditSession":
        return self

    def __exit__(self, *exc) -> None:
        self.release()


class StabilityGate:

    def __init__(self, minimum_hold_ms: int = DEFAULT_TIMING_CONFIG.minimum_hold_ms):
        self.minimum_hold_ms = minimum_hold_ms
        self.state: Optional[StabilityState] = None
        self._edit: Optional[EditSession] = None

    @property
    def initialized(self) -> bool:
        return self.state is not None

    @property
    def is_input_focused(self) -> bool:
        return self._edit is not None

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def initialize(self, mode: Mode, plan_id: str, now: int) -> StabilityState:
        self.state = StabilityState(
            current_mode=mode,
            current_plan_id=plan_id,
            last_switch_time=now,
            is_input_focused=self.is_input_focused,
            minimum_hold_ms=self.minimum_hold_ms,
        )
        return self.state

    def after_switch(self, mode: Mode, plan_id: str, now: int) -> StabilityState:
        """Commit a switch; restarts the hold timer."""
        if self.state is None:
            return self.initialize(mode, plan_id, now)
        self.state = replace(
            self.state,
            current_mode=mode,
            current_plan_id=plan_id,
            last_switch_time=now,
        )
        return self.state

    def begin_edit(self) -> EditSession:
        self._edit = EditSession(self)
        self._sync_focus()
        return self._edit

    def end_edit(self, token: str) -> bool:
        """Release an edit session. Stale or unknown tokens are ignored."""
        if self._edit is None or self._edit.token != token:
            return False
        self._edit = None
        self._sync_focus()
        return True

    def _sync_focus(self) -> None:
        if self.state is not None:
            self.state = replace(self.state, is_input_focused=self.is_input_focused)

    # ------------------------------------------------------------------
    # Guard
    # ------------------------------------------------------------------

    def can_switch(self, proposed_mode: Mode, trigger: TriggerLike, now: int) -> SwitchCheck:
        if self.state is None:
            raise RuntimeError("StabilityGate.can_switch called before initialize()")

        name = trigger_name(trigger)
        if name in BLOCKED_TRIGGERS:
            return SwitchCheck(
                allowed=False,
                reason=f'Trigger "{name}" is not allowed for auto-switches',
                blocked_by=BlockedBy.BLOCKED_TRIGGER,
            )
        if name not in ALLOWED_TRIGGERS:
            return SwitchCheck(
                allowed=False,
                reason=f'Unknown trigger "{name}"',
                blocked_by=BlockedBy.BLOCKED_TRIGGER,
            )

        if self.is_input_focused:
            return SwitchCheck(
                allowed=False,
                reason="Cannot switch while user is typing",
                blocked_by=BlockedBy.INPUT_FOCUS,
            )

        elapsed = now - self.state.last_switch_time
        if elapsed < self.state.minimum_hold_ms:
            remaining_s = math.ceil((self.state.minimum_hold_ms - elapsed) / 1000)
            return SwitchCheck(
                allowed=False,
                reason=f"Minimum hold time not met ({remaining_s}s remaining)",
                blocked_by=BlockedBy.MINIMUM_HOLD,
            )

        if proposed_mode == self.state.current_mode:
            return SwitchCheck(allowed=False, reason="Already in this mode")

        return SwitchCheck(allowed=True, reason=f"Switch allowed via {name}")


def trigger_name(trigger: TriggerLike) -> str:
    return trigger.value if isinstance(trigger, SwitchTrigger) else str(trigger)


def is_user_initiated(trigger: TriggerLike) -> bool:
    return trigger_name(trigger) == SwitchTrigger.EXPLICIT_USER_ACTION.value


def is_meeting_boundary(trigger: TriggerLike) -> bool:
    return trigger_name(trigger) == SwitchTrigger.MEETING_BOUNDARY_CHANGE.value


_BLOCKED_MESSAGES = {
    BlockedBy.INPUT_FOCUS: "Waiting for you to finish typing...",
    BlockedBy.MINIMUM_HOLD: "Briefly holding current view...",
    BlockedBy.BLOCKED_TRIGGER: "This type of change is not allowed",
}


def blocked_reason_message(check: SwitchCheck) -> str:
    """User-facing copy for a denied switch."""
    if check.allowed:
        return ""
    if check.blocked_by is None:
        return check.reason
    return _BLOCKED_MESSAGES[check.blocked_by]
