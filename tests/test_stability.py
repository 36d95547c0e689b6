"""Tests for the stability gate: trigger allow-list, edit lockout, hold timer."""

import pytest

from modeswitch.rules.stability import (
    StabilityGate,
    SwitchCheck,
    blocked_reason_message,
    is_meeting_boundary,
    is_user_initiated,
)
from modeswitch.rules.types import BlockedBy, Mode, SwitchTrigger

T = 1_760_000_000_000


def _gate(mode: Mode = Mode.NEUTRAL_INTENT, hold_ms: int = 5000) -> StabilityGate:
    gate = StabilityGate(minimum_hold_ms=hold_ms)
    gate.initialize(mode, "plan-initial", T)
    return gate


class TestTriggers:

    @pytest.mark.parametrize("trigger", ["blur_focus", "idle_timeout", "background_poll", "tab_visibility"])
    def test_anti_jank_triggers_blocked(self, trigger):
        check = _gate().can_switch(Mode.MEETING_PREP, trigger, T + 60_000)
        assert not check.allowed
        assert check.blocked_by == BlockedBy.BLOCKED_TRIGGER
        assert trigger in check.reason

    def test_unknown_trigger_fails_closed(self):
        check = _gate().can_switch(Mode.MEETING_PREP, "mouse_wiggle", T + 60_000)
        assert not check.allowed
        assert check.blocked_by == BlockedBy.BLOCKED_TRIGGER
        assert check.reason == 'Unknown trigger "mouse_wiggle"'

    @pytest.mark.parametrize("trigger", list(SwitchTrigger)[:3])
    def test_allowed_triggers_pass(self, trigger):
        check = _gate().can_switch(Mode.MEETING_PREP, trigger, T + 60_000)
        assert check.allowed
        assert check.reason == f"Switch allowed via {trigger.value}"

    def test_blocked_trigger_checked_before_hold(self):
        # inside the hold window, the trigger is still what blocks
        check = _gate().can_switch(Mode.MEETING_PREP, SwitchTrigger.TAB_VISIBILITY, T + 1)
        assert check.blocked_by == BlockedBy.BLOCKED_TRIGGER


class TestEditLockout:

    def test_open_session_blocks(self):
        gate = _gate()
        gate.begin_edit()
        check = gate.can_switch(Mode.MEETING_PREP, SwitchTrigger.EXPLICIT_USER_ACTION, T + 60_000)
        assert not check.allowed
        assert check.blocked_by == BlockedBy.INPUT_FOCUS
        assert check.reason == "Cannot switch while user is typing"

    def test_release_unblocks(self):
        gate = _gate()
        session = gate.begin_edit()
        assert session.release() is True
        assert gate.can_switch(Mode.MEETING_PREP, SwitchTrigger.APP_OPEN, T + 60_000).allowed

    def test_context_manager_releases(self):
        gate = _gate()
        with gate.begin_edit():
            assert gate.is_input_focused
            assert gate.state.is_input_focused
        assert not gate.is_input_focused
        assert not gate.state.is_input_focused

    def test_new_session_supersedes_missed_blur(self):
        gate = _gate()
        first = gate.begin_edit()
        second = gate.begin_edit()
        # the first field's blur never arrived; releasing the second is enough
        assert second.release() is True
        assert not gate.is_input_focused
        assert first.release() is False

    def test_stale_token_does_not_unlock(self):
        gate = _gate()
        first = gate.begin_edit()
        gate.begin_edit()
        assert gate.end_edit(first.token) is False
        assert gate.is_input_focused

    def test_double_release_is_noop(self):
        gate = _gate()
        session = gate.begin_edit()
        assert session.release() is True
        assert session.release() is False

    def test_focus_before_initialize_carries_over(self):
        gate = StabilityGate()
        gate.begin_edit()
        state = gate.initialize(Mode.NEUTRAL_INTENT, "p", T)
        assert state.is_input_focused


class TestMinimumHold:

    def test_blocks_inside_hold(self):
        check = _gate().can_switch(Mode.MEETING_CAPTURE, SwitchTrigger.MEETING_BOUNDARY_CHANGE, T + 2000)
        assert not check.allowed
        assert check.blocked_by == BlockedBy.MINIMUM_HOLD
        assert check.reason == "Minimum hold time not met (3s remaining)"

    def test_remaining_rounds_up(self):
        check = _gate().can_switch(Mode.MEETING_CAPTURE, SwitchTrigger.APP_OPEN, T + 4999)
        assert check.reason == "Minimum hold time not met (1s remaining)"

    def test_allows_at_hold_boundary(self):
        assert _gate().can_switch(Mode.MEETING_CAPTURE, SwitchTrigger.APP_OPEN, T + 5000).allowed

    def test_after_switch_restarts_hold(self):
        gate = _gate()
        gate.after_switch(Mode.MEETING_PREP, "plan-2", T + 10_000)
        check = gate.can_switch(Mode.MEETING_CAPTURE, SwitchTrigger.APP_OPEN, T + 12_000)
        assert check.blocked_by == BlockedBy.MINIMUM_HOLD
        assert gate.state.current_mode == Mode.MEETING_PREP
        assert gate.state.current_plan_id == "plan-2"
        assert gate.state.last_switch_time == T + 10_000

    def test_user_action_still_respects_hold(self):
        check = _gate().can_switch(Mode.MEETING_PREP, SwitchTrigger.EXPLICIT_USER_ACTION, T + 100)
        assert check.blocked_by == BlockedBy.MINIMUM_HOLD

    def test_zero_hold(self):
        assert _gate(hold_ms=0).can_switch(Mode.MEETING_PREP, SwitchTrigger.APP_OPEN, T).allowed


class TestNoop:

    def test_same_mode_denied_without_blocker(self):
        check = _gate(Mode.MEETING_PREP).can_switch(Mode.MEETING_PREP, SwitchTrigger.APP_OPEN, T + 60_000)
        assert not check.allowed
        assert check.reason == "Already in this mode"
        assert check.blocked_by is None

    def test_uninitialized_gate_raises(self):
        with pytest.raises(RuntimeError):
            StabilityGate().can_switch(Mode.MEETING_PREP, SwitchTrigger.APP_OPEN, T)


class TestHelpers:

    def test_trigger_classification(self):
        assert is_user_initiated(SwitchTrigger.EXPLICIT_USER_ACTION)
        assert is_user_initiated("explicit_user_action")
        assert not is_user_initiated(SwitchTrigger.APP_OPEN)
        assert is_meeting_boundary("meeting_boundary_change")
        assert not is_meeting_boundary(SwitchTrigger.BACKGROUND_POLL)

    @pytest.mark.parametrize("blocked_by, message", [
        (BlockedBy.INPUT_FOCUS, "Waiting for you to finish typing..."),
        (BlockedBy.MINIMUM_HOLD, "Briefly holding current view..."),
        (BlockedBy.BLOCKED_TRIGGER, "This type of change is not allowed"),
    ])
    def test_blocked_reason_message(self, blocked_by, message):
        assert blocked_reason_message(SwitchCheck(False, "x", blocked_by)) == message

    def test_blocked_reason_message_falls_back_to_reason(self):
        assert blocked_reason_message(SwitchCheck(False, "Already in this mode")) == "Already in this mode"
        assert blocked_reason_message(SwitchCheck(True, "ok")) == ""
