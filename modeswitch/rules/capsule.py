"""
Capsule Generator — builds the Decision Capsule behind "Why this view?".

Output depends only on the selection, context and config: the same inputs
always produce the same capsule.
"""

from __future__ import annotations

from typing import List, Optional

from .mode_selector import get_alternatives, get_signals_used, get_would_change_conditions
from .types import (
    DEFAULT_TIMING_CONFIG,
    MODE_LABELS,
    AdjacencySuggestion,
    Alternative,
    CapsuleAction,
    Confidence,
    DecisionCapsule,
    MeetingContext,
    Mode,
    ModeSelectionResult,
    TimingConfig,
)


def generate_capsule(
    selection: ModeSelectionResult,
    context: MeetingContext,
    config: TimingConfig = DEFAULT_TIMING_CONFIG,
) -> DecisionCapsule:
    alternatives = get_alternatives(context, selection.mode, config)
    return DecisionCapsule(
        view_label=MODE_LABELS[selection.mode],
        confidence=selection.confidence,
        reason=selection.reason,
        signals_used=get_signals_used(context),
        alternatives_considered=alternatives,
        would_change_if=get_would_change_conditions(selection.mode, context, config),
        actions=_generate_actions(selection.mode, alternatives),
    )


def _switch_action(mode: Mode, label: Optional[str] = None) -> CapsuleAction:
    return CapsuleAction(
        type="switch_view",
        label=label or f"Switch to {MODE_LABELS[mode]}",
        target=mode,
    )


def _generate_actions(current_mode: Mode, alternatives: List[Alternative]) -> List[CapsuleAction]:
    actions = [_switch_action(alt.mode) for alt in alternatives]
    surfaced = {alt.mode for alt in alternatives}

    if current_mode == Mode.NEUTRAL_INTENT:
        actions.append(CapsuleAction(type="set_intent", label="Set an intent for today"))
    elif current_mode == Mode.MEETING_PREP:
        if Mode.MEETING_SYNTHESIS_MIN not in surfaced:
            actions.append(_switch_action(Mode.MEETING_SYNTHESIS_MIN))
    elif current_mode == Mode.MEETING_SYNTHESIS_MIN:
        if Mode.NEUTRAL_INTENT not in surfaced:
            actions.append(_switch_action(Mode.NEUTRAL_INTENT, label="Done reviewing"))
    # capture keeps the surface quiet: alternatives only

    return actions


def get_adjacency_suggestion(
    selected_mode: Mode,
    context: MeetingContext,
) -> Optional[AdjacencySuggestion]:
    """
    One soft nudge towards the neighbouring meeting. Never affects the
    selected mode.
    """
    if selected_mode == Mode.MEETING_PREP and context.last_meeting:
        return AdjacencySuggestion(
            label="Review last meeting outcomes",
            target_mode=Mode.MEETING_SYNTHESIS_MIN,
            reason=(
                f'"{context.last_meeting.title}" recently ended. '
                "You can review it after prepping."
            ),
        )

    if selected_mode == Mode.MEETING_SYNTHESIS_MIN and context.next_meeting:
        return AdjacencySuggestion(
            label="Prep for upcoming meeting",
            target_mode=Mode.MEETING_PREP,
            reason=f'"{context.next_meeting.title}" is coming up soon.',
        )

    return None


def short_explanation(mode: Mode, context: MeetingContext) -> str:
    if mode == Mode.MEETING_CAPTURE:
        if context.current_meeting:
            return f'"{context.current_meeting.title}" is happening now'
        return "Meeting in progress"
    if mode == Mode.MEETING_PREP:
        if context.next_meeting:
            return f'Preparing for "{context.next_meeting.title}"'
        return "Upcoming meeting detected"
    if mode == Mode.MEETING_SYNTHESIS_MIN:
        if context.last_meeting:
            return f'Reviewing "{context.last_meeting.title}"'
        return "Recent meeting needs review"
    if mode == Mode.NEUTRAL_INTENT:
        return "No immediate meetings"
    return "Selecting best view"


_CONFIDENCE_COPY = {
    Confidence.HIGH: "Strong signal with no competing context",
    Confidence.MEDIUM: "Good signal but other options available",
    Confidence.LOW: "Weak signal, may want to choose manually",
}


def confidence_explanation(selection: ModeSelectionResult) -> str:
    return _CONFIDENCE_COPY.get(selection.confidence, "")
