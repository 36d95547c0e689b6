"""
Mode Selector — priority-based mode selection over a MeetingContext.

Priority order: CAPTURE > PREP > SYNTHESIS > NEUTRAL
The reserved agentic work surface (priority 0) is never a candidate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .context_engine import format_duration, time_since_meeting_ended, time_until_meeting
from .types import (
    DEFAULT_TIMING_CONFIG,
    MODE_PRIORITY,
    Alternative,
    Confidence,
    MeetingContext,
    Mode,
    ModeSelectionResult,
    TimingConfig,
)

MAX_ALTERNATIVES = 3

# Returned only when candidate collection yields nothing. Neutral is always
# injected, so this is a guard rather than a live path. Analytics key off
# these strings: do not reword them.
NO_CONTEXT_RESULT = ModeSelectionResult(
    mode=Mode.NEUTRAL_INTENT,
    confidence=Confidence.LOW,
    reason="No meetings scheduled or recently ended",
    trigger="no_context",
)


@dataclass(frozen=True)
class _ModeCandidate:
    mode: Mode
    priority: int
    trigger: str
    reason: str


def select_mode(
    context: MeetingContext,
    config: TimingConfig = DEFAULT_TIMING_CONFIG,
) -> ModeSelectionResult:
    candidates = _collect_candidates(context, config)
    if not candidates:
        return NO_CONTEXT_RESULT

    candidates.sort(key=lambda c: c.priority, reverse=True)
    winner = candidates[0]
    return ModeSelectionResult(
        mode=winner.mode,
        confidence=_assign_confidence(winner, candidates, context),
        reason=winner.reason,
        trigger=winner.trigger,
    )


def _collect_candidates(context: MeetingContext, config: TimingConfig) -> List[_ModeCandidate]:
    candidates: List[_ModeCandidate] = []
    now = context.now

    if context.current_meeting:
        candidates.append(_ModeCandidate(
            mode=Mode.MEETING_CAPTURE,
            priority=MODE_PRIORITY[Mode.MEETING_CAPTURE],
            trigger="meeting_live",
            reason=f'"{context.current_meeting.title}" is in progress',
        ))

    if context.next_meeting:
        until = time_until_meeting(context.next_meeting, now)
        candidates.append(_ModeCandidate(
            mode=Mode.MEETING_PREP,
            priority=MODE_PRIORITY[Mode.MEETING_PREP],
            trigger="meeting_upcoming",
            reason=f'"{context.next_meeting.title}" starts in {format_duration(until)}',
        ))

    if context.last_meeting:
        since = time_since_meeting_ended(context.last_meeting, now)
        candidates.append(_ModeCandidate(
            mode=Mode.MEETING_SYNTHESIS_MIN,
            priority=MODE_PRIORITY[Mode.MEETING_SYNTHESIS_MIN],
            trigger="meeting_ended",
            reason=f'"{context.last_meeting.title}" ended {format_duration(since)} ago',
        ))

    candidates.append(_ModeCandidate(
        mode=Mode.NEUTRAL_INTENT,
        priority=MODE_PRIORITY[Mode.NEUTRAL_INTENT],
        trigger="default",
        reason="No immediate meeting context",
    ))
    return candidates


def _assign_confidence(
    winner: _ModeCandidate,
    candidates: List[_ModeCandidate],
    context: MeetingContext,
) -> Confidence:
    """
    HIGH   — live capture, a lone trigger, or a winner 2+ levels clear
    MEDIUM — a competing trigger exactly one level below the winner
    LOW    — neutral, or nothing conclusive
    """
    # A live meeting is never diluted by a competing prep/synthesis signal.
    if winner.mode == Mode.MEETING_CAPTURE and context.current_meeting:
        return Confidence.HIGH

    competing = [
        c for c in candidates
        if c.mode != Mode.NEUTRAL_INTENT and c.mode != winner.mode
    ]

    if not competing:
        if winner.mode != Mode.NEUTRAL_INTENT:
            return Confidence.HIGH
        return Confidence.LOW

    gap = winner.priority - max(c.priority for c in competing)
    if gap >= 2:
        return Confidence.HIGH
    if gap == 1:
        return Confidence.MEDIUM
    return Confidence.LOW


def get_alternatives(
    context: MeetingContext,
    selected_mode: Mode,
    config: TimingConfig = DEFAULT_TIMING_CONFIG,
) -> List[Alternative]:
    """Non-neutral candidates that lost to `selected_mode`, at most three."""
    return [
        Alternative(mode=c.mode, reason=c.reason)
        for c in _collect_candidates(context, config)
        if c.mode != selected_mode and c.mode != Mode.NEUTRAL_INTENT
    ][:MAX_ALTERNATIVES]


def get_would_change_conditions(
    selected_mode: Mode,
    context: MeetingContext,
    config: TimingConfig = DEFAULT_TIMING_CONFIG,
) -> List[str]:
    prep = _minutes(config.prep_window_minutes)
    synthesis = _minutes(config.synthesis_window_minutes)

    if selected_mode == Mode.NEUTRAL_INTENT:
        return [
            f"A meeting appears on your calendar within {prep} minutes",
            "You explicitly set an intent",
        ]
    if selected_mode == Mode.MEETING_PREP:
        conditions = [
            "The meeting starts (switches to Capture)",
            "You manually switch to another mode",
        ]
        if context.last_meeting:
            conditions.append("You choose to review the previous meeting instead")
        return conditions
    if selected_mode == Mode.MEETING_CAPTURE:
        return [
            "The meeting ends (switches to Synthesis)",
            "You manually switch to another mode",
        ]
    if selected_mode == Mode.MEETING_SYNTHESIS_MIN:
        return [
            f"{synthesis} minutes pass since the meeting ended",
            "A new meeting appears within prep window",
            "You manually switch to Neutral",
        ]
    return []


def get_signals_used(context: MeetingContext) -> List[str]:
    signals: List[str] = []

    if context.current_meeting:
        signals.append(f'Live meeting: "{context.current_meeting.title}"')

    if context.next_meeting:
        until = time_until_meeting(context.next_meeting, context.now)
        signals.append(f'Upcoming: "{context.next_meeting.title}" in {format_duration(until)}')

    if context.last_meeting:
        since = time_since_meeting_ended(context.last_meeting, context.now)
        signals.append(f'Ended: "{context.last_meeting.title}" {format_duration(since)} ago')

    if not signals:
        signals.append("No calendar events in relevant windows")
    return signals


def _minutes(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)
