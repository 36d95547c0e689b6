"""
Context Engine — derives the current / next / last meeting view from a
list of calendar events relative to a clock reading.

Pure functions only: no clock reads, no side effects. The context is
recomputed from scratch on every evaluation.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .types import DEFAULT_TIMING_CONFIG, CalendarEvent, MeetingContext, TimingConfig


def compute_meeting_context(
    events: Iterable[CalendarEvent],
    now: int,
    config: TimingConfig = DEFAULT_TIMING_CONFIG,
) -> MeetingContext:
    """
    Resolve the three context slots.

    An event claims at most one slot: the live check runs first, then the
    upcoming check, then the recently-ended check.
    """
    grace_ms = config.grace_ms
    prep_window_ms = config.prep_window_ms
    synthesis_window_ms = config.synthesis_window_ms

    current: Optional[CalendarEvent] = None
    upcoming: Optional[CalendarEvent] = None
    last: Optional[CalendarEvent] = None

    for event in sorted(events, key=lambda e: e.start_time):
        start_with_grace = event.start_time - grace_ms
        end_with_grace = event.end_time + grace_ms

        if start_with_grace <= now <= end_with_grace:
            # overlapping live events: the later-starting one wins
            current = event
        elif now < event.start_time <= now + prep_window_ms:
            if upcoming is None or event.start_time < upcoming.start_time:
                upcoming = event
        elif now - synthesis_window_ms <= event.end_time < now:
            if last is None or event.end_time > last.end_time:
                last = event

    return MeetingContext(
        current_meeting=current,
        next_meeting=upcoming,
        last_meeting=last,
        now=now,
    )


def is_meeting_starting(event: CalendarEvent, now: int, grace_minutes: float = 2) -> bool:
    """True when the meeting starts within the grace period."""
    grace_ms = grace_minutes * 60_000
    return event.start_time - grace_ms <= now < event.start_time


def is_meeting_ending(event: CalendarEvent, now: int, grace_minutes: float = 2) -> bool:
    """True when the meeting ended within the grace period."""
    grace_ms = grace_minutes * 60_000
    return event.end_time < now <= event.end_time + grace_ms


def time_until_meeting(event: CalendarEvent, now: int) -> int:
    return max(0, event.start_time - now)


def time_since_meeting_ended(event: CalendarEvent, now: int) -> int:
    return max(0, now - event.end_time)


def format_duration(ms: int) -> str:
    """Format a duration as "20 min", "2 hr" or "1 hr 30 min"."""
    minutes = int(ms // 60_000)
    if minutes < 60:
        return f"{minutes} min"
    hours, remaining = divmod(minutes, 60)
    if remaining == 0:
        return f"{hours} hr"
    return f"{hours} hr {remaining} min"
