"""
Rules Engine — the stateful façade over the rules pipeline.

Per evaluation:
    context → selection → plan + capsule → stability gate → [commit] → audit

The engine owns its StabilityGate and is the only component with side
effects (through the injected AuditLog). Audit events are queued to a
single background worker in commit order, so a slow or failing sink never
delays a decision. Construct one engine per user session; there is no
shared module-level instance.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Iterable, Optional

from ..audit.port import MODE_SWITCHED, PLAN_RENDERED, AuditLog, NullAuditLog
from .capsule import generate_capsule, get_adjacency_suggestion
from .context_engine import compute_meeting_context
from .mode_selector import select_mode
from .stability import EditSession, StabilityGate, TriggerLike, trigger_name
from .types import (
    DEFAULT_TIMING_CONFIG,
    MODE_LABELS,
    MODE_LAYOUTS,
    CalendarEvent,
    Confidence,
    DecisionCapsule,
    EvaluationResult,
    Mode,
    Plan,
    StabilityState,
    SwitchTrigger,
    TimingConfig,
)

logger = logging.getLogger(__name__)


def _system_clock() -> int:
    return int(time.time() * 1000)


def _new_plan_id(now: int) -> str:
    return f"plan-{now}-{uuid.uuid4().hex[:5]}"


class RulesEngine:
    """
    Usage:
        engine = RulesEngine(TimingConfig(), audit=AuditTimeline(path))
        result = engine.evaluate(events, SwitchTrigger.APP_OPEN)
        if result.should_switch:
            render(result.plan)
        engine.close()

    Until the gate is seeded, the first evaluation commits whatever the
    trigger (even tab_visibility or background_poll). Seed it with
    initialize() or an app_open evaluation before relying on anti-jank.
    """

    def __init__(
        self,
        config: TimingConfig = DEFAULT_TIMING_CONFIG,
        audit: Optional[AuditLog] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        if not isinstance(config, TimingConfig):
            raise TypeError(f"config must be a TimingConfig, got {type(config).__name__}")
        self.config = config
        self._audit: AuditLog = audit if audit is not None else NullAuditLog()
        self._clock = clock or _system_clock
        self._gate = StabilityGate(config.minimum_hold_ms)
        # can_switch + after_switch is read-then-write; evaluations are serialized
        self._lock = threading.RLock()
        # one worker keeps audit delivery in commit order
        self._audit_pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="modeswitch-audit")

    # ------------------------------------------------------------------
    # Session state
    # ------------------------------------------------------------------

    def initialize(self, mode: Mode, plan_id: Optional[str] = None) -> StabilityState:
        """Seed the gate with the mode already on screen."""
        with self._lock:
            now = self._clock()
            return self._gate.initialize(Mode(mode), plan_id or _new_plan_id(now), now)

    def stability_state(self) -> Optional[StabilityState]:
        state = self._gate.state
        return None if state is None else StabilityState(**vars(state))

    def begin_edit(self) -> EditSession:
        with self._lock:
            return self._gate.begin_edit()

    def end_edit(self, token: str) -> bool:
        with self._lock:
            return self._gate.end_edit(token)

    @property
    def is_input_focused(self) -> bool:
        return self._gate.is_input_focused

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(self, events: Iterable[CalendarEvent], trigger: TriggerLike) -> EvaluationResult:
        trigger_value = trigger_name(trigger)

        with self._lock:
            now = self._clock()
            context = compute_meeting_context(events, now, self.config)
            selection = select_mode(context, self.config)

            plan_id = _new_plan_id(now)
            plan = self._create_plan(selection.mode, plan_id, selection.reason, selection.confidence, now)
            capsule = generate_capsule(selection, context, self.config)
            adjacency = get_adjacency_suggestion(selection.mode, context)

            blocked_reason = None
            blocked_by = None
            previous: Optional[Mode] = None

            if self._gate.initialized:
                previous = self._gate.state.current_mode
                check = self._gate.can_switch(selection.mode, trigger_value, now)
                should_switch = check.allowed
                if not check.allowed:
                    blocked_reason = check.reason
                    blocked_by = check.blocked_by
                    logger.debug(
                        "switch to %s blocked (%s): %s",
                        selection.mode.value, trigger_value, check.reason,
                    )
            else:
                # first evaluation of the session always lands
                should_switch = True

            if should_switch:
                self._gate.after_switch(selection.mode, plan_id, now)
                logger.info(
                    "mode %s → %s via %s (%s)",
                    previous.value if previous else None,
                    selection.mode.value, trigger_value, selection.confidence.value,
                )
                self._emit(MODE_SWITCHED, {
                    "from": previous.value if previous else None,
                    "to": selection.mode.value,
                    "trigger": trigger_value,
                    "reason": selection.reason,
                    "confidence": selection.confidence.value,
                })

            self._emit(PLAN_RENDERED, {
                "plan_id": plan_id,
                "mode": selection.mode.value,
                "confidence": selection.confidence.value,
            })

        return EvaluationResult(
            plan=plan,
            capsule=capsule,
            should_switch=should_switch,
            blocked_reason=blocked_reason,
            blocked_by=blocked_by,
            adjacency_suggestion=adjacency,
        )

    def force_mode(self, mode: Mode, events: Iterable[CalendarEvent]) -> EvaluationResult:
        """User-chosen mode. Bypasses every stability guard."""
        mode = Mode(mode)

        with self._lock:
            now = self._clock()
            context = compute_meeting_context(events, now, self.config)

            plan_id = _new_plan_id(now)
            plan = self._create_plan(mode, plan_id, "User selected this mode", Confidence.HIGH, now)
            capsule = DecisionCapsule(
                view_label=MODE_LABELS[mode],
                confidence=Confidence.HIGH,
                reason="You selected this mode",
                signals_used=["User selection"],
                alternatives_considered=[],
                would_change_if=["You switch to another mode", "A meeting boundary changes"],
                actions=[],
            )

            previous = self._gate.state.current_mode if self._gate.initialized else None
            self._gate.after_switch(mode, plan_id, now)
            logger.info("mode %s → %s forced by user", previous.value if previous else None, mode.value)

            self._emit(MODE_SWITCHED, {
                "from": previous.value if previous else None,
                "to": mode.value,
                "trigger": SwitchTrigger.EXPLICIT_USER_ACTION.value,
                "reason": "User selected mode",
                "confidence": Confidence.HIGH.value,
            })

        return EvaluationResult(
            plan=plan,
            capsule=capsule,
            should_switch=True,
            adjacency_suggestion=get_adjacency_suggestion(mode, context),
        )

    async def evaluate_async(self, events: Iterable[CalendarEvent], trigger: TriggerLike) -> EvaluationResult:
        """Non-blocking evaluation from async contexts (request handlers)."""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self.evaluate, list(events), trigger)

    async def force_mode_async(self, mode: Mode, events: Iterable[CalendarEvent]) -> EvaluationResult:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self.force_mode, mode, list(events))

    # ------------------------------------------------------------------
    # Audit delivery
    # ------------------------------------------------------------------

    def flush_audit(self, timeout: Optional[float] = None) -> None:
        """Block until every audit event queued so far has been delivered."""
        # the worker is FIFO, so a no-op finishing means everything before it has
        self._audit_pool.submit(lambda: None).result(timeout)

    def close(self) -> None:
        """Deliver pending audit events and stop the worker."""
        self._audit_pool.shutdown(wait=True)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _create_plan(
        self,
        mode: Mode,
        plan_id: str,
        reason: str,
        confidence: Confidence,
        now: int,
    ) -> Plan:
        return Plan(
            id=plan_id,
            mode=mode,
            layout=MODE_LAYOUTS[mode],
            reason=reason,
            confidence=confidence,
            timestamp=now,
        )

    def _emit(self, event_type: str, payload: Dict[str, Any]) -> None:
        # enqueue only; called under the lock so queue order is commit order
        try:
            self._audit_pool.submit(self._deliver, event_type, payload)
        except RuntimeError:
            logger.warning("audit worker closed, dropping %s", event_type)

    def _deliver(self, event_type: str, payload: Dict[str, Any]) -> None:
        try:
            self._audit.log_event(event_type, payload)
        except Exception:
            logger.warning("audit log failed for %s", event_type, exc_info=True)
