"""
/mode — evaluate the calendar context, force a user-chosen mode, inspect the gate.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ...api.schemas import EvaluateRequest, EvaluationOut, ForceModeRequest, StabilityStateOut

router = APIRouter(prefix="/mode", tags=["mode"])


def _get_engine(request: Request):
    return request.app.state.engine


@router.post("/evaluate", response_model=EvaluationOut)
async def evaluate(req: EvaluateRequest, engine=Depends(_get_engine)):
    """Run one evaluation cycle. Unknown triggers are answered with a blocked result."""
    result = await engine.evaluate_async([e.to_event() for e in req.events], req.trigger)
    return EvaluationOut.from_result(result)


@router.post("/force", response_model=EvaluationOut)
async def force(req: ForceModeRequest, engine=Depends(_get_engine)):
    """Switch to the user's chosen mode regardless of the stability guards."""
    result = await engine.force_mode_async(req.mode, [e.to_event() for e in req.events])
    return EvaluationOut.from_result(result)


@router.get("/state", response_model=StabilityStateOut)
def get_state(engine=Depends(_get_engine)):
    return StabilityStateOut.from_state(
        engine.stability_state(),
        minimum_hold_ms=engine.config.minimum_hold_ms,
        focused=engine.is_input_focused,
    )
