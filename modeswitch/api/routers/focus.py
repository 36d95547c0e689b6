"""
/focus — edit sessions that hold the mid-edit lockout.

The UI opens a session when an editable field gains focus and ends it on
blur, submit or cancel.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from ...api.schemas import EditSessionOut, EndEditRequest

router = APIRouter(prefix="/focus", tags=["focus"])


def _get_engine(request: Request):
    return request.app.state.engine


@router.post("/begin", response_model=EditSessionOut)
def begin_edit(engine=Depends(_get_engine)):
    session = engine.begin_edit()
    return EditSessionOut(token=session.token)


@router.post("/end")
def end_edit(req: EndEditRequest, engine=Depends(_get_engine)):
    if not engine.end_edit(req.token):
        raise HTTPException(status_code=404, detail="Edit session not found")
    return {"released": True}
