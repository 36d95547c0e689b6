"""
FastAPI application — local mode selection API.
Runs on http://127.0.0.1:8766 by default.

The engine and audit timeline live on app.state so that each call to
create_app() produces a fully independent session with no shared
module-level globals. This makes test isolation straightforward.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ..audit.timeline import AuditTimeline
from ..config import Config, config
from ..rules.engine import RulesEngine


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(cfg: Optional[Config] = None) -> FastAPI:
    cfg = cfg or config

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.config = cfg
        app.state.timeline = AuditTimeline(cfg.audit_db_path)
        app.state.engine = RulesEngine(cfg.timing(), audit=app.state.timeline)
        yield
        app.state.engine.close()

    app = FastAPI(
        title="Mode Selection Engine",
        description="Calendar-aware view selection with stability gating",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000", "null"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from .routers import audit, focus, mode

    app.include_router(mode.router)
    app.include_router(focus.router)
    app.include_router(audit.router)

    @app.get("/health")
    def health(request: Request):
        engine = getattr(request.app.state, "engine", None)
        state = engine.stability_state() if engine else None
        return {
            "status": "ok",
            "version": "0.1.0",
            "mode": state.current_mode.value if state else None,
        }

    return app


app = create_app()
