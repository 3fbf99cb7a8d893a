# mapchat/main.py
# -*- coding: utf-8 -*-
"""
RealMap AI Chat Server — FastAPI application entrypoint
-------------------------------------------------------
This file wires everything together:

- Sets up central logging.
- Builds the process-wide SessionStore, the CompletionGateway and the
  TurnOrchestrator, and hangs them on app.state.
- Adds middleware (CORS for dev).
- Mounts routers:
    * /api/chat        (HTTP) → one conversational turn
    * /api/chat/reset  (HTTP) → forget a session's history
- Exposes /health and / meta endpoints.
- Exposes an ASGI `app` object for uvicorn.

Typical run command (dev), from llm_server/:

    uvicorn mapchat.main:app --host 0.0.0.0 --port 3001 --reload

"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mapchat.core.config import Settings, settings as default_settings
from mapchat.core.orchestrator import TurnOrchestrator
from mapchat.core.prompts import load_instruction_text
from mapchat.providers.completion import CompletionGateway
from mapchat.routers.chat import router as chat_router
from mapchat.runtime_state import SessionStore
from mapchat.utils import get_logger, setup_logging


# ---------------------------------------------------------------------------
# Global logging config
# ---------------------------------------------------------------------------
setup_logging(debug=default_settings.debug)
logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[CompletionGateway] = None,
) -> FastAPI:
    """
    Application factory.

    Parameters
    ----------
    settings:
        Configuration to use; defaults to the module-level settings.
    gateway:
        Completion gateway to use; defaults to one built from `settings`.
        Tests pass a fake here.
    """
    settings = settings or default_settings

    store = SessionStore(
        instruction=load_instruction_text(settings),
        max_turns=settings.max_session_turns,
    )
    gateway = gateway or CompletionGateway(settings)
    orchestrator = TurnOrchestrator(
        store,
        gateway,
        default_session_id=settings.default_session_id,
    )

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.store = store
    app.state.orchestrator = orchestrator

    # ------------------------------------------------------------------
    # CORS: the map UI runs on its own dev server port.
    # ------------------------------------------------------------------
    if settings.environment != "production":
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Schema errors use the same {"error", "details"} shape as the endpoints.
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning("Invalid request body on %s: %s", request.url.path, exc.errors())
        return JSONResponse(
            status_code=400,
            content={
                "error": "Invalid request body",
                "details": jsonable_errors(exc),
            },
        )

    app.include_router(chat_router)

    # ------------------------------------------------------------------
    # Meta / health endpoints
    # ------------------------------------------------------------------

    @app.get("/", tags=["meta"])
    async def root():
        """Simple root endpoint so you can quickly see the server is alive."""
        return {
            "name": settings.app_name,
            "environment": settings.environment,
            "message": "RealMap AI chat server is running.",
        }

    @app.get("/health", tags=["meta"])
    async def health_check():
        """Lightweight health check for the UI / monitoring scripts."""
        return {
            "status": "ok",
            "model": gateway.model,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    logger.info(
        "FastAPI app created (env=%s, provider=%s, model=%s, max_session_turns=%d)",
        settings.environment,
        settings.provider,
        settings.model_name,
        settings.max_session_turns,
    )
    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    """exc.errors() minus the parts that are not JSON-serializable (ctx)."""
    return [
        {key: err[key] for key in ("type", "loc", "msg") if key in err}
        for err in exc.errors()
    ]


# ASGI app for uvicorn / gunicorn
app = create_app()


if __name__ == "__main__":
    """
    Allow `python3 -m mapchat.main` during development.

    In production you normally use:

        uvicorn mapchat.main:app --host 0.0.0.0 --port 3001
    """
    import uvicorn

    uvicorn.run(
        "mapchat.main:app",
        host=default_settings.api_host,
        port=default_settings.api_port,
        reload=(default_settings.environment != "production"),
    )
