# mapchat/routers/chat.py
# -*- coding: utf-8 -*-
"""
RealMap AI Chat Server — /api/chat router
-----------------------------------------
HTTP endpoints the map UI calls.

Flow:
  HTTP POST /api/chat  (ChatRequest JSON from the browser)
    -> TurnOrchestrator.handle_message(...)
       - loads the session history (or starts a new one)
       - folds map context + command reminder into the user turn
       - calls the completion provider
       - stores the exchange and trims the history
       - extracts [LOCATION_SEARCH] / [CAMERA_ACTION] commands
    -> ChatResponse JSON (response, locationSearch, cameraAction, sessionId)

  HTTP POST /api/chat/reset
    -> TurnOrchestrator.handle_reset(...) -> ResetResponse JSON

Error mapping:
  InvalidInputError -> 400 {"error": "Message is required"}
  ProviderError     -> 500 {"error": "Failed to get AI response", "details": ...}
  request timeout   -> 500, same shape, session unchanged
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from mapchat.core.orchestrator import InvalidInputError, TurnOrchestrator
from mapchat.models.chat_request import ChatRequest, ResetRequest
from mapchat.models.chat_response import ChatResponse, ErrorResponse, ResetResponse
from mapchat.providers.completion import ProviderError

router = APIRouter(prefix="/api/chat", tags=["chat"])
logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Failed to get AI response"


def get_orchestrator(request: Request) -> TurnOrchestrator:
    """The orchestrator built by create_app() for this process."""
    return request.app.state.orchestrator


def _error(status_code: int, error: str, details: object = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
    )


@router.post(
    "",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def chat_endpoint(body: ChatRequest, request: Request):
    """
    Main chat endpoint for the map assistant.

    - Input JSON is validated as ChatRequest by Pydantic.
    - The orchestrator runs one turn under the session's lock.
    - The whole turn is bounded by settings.chat_timeout_s.
    """
    orchestrator = get_orchestrator(request)
    settings = request.app.state.settings

    logger.info(
        "[/api/chat] session_id=%s map_context=%s text=%r",
        body.session_id,
        body.map_context is not None,
        (body.message or "")[:80],
    )

    try:
        result = await asyncio.wait_for(
            orchestrator.handle_message(body.session_id, body.message, body.map_context),
            timeout=settings.chat_timeout_s,
        )
    except InvalidInputError as exc:
        return _error(400, str(exc))
    except ProviderError as exc:
        return _error(500, FAILURE_MESSAGE, exc.detail)
    except asyncio.TimeoutError:
        logger.warning(
            "[/api/chat] Timed out after %.1f s (session_id=%s)",
            settings.chat_timeout_s,
            body.session_id,
        )
        return _error(
            500,
            FAILURE_MESSAGE,
            f"Request timed out after {settings.chat_timeout_s:g} s",
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unhandled exception in /api/chat endpoint")
        if settings.debug:
            raise
        return _error(500, FAILURE_MESSAGE, str(exc))

    logger.info(
        "[/api/chat] session_id=%s location=%s camera=%s",
        result.session_id,
        result.location.query if result.location else None,
        result.camera.type if result.camera else None,
    )
    return ChatResponse.from_turn(result, model=orchestrator.gateway.model)


@router.post("/reset", response_model=ResetResponse)
async def reset_endpoint(request: Request, body: ResetRequest | None = None) -> ResetResponse:
    """Forget the session's history. Always succeeds."""
    orchestrator = get_orchestrator(request)
    session_id = orchestrator.handle_reset(body.session_id if body else None)
    return ResetResponse(session_id=session_id)
