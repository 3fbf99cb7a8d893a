# mapchat/core/orchestrator.py
# -*- coding: utf-8 -*-
"""
RealMap — Turn Orchestrator
---------------------------
High-level flow for handling a single chat message:

    message (+ map context) -> compose -> provider -> store -> extract -> TurnResult

Steps:
1. Reject an empty message (InvalidInputError) before touching any session.
2. Take the per-session lock and load (or create) the session history.
3. Compose the outbound turns (history + new user turn).
4. Call the completion provider in the thread pool.
   On ProviderError nothing is stored and the error goes to the caller.
5. Append the user turn and the raw assistant reply, then trim.
6. Extract map commands from the raw reply and log any parse errors.
7. Return display text, commands and the session id.

IMPORTANT:
- The stored assistant turn is the raw reply, command tags included, so the
  model sees its own earlier commands on later turns.
- Step 5's appends happen right after the provider returns with no await in
  between; a request cancelled while waiting on the provider leaves the
  session untouched.
- Command extraction runs after the history is committed and can never roll
  it back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from mapchat.core.commands import extract_commands
from mapchat.core.prompts import compose
from mapchat.core.types import CameraAction, LocationSearch, MapContext, SessionTurn
from mapchat.providers.completion import CompletionGateway, ProviderError
from mapchat.runtime_state import SessionStore
from mapchat.utils import Stopwatch

logger = logging.getLogger(__name__)


class InvalidInputError(ValueError):
    """The request is missing something required (e.g. the message)."""


@dataclass
class TurnResult:
    """What one handled message gives back to the HTTP layer."""

    display_text: str
    session_id: str
    location: Optional[LocationSearch] = None
    camera: Optional[CameraAction] = None


class TurnOrchestrator:
    """
    Public entry point of the conversation engine.

    Parameters
    ----------
    store:
        The process-wide SessionStore.
    gateway:
        Completion gateway; anything with a blocking `complete(turns) -> str`.
    default_session_id:
        Session key used when the caller does not send one.
    """

    def __init__(
        self,
        store: SessionStore,
        gateway: CompletionGateway,
        default_session_id: str = "default",
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.default_session_id = default_session_id

    def resolve_session_id(self, session_id: Optional[str]) -> str:
        return session_id or self.default_session_id

    async def handle_message(
        self,
        session_id: Optional[str],
        user_message: Optional[str],
        map_context: Optional[MapContext] = None,
    ) -> TurnResult:
        """
        Run one conversational turn.

        Raises
        ------
        InvalidInputError
            If `user_message` is missing or empty. No session is touched.
        ProviderError
            If the provider call fails. The session is left unchanged.
        """
        if not user_message:
            raise InvalidInputError("Message is required")

        sid = self.resolve_session_id(session_id)

        async with self.store.lock(sid):
            turns = self.store.get_or_create(sid)
            outbound = compose(turns, user_message, map_context)

            try:
                with Stopwatch(f"completion call [{sid}]", logger, level=logging.DEBUG):
                    raw_reply = await run_in_threadpool(self.gateway.complete, outbound)
            except ProviderError as exc:
                logger.warning(
                    "[Orchestrator] Provider failed for session %s: %s", sid, exc.detail
                )
                raise

            self.store.append(sid, outbound[-1])
            self.store.append(sid, SessionTurn(role="assistant", content=raw_reply))
            self.store.trim(sid)

        extraction = extract_commands(raw_reply)
        for err in extraction.errors:
            logger.warning(
                "[Orchestrator] Ignoring malformed %s tag in session %s: %s (payload=%r)",
                err.tag,
                sid,
                err.reason,
                err.payload,
            )

        if extraction.camera is not None and not extraction.camera.is_known:
            logger.info(
                "[Orchestrator] Passing through unknown camera action %r", extraction.camera.type
            )

        return TurnResult(
            display_text=extraction.display_text,
            session_id=sid,
            location=extraction.location,
            camera=extraction.camera,
        )

    def handle_reset(self, session_id: Optional[str]) -> str:
        """Forget a session's history. Always succeeds; returns the key used."""
        sid = self.resolve_session_id(session_id)
        self.store.reset(sid)
        return sid
