# mapchat/runtime_state/sessions.py
# -*- coding: utf-8 -*-
"""
RealMap — Runtime Session State
-------------------------------

This module implements the in-memory session store for the chat server.

Purpose
~~~~~~~
- Track per-session conversation history so the map assistant can hold
  multi-turn conversations without mixing different browser tabs / users.
- Keep every history bounded: one instruction turn at index 0 plus the most
  recent user/assistant exchanges.

Design notes
~~~~~~~~~~~~
- Memory only. History lives for the lifetime of the process; a restart
  starts every session from scratch.
- One store per process, built by `create_app()` and handed to the
  orchestrator. There is no module-level instance.
- Turn index 0 is always the instruction ("system") turn and is never evicted.
  After it, turns strictly alternate user / assistant.
- `lock(session_id)` returns one asyncio.Lock per key. The orchestrator holds
  it for a whole exchange so two requests on the same session cannot
  interleave their appends. Different keys never wait on each other.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from mapchat.core.types import SessionTurn
from mapchat.utils import get_logger


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

logger = get_logger("mapchat.runtime_state")

# 1 instruction turn + 20 exchange turns
DEFAULT_MAX_TURNS = 21


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class SessionData(BaseModel):
    """
    Per-session state.

    Attributes
    ----------
    session_id:
        Caller-supplied key for the session.
    created_at:
        When this session was first created.
    last_seen:
        Last time the session was read or written.
    turns:
        Instruction turn followed by alternating user/assistant turns.
    """

    session_id: str
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    last_seen: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    turns: List[SessionTurn] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Session store implementation
# ---------------------------------------------------------------------------


class SessionStore:
    """
    In-memory, bounded session store.

    Parameters
    ----------
    instruction:
        Text of the instruction turn every new session is seeded with.
    max_turns:
        Ceiling on the number of turns kept per session, the instruction
        turn included. Oldest exchanges are dropped first.
    """

    def __init__(self, instruction: str, max_turns: int = DEFAULT_MAX_TURNS) -> None:
        if max_turns < 3:
            raise ValueError("max_turns must leave room for at least one exchange")

        self.instruction = instruction
        self.max_turns = max_turns

        self._sessions: Dict[str, SessionData] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_or_create(self, session_id: str) -> List[SessionTurn]:
        """
        Return the session's turn list, seeding a new session with the
        instruction turn if the key is unknown.

        The returned list is the live history; callers that only want to
        read it should not mutate it.
        """
        session = self._sessions.get(session_id)
        if session is None:
            logger.info("[SessionStore] Creating new session %s", session_id)
            session = SessionData(
                session_id=session_id,
                turns=[SessionTurn(role="system", content=self.instruction)],
            )
            self._sessions[session_id] = session

        session.last_seen = datetime.now(timezone.utc)
        return session.turns

    def get_session(self, session_id: str) -> Optional[SessionData]:
        """Return the SessionData for `session_id`, or None if not found."""
        return self._sessions.get(session_id)

    def append(self, session_id: str, turn: SessionTurn) -> None:
        """Append one user or assistant turn, keeping the alternation."""
        turns = self.get_or_create(session_id)

        expected = "user" if turns[-1].role in ("system", "assistant") else "assistant"
        assert turn.role == expected, (
            f"session {session_id!r}: expected a {expected} turn, got {turn.role}"
        )

        turns.append(turn)

    def trim(self, session_id: str) -> int:
        """
        Drop the oldest exchange turns until the session fits `max_turns`.

        Index 0 (the instruction turn) is always kept. Returns the number of
        evicted turns.
        """
        session = self._sessions.get(session_id)
        if session is None:
            return 0

        excess = len(session.turns) - self.max_turns
        if excess <= 0:
            return 0

        del session.turns[1 : 1 + excess]
        logger.debug(
            "[SessionStore] Trimmed %d turn(s) from session %s (now %d)",
            excess,
            session_id,
            len(session.turns),
        )
        return excess

    def reset(self, session_id: str) -> bool:
        """
        Forget a session. Resetting an unknown session is not an error.

        Returns True if something was deleted.
        """
        existed = self._sessions.pop(session_id, None) is not None
        if existed:
            logger.info("[SessionStore] Reset session %s", session_id)

        lock = self._locks.get(session_id)
        if lock is not None and not lock.locked():
            del self._locks[session_id]

        return existed

    def lock(self, session_id: str) -> asyncio.Lock:
        """Per-session lock serializing exchanges on the same key."""
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    def get_history_as_messages(self, session_id: str) -> List[Dict[str, str]]:
        """
        Return the history in OpenAI-style message format:

            [
              {"role": "system", "content": "..."},
              {"role": "user", "content": "..."},
              {"role": "assistant", "content": "..."},
              ...
            ]

        If no session exists, returns an empty list.
        """
        session = self.get_session(session_id)
        if not session:
            return []
        return [turn.to_message() for turn in session.turns]

    def session_count(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions
