"""
Runtime state package for the RealMap chat server.

This package tracks per-session conversation history so the map assistant
can hold multi-turn conversations without mixing users.

Typical usage (see core/orchestrator.py):

    from mapchat.runtime_state import SessionStore

    store = SessionStore(instruction=load_instruction_text(settings))

    async with store.lock(session_id):
        turns = store.get_or_create(session_id)
        # ... compose prompt, call provider ...
        store.append(session_id, user_turn)
        store.append(session_id, assistant_turn)
        store.trim(session_id)
"""

from .sessions import (
    DEFAULT_MAX_TURNS,
    SessionData,
    SessionStore,
)

__all__ = [
    "DEFAULT_MAX_TURNS",
    "SessionData",
    "SessionStore",
]
