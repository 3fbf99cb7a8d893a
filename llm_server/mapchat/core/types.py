# mapchat/core/types.py
# -*- coding: utf-8 -*-
"""
RealMap AI Chat Server — Shared types
-------------------------------------
Central place for the small value types used across the core:

- Role            : "system" (the instruction turn) | "user" | "assistant"
- SessionTurn     : one role-tagged message in a session history
- MapContext      : optional per-request map snapshot from the UI
- LocationSearch  : command asking the map to search for a place
- CameraAction    : command asking the map to change its view
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Turns
# ---------------------------------------------------------------------------

# The instruction turn travels as the chat-completions "system" role.
Role = Literal["system", "user", "assistant"]


class SessionTurn(BaseModel):
    """One turn in a session's history."""

    role: Role
    content: str
    ts: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_message(self) -> Dict[str, str]:
        """OpenAI-style {"role", "content"} dict for provider payloads."""
        return {"role": self.role, "content": self.content}


# ---------------------------------------------------------------------------
# Map context
# ---------------------------------------------------------------------------


class MapContext(BaseModel):
    """
    Where the user is looking on the map right now.

    The UI may also send heading / tilt; those are accepted and ignored.
    """

    model_config = ConfigDict(extra="ignore")

    lat: float = Field(..., description="Latitude of the map centre.")
    lng: float = Field(..., description="Longitude of the map centre.")
    zoom: Optional[float] = Field(default=None, description="Current zoom level.")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class CameraActionType(str, Enum):
    """Camera actions the map controller understands today."""

    ZOOM_IN = "ZOOM_IN"
    ZOOM_OUT = "ZOOM_OUT"
    ROTATE_LEFT = "ROTATE_LEFT"
    ROTATE_RIGHT = "ROTATE_RIGHT"
    TILT_UP = "TILT_UP"
    TILT_DOWN = "TILT_DOWN"
    RESET = "RESET"
    SWITCH_MODE = "SWITCH_MODE"


class LocationSearch(BaseModel):
    """[LOCATION_SEARCH: {"query": "..."}]"""

    model_config = ConfigDict(extra="allow")

    query: str


class CameraAction(BaseModel):
    """
    [CAMERA_ACTION: {"type": "...", "value": "..."}]

    `type` is kept as a plain string: action names we do not know yet are
    passed through to the map controller untouched.
    """

    model_config = ConfigDict(extra="allow")

    type: str
    value: Optional[str] = None

    @field_validator("value", mode="before")
    @classmethod
    def _stringify_value(cls, v: Any) -> Any:
        # Models sometimes emit numbers ("value": 2); keep them as text.
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, (int, float, bool)):
            return str(v)
        return v

    @property
    def is_known(self) -> bool:
        """True if `type` is one of CameraActionType."""
        return self.type in {action.value for action in CameraActionType}
