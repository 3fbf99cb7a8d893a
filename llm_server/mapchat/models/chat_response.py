# mapchat/models/chat_response.py
# -*- coding: utf-8 -*-
"""
RealMap AI Chat Server — Response models
----------------------------------------
Response bodies returned to the map UI. Field names are camelCase on the
wire; `locationSearch` / `cameraAction` are always present and null when the
reply carried no such command.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from mapchat.core.orchestrator import TurnResult


class ChatResponse(BaseModel):
    """200 body of POST /api/chat."""

    model_config = ConfigDict(populate_by_name=True)

    response: str
    location_search: Optional[Dict[str, Any]] = Field(default=None, alias="locationSearch")
    camera_action: Optional[Dict[str, Any]] = Field(default=None, alias="cameraAction")
    session_id: str = Field(..., alias="sessionId")
    model: Optional[str] = None

    @classmethod
    def from_turn(cls, result: TurnResult, model: Optional[str] = None) -> "ChatResponse":
        return cls(
            response=result.display_text,
            location_search=(
                result.location.model_dump(exclude_none=True) if result.location else None
            ),
            camera_action=(
                result.camera.model_dump(exclude_none=True) if result.camera else None
            ),
            session_id=result.session_id,
            model=model,
        )


class ResetResponse(BaseModel):
    """200 body of POST /api/chat/reset."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = "Conversation reset successfully"
    session_id: str = Field(..., alias="sessionId")


class ErrorResponse(BaseModel):
    """4xx / 5xx body."""

    error: str
    details: Optional[Any] = None
