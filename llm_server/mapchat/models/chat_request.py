# mapchat/models/chat_request.py
# -*- coding: utf-8 -*-
"""
RealMap AI Chat Server — Request models
---------------------------------------
Request bodies for the /api/chat endpoints, in the camelCase shape the map
UI sends:

    POST /api/chat        {"message": "...", "sessionId": "...", "mapContext": {"lat": .., "lng": .., "zoom": ..}}
    POST /api/chat/reset  {"sessionId": "..."}
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from mapchat.core.types import MapContext


class ChatRequest(BaseModel):
    """
    Body of POST /api/chat.

    `message` is optional at the schema level on purpose: a missing message
    is answered with the endpoint's own 400 payload, not a schema error.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "message": "Search for Marvel Stadium",
                    "sessionId": "k3j9x2",
                },
                {
                    "message": "Find coffee nearby",
                    "sessionId": "k3j9x2",
                    "mapContext": {"lat": -37.8136, "lng": 144.9631, "zoom": 14},
                },
            ]
        },
    )

    message: Optional[str] = Field(
        default=None,
        description="What the user typed.",
    )
    session_id: Optional[str] = Field(
        default=None,
        alias="sessionId",
        description="Conversation key; the server default is used when absent.",
    )
    map_context: Optional[MapContext] = Field(
        default=None,
        alias="mapContext",
        description="Current map centre and zoom, folded into the user turn.",
    )


class ResetRequest(BaseModel):
    """Body of POST /api/chat/reset."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: Optional[str] = Field(default=None, alias="sessionId")
