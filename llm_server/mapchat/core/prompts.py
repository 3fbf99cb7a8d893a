# mapchat/core/prompts.py
# -*- coding: utf-8 -*-
"""
RealMap AI Chat Server — Prompt composition
-------------------------------------------
Builds what is sent to the completion provider on every turn:

- the instruction turn (index 0 of every session): the map-control contract
  that teaches the model the two command tags,
- the session's stored history,
- the new user turn: the literal user message, an optional
  [CURRENT MAP CONTEXT: ...] line, and a short reminder of the command
  contract.

The reminder and map context live inside the user turn itself, so the turn
that is later stored is exactly the turn that was sent.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from mapchat.core.config import Settings
from mapchat.core.types import MapContext, SessionTurn
from mapchat.utils import read_text_safely

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Fixed texts
# ---------------------------------------------------------------------------

INSTRUCTION_PREAMBLE = """You are a helpful AI assistant integrated into a map application called RealMapAI.

CRITICAL INSTRUCTION:
You have the ability to control the map! You can SEARCH for places or CONTROL THE CAMERA (zoom, rotate, tilt, map style).

COMMAND FORMATS (Append these to the end of your response):
1. To Search matches: [LOCATION_SEARCH: {"query": "exact place name"}]
2. To Control Camera: [CAMERA_ACTION: {"type": "ACTION_TYPE", "value": "optional_value"}]

SUPPORTED CAMERA ACTIONS:
- "ZOOM_IN" / "ZOOM_OUT"
- "ROTATE_LEFT" / "ROTATE_RIGHT"
- "TILT_UP" / "TILT_DOWN"
- "RESET"
- "SWITCH_MODE" (value: "SATELLITE", "ROAD", "HYBRID")

RULES:
1. If user says "find...", "search...", "show me...", use LOCATION_SEARCH.
2. If user mentions "nearby" or "around here", use the PROVIDED CURRENT LOCATION in your search query.
   - Example: User "find gas stations here" -> [LOCATION_SEARCH: {"query": "gas stations near [Lat, Lng]"}]
3. If user says "switch to satellite", "show roads", use SWITCH_MODE.
4. Keep the text response short (1 sentence) and friendly.

Examples:
User: "Search for Marvel Stadium"
Assistant: Heading to Marvel Stadium! [LOCATION_SEARCH: {"query": "Marvel Stadium"}]

User: "Show restaurants near here"
Assistant: Searching for restaurants in this area. [LOCATION_SEARCH: {"query": "restaurants near -37.81, 144.96"}]

User: "Show me the roads"
Assistant: Switching to road view. [CAMERA_ACTION: {"type": "SWITCH_MODE", "value": "ROAD"}]"""

COMMAND_REMINDER = (
    "\n(SYSTEM REMINDER: If this is a request to search/find, return "
    "[LOCATION_SEARCH: ...]. If \"nearby\", use coordinates. "
    "If changing view, use [CAMERA_ACTION: ...].)"
)


# ---------------------------------------------------------------------------
# Instruction text
# ---------------------------------------------------------------------------


def load_instruction_text(settings: Settings) -> str:
    """
    Return the instruction preamble.

    settings.system_prompt_path, when set, replaces the built-in text.
    A missing or empty file falls back to INSTRUCTION_PREAMBLE.
    """
    path = settings.system_prompt_path
    if path is None:
        return INSTRUCTION_PREAMBLE

    text = read_text_safely(path, default="", strip=True)
    if not text:
        logger.warning(
            "Instruction file %s is missing or empty; using built-in preamble.",
            path,
        )
        return INSTRUCTION_PREAMBLE

    logger.info("Loaded instruction preamble from %s (%d chars)", path, len(text))
    return text


# ---------------------------------------------------------------------------
# User turn
# ---------------------------------------------------------------------------


def _format_number(value: float) -> str:
    # 12.0 -> "12", -37.8136 -> "-37.8136"
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def format_map_context(map_context: MapContext) -> str:
    """
    Render the map snapshot as one bracketed line, e.g.

        [CURRENT MAP CONTEXT: Lat: -37.81, Lng: 144.96, Zoom: 12]
    """
    # No zoom or zoom 0 both read as "unknown" to the model.
    zoom = _format_number(map_context.zoom) if map_context.zoom else "unknown"
    return (
        f"[CURRENT MAP CONTEXT: Lat: {_format_number(map_context.lat)}, "
        f"Lng: {_format_number(map_context.lng)}, Zoom: {zoom}]"
    )


def build_user_content(
    user_message: str,
    map_context: Optional[MapContext] = None,
) -> str:
    """User message + optional map context line + command reminder."""
    content = user_message
    if map_context is not None:
        content += "\n" + format_map_context(map_context)
    return content + COMMAND_REMINDER


def compose(
    turns: Sequence[SessionTurn],
    user_message: str,
    map_context: Optional[MapContext] = None,
) -> List[SessionTurn]:
    """
    Build the outbound turn list: the stored history followed by the new
    user turn. `turns` is not modified; the last element of the result is
    the turn to persist once the provider has answered.
    """
    user_turn = SessionTurn(
        role="user",
        content=build_user_content(user_message, map_context),
    )
    return [*turns, user_turn]
