# mapchat/core/commands.py
# -*- coding: utf-8 -*-
"""
RealMap AI Chat Server — Command extraction
-------------------------------------------
The model answers in plain prose and may embed up to two map commands:

    [LOCATION_SEARCH: {"query": "Marvel Stadium"}]
    [CAMERA_ACTION: {"type": "ZOOM_IN", "value": "2"}]

extract_commands() pulls them out of the reply and returns the text to show
the user plus the parsed commands.

Grammar (one left-to-right pass, no regex over the payload):

    tag     := "[" KEYWORD ":" ws object ws "]"
    KEYWORD := "LOCATION_SEARCH" | "CAMERA_ACTION"
    object  := one JSON object, read with json.JSONDecoder.raw_decode

Because the payload is read by a real JSON decoder, braces or "]" inside
string values do not confuse the scan, and braces in normal prose are never
looked at.

Rules:
- Only the first tag of each kind is used. Later tags of the same kind are
  left in the text.
- A keyword not followed by "{" (the "[LOCATION_SEARCH: ...]" placeholder,
  prose naming a tag) is plain text: no error, and a real tag of that kind
  later in the reply still counts.
- A tag whose payload does not parse (or does not fit the command shape)
  yields no command, records a CommandParseError, and stays in the display
  text so the failure is visible.
- Camera action types are not checked against a vocabulary; the map
  controller decides what it supports.

This module is pure (no I/O, no logging of its own); the orchestrator logs
the collected errors.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from mapchat.core.types import CameraAction, LocationSearch

LOCATION_TAG = "LOCATION_SEARCH"
CAMERA_TAG = "CAMERA_ACTION"

_TAG_MODELS = {
    LOCATION_TAG: LocationSearch,
    CAMERA_TAG: CameraAction,
}

_OPENERS = tuple(f"[{name}:" for name in _TAG_MODELS)

_decoder = json.JSONDecoder()

_PREVIEW_CHARS = 120


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


class CommandParseError(ValueError):
    """
    A command tag was found but its payload could not be used.

    Collected in ExtractionResult.errors, never raised out of
    extract_commands().
    """

    def __init__(self, tag: str, reason: str, payload: str = "") -> None:
        super().__init__(f"{tag}: {reason}")
        self.tag = tag
        self.reason = reason
        self.payload = payload[:_PREVIEW_CHARS]


@dataclass
class ExtractionResult:
    """
    Attributes
    ----------
    display_text:
        Reply text with every successfully parsed tag removed.
    location:
        Parsed LOCATION_SEARCH command, or None.
    camera:
        Parsed CAMERA_ACTION command, or None.
    errors:
        One CommandParseError per tag that was found but not usable.
    """

    display_text: str
    location: Optional[LocationSearch] = None
    camera: Optional[CameraAction] = None
    errors: List[CommandParseError] = field(default_factory=list)

    @property
    def has_commands(self) -> bool:
        return self.location is not None or self.camera is not None


# ---------------------------------------------------------------------------
# Scanner
# ---------------------------------------------------------------------------


def _skip_ws(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def _find_opener(text: str, start: int) -> Tuple[int, Optional[str]]:
    """Position and keyword of the next "[KEYWORD:" at or after `start`."""
    best_pos, best_tag = -1, None
    for tag, opener in zip(_TAG_MODELS, _OPENERS):
        pos = text.find(opener, start)
        if pos != -1 and (best_pos == -1 or pos < best_pos):
            best_pos, best_tag = pos, tag
    return best_pos, best_tag


def _payload_start(text: str, start: int, tag: str) -> int:
    """Index of the "{" opening the payload, or -1 if the tag has none."""
    pos = _skip_ws(text, start + len(tag) + 2)
    if pos < len(text) and text[pos] == "{":
        return pos
    return -1


def _read_tag(text: str, start: int, tag: str) -> Tuple[Dict[str, Any], int]:
    """
    Parse one tag whose "[" sits at `start` and whose payload starts with "{".

    Returns (payload, end) where text[start:end] is the whole tag.
    Raises CommandParseError if the tag is malformed.
    """
    pos = _payload_start(text, start, tag)

    try:
        payload, pos = _decoder.raw_decode(text, pos)
    except json.JSONDecodeError as exc:
        raise CommandParseError(tag, f"invalid JSON ({exc.msg})", text[pos:]) from exc

    pos = _skip_ws(text, pos)
    if pos >= len(text) or text[pos] != "]":
        raise CommandParseError(tag, "missing closing ']'", text[start:pos])

    return payload, pos + 1


def _build_command(tag: str, payload: Dict[str, Any]):
    try:
        return _TAG_MODELS[tag].model_validate(payload)
    except ValidationError as exc:
        reasons = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or tag}: {err['msg']}"
            for err in exc.errors()
        )
        raise CommandParseError(tag, f"payload does not fit the command ({reasons})", json.dumps(payload)) from exc


def _collapse_whitespace(text: str) -> str:
    lines = [" ".join(line.split()) for line in text.splitlines()]
    return "\n".join(lines).strip()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_commands(raw_text: str) -> ExtractionResult:
    """
    Split a raw model reply into display text and map commands.

    >>> r = extract_commands('Heading there! [LOCATION_SEARCH: {"query": "Marvel Stadium"}]')
    >>> r.display_text, r.location.query, r.camera
    ('Heading there!', 'Marvel Stadium', None)
    """
    text = raw_text or ""
    commands: Dict[str, Any] = {}
    errors: List[CommandParseError] = []
    kept: List[str] = []

    cursor = 0
    scan = 0
    while True:
        pos, tag = _find_opener(text, scan)
        if tag is None:
            break

        if tag in commands:
            # Second tag of a kind we already have: leave it as prose.
            scan = pos + 1
            continue

        if _payload_start(text, pos, tag) == -1:
            # "[LOCATION_SEARCH: ...]" placeholder or prose naming the tag.
            scan = pos + 1
            continue

        try:
            payload, end = _read_tag(text, pos, tag)
            command = _build_command(tag, payload)
        except CommandParseError as exc:
            errors.append(exc)
            # Consume the kind so a later tag cannot override a failed one.
            commands[tag] = None
            scan = pos + 1
            continue

        commands[tag] = command
        kept.append(text[cursor:pos])
        cursor = scan = end

    kept.append(text[cursor:])

    return ExtractionResult(
        display_text=_collapse_whitespace(" ".join(kept)),
        location=commands.get(LOCATION_TAG),
        camera=commands.get(CAMERA_TAG),
        errors=errors,
    )
