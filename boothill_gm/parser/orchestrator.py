"""Response interpretation — one model response in, one ParsedResponse out.

Parse flow:
  1. Classify. The trimmed input (code fences removed) is tried as a single
     JSON object:
       character shape  → character-only result (NPC generation path)
       "narrative" key  → structured game response, mapped field by field
  2. Extract marker lines and JSON objects from the full text.
  3. Decode markers. Item partials are unioned (acquired wins over removed);
     the last LOCATION and COMBAT win; action lists are concatenated.
  4. Decode the first decision-shaped JSON object; later ones are ignored.
  5. Strip the marker lines and the JSON objects that decoded from the text,
     and normalise whitespace into the narrative. Brace spans that are not
     valid JSON are prose and stay.

parse_response() never raises. Any failure past the empty-input check
returns the original text, verbatim, as a narrative-only fallback result.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from boothill_gm.errors import FatalParseError, FragmentError
from boothill_gm.models import CombatInitiation, ItemDelta, ParsedResponse, PlayerDecision

from .character import decode_character, looks_like_character
from .decision import decode_decision, find_decision_payload
from .fragments import (
    Fragment,
    FragmentKind,
    extract_fragments,
    parse_json_object,
    strip_code_fences,
)
from .markers import (
    ActionsUpdate,
    CombatUpdate,
    ItemsUpdate,
    LocationUpdate,
    decode_actions,
    decode_marker,
    item_names,
)
from .vocabulary import NO_COMBAT_VALUES

logger = logging.getLogger(__name__)

_FENCE_LINE_RE = re.compile(r"^[ \t]*```[\w-]*[ \t]*$", re.MULTILINE)
_PARAGRAPH_BREAK_RE = re.compile(r"\n[ \t\r\f\v]*\n")


def parse_response(text: str) -> ParsedResponse:
    """Interpret raw model output. Never raises."""
    if not text or not text.strip():
        return ParsedResponse()
    try:
        return _interpret(text)
    except FatalParseError as e:
        logger.warning("Falling back to narrative only: %s", e)
    except Exception:
        logger.exception("Unexpected error interpreting model response")
    return ParsedResponse.narrative_only(text if isinstance(text, str) else str(text))


def _interpret(text: str) -> ParsedResponse:
    whole = _whole_object(text)
    if whole is not None:
        if looks_like_character(whole):
            result = decode_character(whole)
            if result.ok:
                return ParsedResponse(character=result.unwrap())
            logger.debug("Character-shaped response rejected: %s", result.reason)
        if isinstance(whole.get("narrative"), str):
            return _from_structured(whole)

    fragments = extract_fragments(text)
    objects = _json_objects(fragments)

    location: str | None = None
    combat: CombatInitiation | None = None
    items = ItemDelta()
    actions = []
    for fragment in fragments:
        if fragment.kind is not FragmentKind.MARKER_LINE:
            continue
        marker = decode_marker(fragment)
        if isinstance(marker, LocationUpdate):
            location = marker.location
        elif isinstance(marker, ItemsUpdate):
            items = items.merge(marker.delta)
        elif isinstance(marker, CombatUpdate):
            combat = marker.combat
        elif isinstance(marker, ActionsUpdate):
            actions.extend(marker.actions)
        else:
            logger.debug("Ignoring %s marker: %s", marker.keyword, marker.reason)

    return ParsedResponse(
        narrative=_assemble_narrative(text, [
            f for f in fragments if f.kind is FragmentKind.MARKER_LINE or f.start in objects
        ]),
        location=location,
        items=None if items.is_empty else items.normalized(),
        combat=combat,
        suggested_actions=tuple(actions),
        decision=_first_decision(objects),
    )


def _whole_object(text: str) -> dict[str, Any] | None:
    candidate = strip_code_fences(text)
    if not candidate.startswith("{"):
        return None
    try:
        return parse_json_object(candidate)
    except FragmentError:
        return None


def _json_objects(fragments: list[Fragment]) -> dict[int, dict[str, Any]]:
    """Decoded JSON fragments keyed by start offset, in order of appearance.

    A brace span that is not valid JSON is left out; it stays in the narrative.
    """
    objects: dict[int, dict[str, Any]] = {}
    for fragment in fragments:
        if fragment.kind is not FragmentKind.JSON_OBJECT:
            continue
        try:
            objects[fragment.start] = parse_json_object(fragment.text)
        except FragmentError as e:
            logger.debug("Keeping brace span at offset %d as prose: %s", fragment.start, e)
    return objects


def _first_decision(objects: dict[int, dict[str, Any]]) -> PlayerDecision | None:
    for data in objects.values():
        payload = find_decision_payload(data)
        if payload is not None:
            return _decode_decision_payload(payload)
    return None


def _decode_decision_payload(payload: Any) -> PlayerDecision | None:
    result = decode_decision(payload)
    if not result.ok:
        logger.info("Decision dropped: %s", result.reason)
        return None
    return result.unwrap()


# ---------------------------------------------------------------------------
# Narrative assembly
# ---------------------------------------------------------------------------

def _assemble_narrative(text: str, fragments: list[Fragment]) -> str:
    pieces: list[str] = []
    cursor = 0
    for fragment in fragments:
        pieces.append(text[cursor:fragment.start])
        cursor = fragment.end
        # A removed marker line takes its newline with it
        if fragment.kind is FragmentKind.MARKER_LINE and text.startswith("\n", cursor):
            cursor += 1
    pieces.append(text[cursor:])
    return normalize_whitespace("".join(pieces))


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace, keeping paragraph breaks as a single blank line."""
    text = _FENCE_LINE_RE.sub("", text)
    paragraphs = (" ".join(p.split()) for p in _PARAGRAPH_BREAK_RE.split(text))
    return "\n\n".join(p for p in paragraphs if p)


# ---------------------------------------------------------------------------
# Structured (whole-JSON) responses
# ---------------------------------------------------------------------------

def _from_structured(data: dict[str, Any]) -> ParsedResponse:
    """Map a JSON game response {"narrative": ..., "location": ..., ...}."""
    items = ItemDelta(
        acquired=item_names(data.get("acquiredItems")),
        removed=item_names(data.get("removedItems")),
    )
    payload = find_decision_payload(data)
    return ParsedResponse(
        narrative=normalize_whitespace(data["narrative"]),
        location=_structured_location(data.get("location")),
        items=None if items.is_empty else items.normalized(),
        combat=_structured_combat(data),
        suggested_actions=decode_actions(data.get("suggestedActions")),
        decision=_decode_decision_payload(payload) if payload is not None else None,
    )


def _structured_location(location: Any) -> str | None:
    if isinstance(location, dict):
        location = location.get("name") or location.get("description")
    if isinstance(location, str) and location.strip():
        return location.strip()
    return None


def _structured_combat(data: dict[str, Any]) -> CombatInitiation | None:
    started = data.get("combatInitiated")
    if isinstance(started, str):
        started = started.strip().lower() == "true"
    if started is not True:
        return None
    opponent = data.get("opponent")
    if isinstance(opponent, dict):
        opponent = opponent.get("name")
    if not isinstance(opponent, str) or opponent.strip().lower() in NO_COMBAT_VALUES:
        logger.warning("combatInitiated without an opponent name: %r", data.get("opponent"))
        return None
    return CombatInitiation(opponent=opponent.strip())
