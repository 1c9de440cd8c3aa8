"""Marker decoding: turn one ``KEYWORD: value`` line into a typed update.

Vocabulary (keyword is case-insensitive):

  LOCATION: <display name>
  ACQUIRED_ITEMS: ["Rope", "Lantern"]     or   Rope, Lantern
  REMOVED_ITEMS:  ["Whiskey"]             or   [Whiskey]
  SUGGESTED_ACTIONS: [{"text": "...", "type": "basic|combat|interaction"}]
  COMBAT: <opponent name>

List values are read as JSON first. Item lists fall back to comma-splitting;
action lists cannot be split safely and are dropped instead. Unknown keywords
and empty values decode to IgnoredMarker so the caller can skip them.

A LOCATION or COMBAT value written as a JSON string ("Bart Jr.") is taken
verbatim; bare values lose wrapping quotes or brackets, and COMBAT values
lose trailing punctuation.

format_markers() writes the canonical block back out, quoting any value the
bare form would alter; parsing that block yields the same fields.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict

from boothill_gm.models import (
    CombatInitiation,
    ItemDelta,
    ParsedResponse,
    SuggestedAction,
)

from .fragments import Fragment, FragmentKind
from .vocabulary import (
    ACQUIRED_ITEMS,
    ACTION_TYPES,
    COMBAT,
    DEFAULT_ACTION_TYPE,
    LOCATION,
    NO_COMBAT_VALUES,
    REMOVED_ITEMS,
    SUGGESTED_ACTIONS,
)

logger = logging.getLogger(__name__)


class LocationUpdate(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["location"] = "location"
    location: str


class ItemsUpdate(BaseModel):
    """Partial item delta from a single ACQUIRED_ITEMS or REMOVED_ITEMS line."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["items"] = "items"
    delta: ItemDelta


class CombatUpdate(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["combat"] = "combat"
    combat: CombatInitiation


class ActionsUpdate(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["actions"] = "actions"
    actions: tuple[SuggestedAction, ...]


class IgnoredMarker(BaseModel):
    """A marker with nothing to apply: unknown keyword, empty or unusable value."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["ignored"] = "ignored"
    keyword: str
    reason: str


MarkerValue = Union[LocationUpdate, ItemsUpdate, CombatUpdate, ActionsUpdate, IgnoredMarker]

# Generic "WORD: value" so unknown keywords are still recognised as markers here.
_LINE_RE = re.compile(r"^\s*([A-Za-z][A-Za-z_]*)\s*:(.*)$", re.DOTALL)

_WRAPPING = "\"'`"
_TRAILING_PUNCTUATION = ".!?,;"


def decode_marker(marker: Fragment | str) -> MarkerValue:
    """Decode a marker fragment (or a raw marker line) into a typed update."""
    if isinstance(marker, Fragment):
        if marker.kind is not FragmentKind.MARKER_LINE:
            return IgnoredMarker(keyword="", reason="not a marker line")
        keyword, value = marker.keyword or "", marker.value or ""
    else:
        match = _LINE_RE.match(marker)
        if not match:
            return IgnoredMarker(keyword="", reason="not a marker line")
        keyword, value = match.group(1).upper(), match.group(2).strip()

    if keyword == LOCATION:
        return _decode_location(value)
    if keyword == ACQUIRED_ITEMS:
        return ItemsUpdate(delta=ItemDelta(acquired=_decode_item_list(keyword, value)))
    if keyword == REMOVED_ITEMS:
        return ItemsUpdate(delta=ItemDelta(removed=_decode_item_list(keyword, value)))
    if keyword == SUGGESTED_ACTIONS:
        return _decode_actions_value(value)
    if keyword == COMBAT:
        return _decode_combat(value)
    return IgnoredMarker(keyword=keyword, reason="unknown keyword")


# ---------------------------------------------------------------------------
# Per-keyword decoders
# ---------------------------------------------------------------------------

def _unwrap(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == "[" and value[-1] == "]":
        value = value[1:-1].strip()
    if len(value) >= 2 and value[0] in _WRAPPING and value[-1] == value[0]:
        value = value[1:-1].strip()
    return value


def _quoted(value: str) -> str | None:
    """The string a JSON string literal value spells, taken as written."""
    if len(value) < 2 or value[0] != '"' or value[-1] != '"':
        return None
    try:
        decoded = json.loads(value)
    except json.JSONDecodeError:
        return None
    return decoded if isinstance(decoded, str) else None


def _decode_location(value: str) -> MarkerValue:
    location = _quoted(value)
    if location is None:
        location = _unwrap(value)
    if not location.strip():
        return IgnoredMarker(keyword=LOCATION, reason="empty value")
    return LocationUpdate(location=location)


def _decode_item_list(keyword: str, value: str) -> frozenset[str]:
    value = value.strip()
    if value.startswith("["):
        try:
            entries = json.loads(value)
        except (json.JSONDecodeError, RecursionError):
            logger.debug("%s is not a JSON array, splitting on commas: %r", keyword, value)
        else:
            if isinstance(entries, list):
                return item_names(entries)
    inner = value
    if inner.startswith("["):
        inner = inner[1:]
    if inner.endswith("]"):
        inner = inner[:-1]
    parts = (part.strip().strip(_WRAPPING).strip() for part in inner.split(","))
    return frozenset(part for part in parts if part)


def item_names(entries: Any) -> frozenset[str]:
    """Item names from a decoded JSON list of strings or {"name": ...} objects."""
    if not isinstance(entries, list):
        return frozenset()
    names: set[str] = set()
    for entry in entries:
        if isinstance(entry, dict):
            entry = entry.get("name")
        if isinstance(entry, str) and entry.strip():
            names.add(entry.strip())
        else:
            logger.debug("Dropping item entry %r", entry)
    return frozenset(names)


def _decode_actions_value(value: str) -> MarkerValue:
    if not value:
        return IgnoredMarker(keyword=SUGGESTED_ACTIONS, reason="empty value")
    try:
        entries = json.loads(value)
    except (json.JSONDecodeError, RecursionError) as e:
        logger.warning("Dropping SUGGESTED_ACTIONS, value is not valid JSON: %s", e)
        return IgnoredMarker(keyword=SUGGESTED_ACTIONS, reason="invalid JSON")
    if isinstance(entries, dict):
        entries = [entries]
    if not isinstance(entries, list):
        logger.warning("Dropping SUGGESTED_ACTIONS, expected a JSON array: %r", value)
        return IgnoredMarker(keyword=SUGGESTED_ACTIONS, reason="not a JSON array")
    return ActionsUpdate(actions=decode_actions(entries))


def decode_actions(entries: Any) -> tuple[SuggestedAction, ...]:
    """Decode a JSON list of actions, dropping unusable entries one by one."""
    if not isinstance(entries, list):
        return ()
    actions: list[SuggestedAction] = []
    for index, entry in enumerate(entries):
        action = _decode_action(entry)
        if action is None:
            logger.debug("Dropping suggested action %d: %r", index, entry)
        else:
            actions.append(action)
    return tuple(actions)


def _decode_action(entry: Any) -> SuggestedAction | None:
    if isinstance(entry, str):
        entry = {"text": entry}
    if not isinstance(entry, dict):
        return None
    text = entry.get("text")
    if not isinstance(text, str) or not text.strip():
        return None

    action_type = entry.get("type", DEFAULT_ACTION_TYPE)
    if isinstance(action_type, str) and action_type.strip().lower() in ACTION_TYPES:
        action_type = action_type.strip().lower()
    else:
        logger.debug("Unknown action type %r, using %r", action_type, DEFAULT_ACTION_TYPE)
        action_type = DEFAULT_ACTION_TYPE

    context = entry.get("context")
    if not isinstance(context, str) or not context.strip():
        context = None

    return SuggestedAction(
        text=text.strip(),
        type=action_type,
        context=context.strip() if context else None,
    )


def _decode_combat(value: str) -> MarkerValue:
    opponent = _quoted(value)
    if opponent is not None and opponent.strip():
        return CombatUpdate(combat=CombatInitiation(opponent=opponent))
    opponent = _unwrap(value).rstrip(_TRAILING_PUNCTUATION).strip()
    if opponent.lower() in NO_COMBAT_VALUES:
        return IgnoredMarker(keyword=COMBAT, reason="no combat")
    return CombatUpdate(combat=CombatInitiation(opponent=opponent))


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------

def format_markers(response: ParsedResponse) -> str:
    """Render the marker-carried fields of `response` as a marker block."""
    lines: list[str] = []
    if response.location:
        lines.append(f"{LOCATION}: {_scalar(response.location)}")
    if response.items is not None:
        if response.items.acquired:
            lines.append(f"{ACQUIRED_ITEMS}: {_dump(sorted(response.items.acquired))}")
        if response.items.removed:
            lines.append(f"{REMOVED_ITEMS}: {_dump(sorted(response.items.removed))}")
    if response.combat is not None:
        lines.append(f"{COMBAT}: {_scalar(response.combat.opponent)}")
    if response.suggested_actions:
        actions = [a.model_dump(exclude_none=True) for a in response.suggested_actions]
        lines.append(f"{SUGGESTED_ACTIONS}: {_dump(actions)}")
    return "\n".join(lines)


def _scalar(value: str) -> str:
    """Write `value` bare, or as a JSON string if decoding would alter it."""
    plain = (
        value == value.strip()
        and "\n" not in value
        and "\r" not in value
        and value[:1] not in _WRAPPING + "[{"
        and value[-1:] not in _WRAPPING + "]" + _TRAILING_PUNCTUATION
        and value.lower() not in NO_COMBAT_VALUES
    )
    return value if plain else _dump(value)


def _dump(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False)
