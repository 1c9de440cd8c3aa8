"""Character payload decoding for generated NPCs.

Expected shape:

    {"name": "Black Bart",
     "attributes": {"speed": 12, "gunAccuracy": 14, "throwingAccuracy": 9,
                    "strength": 11, "baseStrength": 11, "bravery": 15,
                    "experience": 6}}

A bad or missing attribute is replaced by DEFAULT_ATTRIBUTE_VALUE and reported
as a Substitution; one bad field never discards an otherwise usable NPC. Only
a missing name, a missing attributes object or unparseable JSON is Invalid.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from boothill_gm.errors import FieldError, FragmentError
from boothill_gm.models import CharacterAttributes, NpcCharacter

from .fragments import parse_json_object
from .results import DecodeResult, Invalid, Substitution, settle
from .vocabulary import ATTRIBUTE_FIELDS, DEFAULT_ATTRIBUTE_VALUE, OPPONENT_ATTRIBUTES

logger = logging.getLogger(__name__)


def looks_like_character(data: Any) -> bool:
    return isinstance(data, Mapping) and "name" in data and "attributes" in data


def decode_character(payload: str | Mapping[str, Any]) -> DecodeResult[NpcCharacter]:
    if isinstance(payload, str):
        try:
            payload = parse_json_object(payload)
        except FragmentError as e:
            return Invalid(reason=str(e))
    if not isinstance(payload, Mapping):
        return Invalid(reason="character payload is not an object")

    name = payload.get("name")
    if not isinstance(name, str) or not name.strip():
        return Invalid(reason="character name is missing or not a string")
    attributes = payload.get("attributes")
    if not isinstance(attributes, Mapping):
        return Invalid(reason="character attributes are missing or not an object")

    values: dict[str, int] = {}
    substitutions: list[Substitution] = []
    for field in ATTRIBUTE_FIELDS:
        raw = attributes.get(field)
        try:
            values[field] = coerce_attribute(field, raw)
        except FieldError as e:
            logger.debug("Character %r: %s, using %d", name, e, DEFAULT_ATTRIBUTE_VALUE)
            substitutions.append(Substitution(field=field, reason=e.reason, value=raw))
            values[field] = DEFAULT_ATTRIBUTE_VALUE

    character = NpcCharacter(
        name=name.strip(),
        attributes=CharacterAttributes.model_validate(values),
    )
    return settle(character, substitutions)


def coerce_attribute(field: str, raw: Any) -> int:
    """Coerce one attribute value to int or raise FieldError."""
    if raw is None:
        raise FieldError(field, "missing")
    # bool is an int subclass; true/false is not a stat
    if isinstance(raw, bool):
        raise FieldError(field, "not a number")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        try:
            raw = float(raw.strip())
        except ValueError:
            raise FieldError(field, "not a number") from None
    if isinstance(raw, float):
        if not math.isfinite(raw):
            raise FieldError(field, "not a finite number")
        return int(raw)
    raise FieldError(field, f"unexpected type {type(raw).__name__}")


def create_opponent_character(name: str) -> NpcCharacter:
    """Stock opponent for a COMBAT marker that came without a character payload."""
    return NpcCharacter(
        name=name,
        attributes=CharacterAttributes.model_validate(dict(OPPONENT_ATTRIBUTES)),
    )
