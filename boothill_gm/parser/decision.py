"""Player decision payload decoding.

    {"prompt": "The sheriff blocks the door. What do you do?",
     "options": [{"text": "Talk", "impact": "Avoids bloodshed", "tags": ["diplomacy"]},
                 {"text": "Draw", "impact": "Starts a gunfight"}],
     "importance": "significant",
     "context": "...",
     "characters": ["Sheriff Cole"]}

Options without text or impact are dropped one by one. Fewer than two
surviving options drops the whole decision. Optional fields fall back to
their defaults instead of failing.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from boothill_gm.errors import FieldError, FragmentError
from boothill_gm.models import DecisionOption, PlayerDecision

from .fragments import parse_json_object
from .results import DecodeResult, Invalid, Substitution, settle
from .vocabulary import DECISION_WRAPPER_KEY, DEFAULT_IMPORTANCE, IMPORTANCE_LEVELS

logger = logging.getLogger(__name__)

MIN_OPTIONS = 2


def looks_like_decision(data: Any) -> bool:
    return isinstance(data, Mapping) and "prompt" in data and "options" in data


def find_decision_payload(data: Any) -> Mapping[str, Any] | None:
    """Return the decision object in `data`, bare or under "playerDecision"."""
    if looks_like_decision(data):
        return data
    if isinstance(data, Mapping):
        wrapped = data.get(DECISION_WRAPPER_KEY)
        if looks_like_decision(wrapped):
            return wrapped
    return None


def decode_decision(payload: str | Mapping[str, Any]) -> DecodeResult[PlayerDecision]:
    if isinstance(payload, str):
        try:
            payload = parse_json_object(payload)
        except FragmentError as e:
            return Invalid(reason=str(e))
    if not isinstance(payload, Mapping):
        return Invalid(reason="decision payload is not an object")

    prompt = payload.get("prompt")
    if not isinstance(prompt, str) or not prompt.strip():
        return Invalid(reason="decision prompt is missing or empty")
    raw_options = payload.get("options")
    if not isinstance(raw_options, list):
        return Invalid(reason="decision options are not a list")

    substitutions: list[Substitution] = []
    options: list[DecisionOption] = []
    for index, raw in enumerate(raw_options):
        try:
            options.append(_decode_option(raw))
        except FieldError as e:
            logger.debug("Dropping decision option %d: %s", index, e)
            substitutions.append(
                Substitution(field=f"options[{index}]", reason=f"dropped: {e.reason}", value=raw)
            )
    if len(options) < MIN_OPTIONS:
        logger.info("Dropping decision %r: %d usable option(s)", prompt, len(options))
        return Invalid(reason=f"decision needs {MIN_OPTIONS} options, got {len(options)}")

    importance = payload.get("importance", DEFAULT_IMPORTANCE)
    if isinstance(importance, str) and importance.strip().lower() in IMPORTANCE_LEVELS:
        importance = importance.strip().lower()
    else:
        substitutions.append(
            Substitution(field="importance", reason="unknown level", value=importance)
        )
        importance = DEFAULT_IMPORTANCE

    context = payload.get("context")
    if context is not None and not isinstance(context, str):
        substitutions.append(Substitution(field="context", reason="not a string", value=context))
        context = None
    context = context.strip() if context and context.strip() else None

    characters = payload.get("characters")
    if characters is not None and not isinstance(characters, list):
        substitutions.append(
            Substitution(field="characters", reason="not a list", value=characters)
        )
        characters = None

    decision = PlayerDecision(
        prompt=prompt.strip(),
        options=tuple(options),
        importance=importance,
        context=context,
        characters=_string_set(characters),
    )
    return settle(decision, substitutions)


def _decode_option(raw: Any) -> DecisionOption:
    if not isinstance(raw, Mapping):
        raise FieldError("option", "not an object")
    text = raw.get("text")
    if not isinstance(text, str) or not text.strip():
        raise FieldError("text", "missing or empty")
    impact = raw.get("impact")
    if not isinstance(impact, str) or not impact.strip():
        raise FieldError("impact", "missing or empty")
    return DecisionOption(
        text=text.strip(),
        impact=impact.strip(),
        tags=_string_set(raw.get("tags")),
    )


def _string_set(values: Any) -> frozenset[str]:
    if not isinstance(values, list):
        return frozenset()
    return frozenset(v.strip() for v in values if isinstance(v, str) and v.strip())
