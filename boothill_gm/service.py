"""Game Master service — ask the model, interpret the answer.

    respond(player_input)      → ParsedResponse for one turn
    generate_opponent(name)    → NpcCharacter for a combat encounter

The service never raises for model trouble. A transport failure yields
fallback_response(): canned narrative and actions picked from the player's
wording. An unusable character payload yields the stock opponent.
"""

from __future__ import annotations

import logging
import re

from boothill_gm.config import Settings
from boothill_gm.llm import LLM, LLMError
from boothill_gm.models import NpcCharacter, ParsedResponse, SuggestedAction
from boothill_gm.parser import create_opponent_character, parse_response

logger = logging.getLogger(__name__)


class GameMaster:
    def __init__(self, llm: LLM, settings: Settings | None = None) -> None:
        self._llm = llm
        self._settings = settings or Settings()

    async def respond(
        self, player_input: str, *, journal: str = "", character_name: str = "the player"
    ) -> ParsedResponse:
        try:
            raw = await self._llm("game_master", _turn_prompt(player_input, journal))
        except LLMError as e:
            logger.warning("Game Master unavailable, using fallback: %s", e)
            return fallback_response(player_input, character_name)
        return parse_response(self._cap(raw))

    async def generate_opponent(self, name: str) -> NpcCharacter:
        try:
            raw = await self._llm("character", _character_prompt(name))
        except LLMError as e:
            logger.warning("Character generation failed for %r: %s", name, e)
            return create_opponent_character(name)
        parsed = parse_response(self._cap(raw))
        if parsed.character is None:
            logger.info("No usable character payload for %r, using stock opponent", name)
            return create_opponent_character(name)
        return parsed.character

    def _cap(self, raw: str) -> str:
        limit = self._settings.max_response_chars
        if len(raw) > limit:
            logger.warning("Model response truncated from %d to %d chars", len(raw), limit)
            return raw[:limit]
        return raw


# ---------------------------------------------------------------------------
# Prompts (minimal; they only pin down the output format the parser expects)
# ---------------------------------------------------------------------------

def _turn_prompt(player_input: str, journal: str) -> str:
    return (
        "You are the Game Master of a Boot Hill western role-playing game.\n"
        f"Recent events:\n{journal}\n\n"
        f'Player input: "{player_input}"\n\n'
        "Narrate the outcome in prose, then add metadata lines as needed:\n"
        "LOCATION: <place name>\n"
        'ACQUIRED_ITEMS: ["<item>", ...]\n'
        'REMOVED_ITEMS: ["<item>", ...]\n'
        "COMBAT: <opponent name>\n"
        'SUGGESTED_ACTIONS: [{"text": "<action>", "type": "basic|combat|interaction"}]\n'
        "When the player faces a meaningful choice, include one JSON object:\n"
        '{"prompt": "<question>", "options": [{"text": "<option>", "impact": "<consequence>"}, ...],'
        ' "importance": "critical|significant|moderate|minor"}'
    )


def _character_prompt(name: str) -> str:
    return (
        f"Generate the Boot Hill opponent {name}. Respond with only a JSON object:\n"
        '{"name": "<name>", "attributes": {"speed": 1-20, "gunAccuracy": 1-20,'
        ' "throwingAccuracy": 1-20, "strength": 8-20, "baseStrength": 8-20,'
        ' "bravery": 1-20, "experience": 0-11}}'
    )


# ---------------------------------------------------------------------------
# Fallback when the model cannot be reached
# ---------------------------------------------------------------------------

_INTENT_PATTERNS = (
    ("initializing", re.compile(r"\b(initialize|init|start|begin|new|create)\b")),
    ("looking", re.compile(r"\b(look|see|view|observe|check)\b")),
    ("movement", re.compile(r"\b(go|walk|move|travel|head|run)\b")),
    ("talking", re.compile(r"\b(talk|speak|ask|tell|say)\b")),
)

_FALLBACK_SCENES: dict[str, tuple[str, tuple[tuple[str, str, str], ...]]] = {
    "initializing": (
        "{name} arrives in the town of Boothill, greeted by dusty streets and "
        "wooden buildings. Piano music drifts from the saloon.",
        (
            ("Explore the town", "basic", "Get to know Boothill"),
            ("Visit the saloon", "basic", "Find information and refreshment"),
            ("Look for work", "interaction", "Earn some money"),
        ),
    ),
    "looking": (
        "{name} looks around. The dusty main street stretches ahead, lined with "
        "wooden buildings, and townsfolk go about their business.",
        (
            ("Enter the saloon", "basic", "Look for information"),
            ("Approach the general store", "basic", "Check for supplies"),
            ("Ask a passerby for news", "interaction", "Learn about the town"),
        ),
    ),
    "movement": (
        "{name} makes their way down the trail. Rolling hills and sparse brush "
        "stretch out on either side.",
        (
            ("Continue forward", "basic", "Follow the trail"),
            ("Look for a place to rest", "basic", "Take a break from traveling"),
        ),
    ),
    "talking": (
        "{name} tries to strike up a conversation. The stranger nods along, "
        "though they seem distracted.",
        (
            ("Ask about the town", "interaction", "Get local information"),
            ("End the conversation", "basic", "Move on"),
        ),
    ),
    "generic": (
        "{name} considers their next move. The frontier stretches out ahead, "
        "full of opportunity and danger.",
        (
            ("Look around", "basic", "Survey your surroundings"),
            ("Rest for a while", "basic", "Recover your energy"),
            ("Continue forward", "basic", "Press on with your journey"),
        ),
    ),
}


def fallback_response(player_input: str, character_name: str = "the player") -> ParsedResponse:
    """Canned turn used when the model is unreachable. Marked fallback=True."""
    lowered = player_input.lower()
    intent = next(
        (name for name, pattern in _INTENT_PATTERNS if pattern.search(lowered)), "generic"
    )
    narrative, actions = _FALLBACK_SCENES[intent]
    return ParsedResponse(
        narrative=narrative.format(name=character_name),
        suggested_actions=tuple(
            SuggestedAction(text=text, type=action_type, context=context)
            for text, action_type, context in actions
        ),
        fallback=True,
    )
