"""Interpret Game Master model output for a Boot Hill role-playing game."""

from boothill_gm.models import (  # noqa: F401
    CharacterAttributes,
    CombatInitiation,
    DecisionOption,
    ItemDelta,
    NpcCharacter,
    ParsedResponse,
    PlayerDecision,
    SuggestedAction,
)
from boothill_gm.parser import format_markers, parse_response  # noqa: F401
