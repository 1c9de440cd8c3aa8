"""Static tables shared by the extractor and decoders.

Built once at import and never mutated; mappings are read-only proxies.
"""

from types import MappingProxyType

LOCATION = "LOCATION"
ACQUIRED_ITEMS = "ACQUIRED_ITEMS"
REMOVED_ITEMS = "REMOVED_ITEMS"
SUGGESTED_ACTIONS = "SUGGESTED_ACTIONS"
COMBAT = "COMBAT"

MARKER_KEYWORDS: tuple[str, ...] = (
    LOCATION,
    ACQUIRED_ITEMS,
    REMOVED_ITEMS,
    SUGGESTED_ACTIONS,
    COMBAT,
)

ACTION_TYPES: tuple[str, ...] = ("basic", "combat", "interaction")
DEFAULT_ACTION_TYPE = "basic"

# COMBAT values meaning "no fight this turn".
NO_COMBAT_VALUES = frozenset({"", "false", "none", "no", "null"})

# Wire names, in the order the character sheet lists them.
ATTRIBUTE_FIELDS: tuple[str, ...] = (
    "speed",
    "gunAccuracy",
    "throwingAccuracy",
    "strength",
    "baseStrength",
    "bravery",
    "experience",
)

# Neutral mid-range value, inside the 3-18 organic roll range.
DEFAULT_ATTRIBUTE_VALUE = 10

# Stat line for an opponent the model named but did not describe.
OPPONENT_ATTRIBUTES = MappingProxyType({
    "speed": 10,
    "gunAccuracy": 10,
    "throwingAccuracy": 10,
    "strength": 10,
    "baseStrength": 10,
    "bravery": 10,
    "experience": 5,
})

IMPORTANCE_LEVELS: tuple[str, ...] = ("critical", "significant", "moderate", "minor")
DEFAULT_IMPORTANCE = "moderate"

# Key under which the JSON response format nests a decision.
DECISION_WRAPPER_KEY = "playerDecision"
