"""Response interpretation pipeline.

Turns one raw model response into a ParsedResponse:

  fragments    — locate marker lines and brace-balanced JSON objects
  markers      — LOCATION / ACQUIRED_ITEMS / REMOVED_ITEMS / SUGGESTED_ACTIONS / COMBAT
  character    — NPC payloads {"name", "attributes"}
  decision     — player decision payloads {"prompt", "options", ...}
  orchestrator — classification, sequencing, merging and the fallback policy

Marker format (one per line, keyword case-insensitive):
  LOCATION: Silver Gulch Saloon
  ACQUIRED_ITEMS: ["Rope"]
  SUGGESTED_ACTIONS: [{"text": "Approach the bar", "type": "basic"}]
"""

from .character import (  # noqa: F401
    create_opponent_character,
    decode_character,
    looks_like_character,
)
from .decision import (  # noqa: F401
    decode_decision,
    find_decision_payload,
    looks_like_decision,
)
from .fragments import (  # noqa: F401
    Fragment,
    FragmentKind,
    extract_fragments,
    strip_code_fences,
)
from .markers import (  # noqa: F401
    ActionsUpdate,
    CombatUpdate,
    IgnoredMarker,
    ItemsUpdate,
    LocationUpdate,
    MarkerValue,
    decode_marker,
    format_markers,
)
from .orchestrator import normalize_whitespace, parse_response  # noqa: F401
from .results import Defaulted, Invalid, Substitution, Valid  # noqa: F401
