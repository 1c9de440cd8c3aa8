"""Fragment extraction: find marker lines and JSON objects inside model output.

The extractor knows nothing about game semantics. It walks the text once,
left to right, and reports two kinds of span:

  marker_line  — a line starting with a known keyword and a colon, e.g.
                 ``LOCATION: Silver Gulch Saloon``. If the value opens a JSON
                 array or object that closes on a later line, the span runs to
                 the end of that line. Every line in between must start like
                 JSON (a bracket, brace, quote or comma); prose ends the value.
  json_object  — a brace-balanced ``{...}`` literal anywhere else. An object
                 at the head of a line does not end the line head, so a
                 marker right after it is still a marker.

Nesting is tracked with an explicit depth counter and string/escape state, so
braces inside JSON strings do not count and nested objects are matched whole.
Spans never overlap: whatever lies inside a JSON object is not examined for
markers, and brackets inside a marker value belong to the marker.

An object that opens but never closes means the model output was truncated;
that raises FragmentScanError and the caller falls back to narrative only.
"""

from __future__ import annotations

import json
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from boothill_gm.errors import FragmentError, FragmentScanError

from .vocabulary import MARKER_KEYWORDS


class FragmentKind(str, Enum):
    JSON_OBJECT = "json_object"
    MARKER_LINE = "marker_line"


class Fragment(BaseModel):
    """A located span of the input. `text == source[start:end]`."""

    model_config = ConfigDict(frozen=True)

    kind: FragmentKind
    start: int
    end: int
    text: str
    keyword: str | None = None  # marker lines only, upper-cased
    value: str | None = None  # marker lines only, stripped


_MARKER_RE = re.compile(
    r"[ \t]*(" + "|".join(MARKER_KEYWORDS) + r")[ \t]*:",
    re.IGNORECASE,
)

_CLOSERS = {"{": "}", "[": "]"}

# First characters of a line inside a multi-line JSON array or object.
_CONTINUATION = frozenset("{}[]\",")


def extract_fragments(text: str) -> list[Fragment]:
    """Return every marker line and JSON object in `text`, in order."""
    fragments: list[Fragment] = []
    length = len(text)
    pos = 0
    at_line_start = True
    # Furthest offset an unclosed marker value has already been scanned to
    scanned_to = 0

    while pos < length:
        if at_line_start:
            match = _MARKER_RE.match(text, pos)
            if match:
                end, scanned_to = _marker_end(text, match.end(), scanned_to)
                fragments.append(Fragment(
                    kind=FragmentKind.MARKER_LINE,
                    start=pos,
                    end=end,
                    text=text[pos:end],
                    keyword=match.group(1).upper(),
                    value=text[match.end():end].strip(),
                ))
                pos = end
                at_line_start = False
                continue

        char = text[pos]
        if char == "{":
            end = scan_balanced(text, pos)
            if end is None:
                raise FragmentScanError(pos)
            fragments.append(Fragment(
                kind=FragmentKind.JSON_OBJECT,
                start=pos,
                end=end,
                text=text[pos:end],
            ))
            pos = end
            continue

        if char == "\n":
            at_line_start = True
        elif not char.isspace():
            at_line_start = False
        pos += 1

    return fragments


def _marker_end(text: str, value_start: int, scanned_to: int) -> tuple[int, int]:
    """Return the end offset of a marker whose value begins at `value_start`,
    and the updated `scanned_to`.

    A value that opens a bracket on a line an earlier unclosed value already
    ran through is not scanned again; it ends with its line.
    """
    line_end = _line_end(text, value_start)
    first = value_start
    while first < line_end and text[first] in " \t":
        first += 1
    if first < line_end and text[first] in _CLOSERS and first >= scanned_to:
        close, reached = _scan(text, first, within_marker=True)
        if close is None:
            return line_end, reached
        if close > line_end:
            return _line_end(text, close), scanned_to
    return line_end, scanned_to


def _line_end(text: str, pos: int) -> int:
    end = text.find("\n", pos)
    return len(text) if end == -1 else end


def _continues_value(text: str, pos: int) -> bool:
    """True if the line starting at `pos` can continue a multi-line value."""
    length = len(text)
    while pos < length and text[pos] in " \t\r":
        pos += 1
    return pos < length and text[pos] in _CONTINUATION


def scan_balanced(text: str, start: int, *, within_marker: bool = False) -> int | None:
    """Return the offset just past the bracket matching ``text[start]``.

    Only the opener's own pair is counted ({} or []); characters inside JSON
    strings are skipped, honouring backslash escapes. Returns None if the
    bracket never closes. With within_marker the scan also gives up at a
    string broken across lines or at a line that cannot continue a JSON value
    (prose, another marker, a blank line), so a marker value never swallows
    the text after it.
    """
    return _scan(text, start, within_marker=within_marker)[0]


def _scan(text: str, start: int, *, within_marker: bool) -> tuple[int | None, int]:
    """Like scan_balanced, also returning the offset where the scan stopped."""
    opener = text[start]
    closer = _CLOSERS[opener]
    depth = 0
    in_string = False
    escaped = False

    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            elif char == "\n" and within_marker:
                return None, index
            continue

        if char == '"':
            in_string = True
        elif char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return index + 1, index + 1
        elif char == "\n" and within_marker and not _continues_value(text, index + 1):
            return None, index

    return None, len(text)


# ---------------------------------------------------------------------------
# JSON helpers shared by the decoders
# ---------------------------------------------------------------------------

def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence (```json ... ```), if any."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = [line for line in lines[1:] if not line.strip().startswith("```")]
        cleaned = "\n".join(lines)
    return cleaned.strip()


def parse_json_object(text: str) -> dict[str, Any]:
    """Parse `text` as a JSON object or raise FragmentError."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise FragmentError(f"Fragment is not valid JSON: {e}") from e
    except RecursionError as e:
        raise FragmentError("Fragment nests too deeply to decode") from e
    if not isinstance(data, dict):
        raise FragmentError(f"Expected a JSON object, got {type(data).__name__}")
    return data
