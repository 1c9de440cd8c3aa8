"""Error taxonomy for the response interpretation pipeline.

  FieldError        — one field failed validation. Never escapes a decoder:
                      the field is defaulted or the entry dropped.
  FragmentError     — a JSON fragment would not parse. Its contribution is
                      dropped; the rest of the response is still parsed.
  FatalParseError   — the response cannot be parsed at all (truncated JSON).
                      parse_response() converts it into the narrative-only
                      fallback result.

LLMError (transport failures) lives in boothill_gm.llm.
"""


class ParseError(ValueError):
    """Base class for everything the pipeline raises internally."""


class FieldError(ParseError):
    """A single field could not be coerced to its declared type."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason


class FragmentError(ParseError):
    """A located JSON fragment is not valid JSON (or not an object)."""


class FatalParseError(ParseError):
    """The pipeline cannot continue; callers receive the fallback result."""


class FragmentScanError(FatalParseError):
    """A JSON object opened in the text never closes (truncated output)."""

    def __init__(self, offset: int) -> None:
        super().__init__(f"Unbalanced JSON object starting at offset {offset}")
        self.offset = offset


class ConfigError(ValueError):
    """An environment setting has an invalid value."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Invalid setting {key}: {reason}")
        self.key = key
