"""Tests for extract_fragments and the JSON helpers."""

import time

import pytest

from boothill_gm.errors import FragmentError, FragmentScanError
from boothill_gm.parser import FragmentKind, extract_fragments, strip_code_fences
from boothill_gm.parser.fragments import parse_json_object, scan_balanced


def _kinds(fragments):
    return [f.kind for f in fragments]


# ── marker lines ───────────────────────────────────────────


def test_plain_text_has_no_fragments():
    assert extract_fragments("The wind howls across the prairie.") == []


def test_marker_line():
    text = "Intro.\nLOCATION: Silver Gulch Saloon"
    fragments = extract_fragments(text)
    assert len(fragments) == 1
    frag = fragments[0]
    assert frag.kind is FragmentKind.MARKER_LINE
    assert frag.keyword == "LOCATION"
    assert frag.value == "Silver Gulch Saloon"
    assert frag.start == 7
    assert frag.text == "LOCATION: Silver Gulch Saloon"


def test_marker_case_insensitive_with_leading_whitespace():
    fragments = extract_fragments("  location : Fort Smith")
    assert len(fragments) == 1
    assert fragments[0].keyword == "LOCATION"
    assert fragments[0].value == "Fort Smith"


def test_marker_mid_line_is_prose():
    assert extract_fragments("He muttered LOCATION: nowhere") == []


def test_keyword_must_be_followed_by_colon():
    assert extract_fragments("LOCATIONS: many\nCOMBATANT: Bart") == []


def test_marker_value_with_json_belongs_to_marker(saloon_response):
    fragments = extract_fragments(saloon_response)
    assert _kinds(fragments) == [FragmentKind.MARKER_LINE, FragmentKind.MARKER_LINE]
    assert fragments[1].keyword == "SUGGESTED_ACTIONS"
    assert fragments[1].value.startswith("[{")


def test_multiline_marker_array_spans_to_closing_bracket():
    text = (
        "SUGGESTED_ACTIONS: [\n"
        '  {"text": "Draw", "type": "combat"},\n'
        '  {"text": "Run"}\n'
        "]\n"
        "After."
    )
    fragments = extract_fragments(text)
    assert len(fragments) == 1
    assert fragments[0].text.endswith("]")
    assert fragments[0].value.startswith("[")
    assert text[fragments[0].end:] == "\nAfter."


def test_unbalanced_marker_array_stays_on_its_line():
    text = "ACQUIRED_ITEMS: [Rope, Lantern\n\nMore prose follows."
    fragments = extract_fragments(text)
    assert len(fragments) == 1
    assert fragments[0].text == "ACQUIRED_ITEMS: [Rope, Lantern"


def test_prose_line_ends_unclosed_marker_array():
    text = "ACQUIRED_ITEMS: [Rope,\nYou leave the store.]\nLOCATION: Main Street"
    fragments = extract_fragments(text)
    assert [f.text for f in fragments] == [
        "ACQUIRED_ITEMS: [Rope,",
        "LOCATION: Main Street",
    ]


def test_many_unclosed_marker_arrays_scan_in_linear_time():
    # Every marker value here is unclosed; none may rescan the text after it.
    lines = ["ACQUIRED_ITEMS: [", '{"a": 1} LOCATION: [', '  {"text": "x"}'] * 4000
    text = "\n".join(lines)

    started = time.perf_counter()
    fragments = extract_fragments(text)
    elapsed = time.perf_counter() - started

    markers = [f for f in fragments if f.kind is FragmentKind.MARKER_LINE]
    assert len(markers) == 8000
    assert all("\n" not in f.text for f in markers)
    assert elapsed < 5.0


def test_marker_after_json_at_line_head():
    fragments = extract_fragments('{"a": 1} LOCATION: Fort Smith')
    assert _kinds(fragments) == [FragmentKind.JSON_OBJECT, FragmentKind.MARKER_LINE]
    assert fragments[1].value == "Fort Smith"


# ── JSON objects ───────────────────────────────────────────


def test_nested_json_object_matched_whole():
    text = 'Before {"a": {"b": {"c": 1}}} after'
    fragments = extract_fragments(text)
    assert len(fragments) == 1
    assert fragments[0].kind is FragmentKind.JSON_OBJECT
    assert fragments[0].text == '{"a": {"b": {"c": 1}}}'


def test_braces_inside_strings_ignored():
    text = '{"text": "a } brace", "n": "{"}'
    fragments = extract_fragments(text)
    assert len(fragments) == 1
    assert fragments[0].text == text


def test_escaped_quotes_inside_strings():
    text = '{"text": "say \\"}\\" now"} tail'
    fragments = extract_fragments(text)
    assert fragments[0].text == '{"text": "say \\"}\\" now"}'


def test_marker_inside_json_span_is_not_a_marker():
    text = '{\n"text": "x"\nLOCATION: inside\n}'
    fragments = extract_fragments(text)
    assert _kinds(fragments) == [FragmentKind.JSON_OBJECT]


def test_truncated_json_raises_scan_error():
    with pytest.raises(FragmentScanError) as exc:
        extract_fragments('Narration {"prompt": "x", "options": [')
    assert exc.value.offset == 10


def test_stray_closing_brace_ignored():
    assert extract_fragments("A } B") == []


def test_spans_index_the_source(saloon_response):
    text = 'Prose {"prompt": "p"} more.\nCOMBAT: Black Bart\n' + saloon_response
    for frag in extract_fragments(text):
        assert text[frag.start:frag.end] == frag.text


def test_scan_balanced_unclosed_returns_none():
    assert scan_balanced("[1, 2", 0) is None
    assert scan_balanced("[1,\n\n2]", 0, within_marker=True) is None
    assert scan_balanced("[1,\n  2]", 0, within_marker=True) is None
    assert scan_balanced("[1,\n  \"2\"]", 0, within_marker=True) == 10
    assert scan_balanced("[1,\n\n2]", 0) == 7


# ── helpers ────────────────────────────────────────────────


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences("  no fences  ") == "no fences"


def test_parse_json_object_rejects_arrays():
    with pytest.raises(FragmentError, match="Expected a JSON object"):
        parse_json_object("[1, 2]")


def test_parse_json_object_rejects_invalid_json():
    with pytest.raises(FragmentError, match="not valid JSON"):
        parse_json_object("{prompt: oops}")
