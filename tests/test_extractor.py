from __future__ import annotations

import json
import sys

import pytest

import config
from job_assist.extractor import (
    ExtractionError,
    JsonSyntaxError,
    NoJsonFoundError,
    UnbalancedJsonError,
    extract,
    scan_object,
)

pytestmark = pytest.mark.unit


# ── direct parse ──────────────────────────────────────────────

@pytest.mark.parametrize(
    "raw",
    [
        '{"score": 75, "overall": "Good fit"}',
        '  {"nested": {"a": [1, 2, {"b": null}]}}\n',
        "[1, 2, 3]",
        '"just a string"',
        "42",
    ],
)
def test_pure_json_is_parsed_as_is(raw: str) -> None:
    assert extract(raw) == json.loads(raw)


# ── fenced blocks ─────────────────────────────────────────────

def test_fenced_json_block_with_prose_around_it() -> None:
    raw = (
        "Sure! Here's the analysis:\n"
        "```json\n"
        '{"score": 75, "overall": "Good fit"}\n'
        "```\n"
        "Let me know if you need anything else."
    )

    assert extract(raw) == {"score": 75, "overall": "Good fit"}


def test_fence_tag_is_case_insensitive() -> None:
    raw = 'Result:\n```JSON\n{"a": 1}\n```'

    assert extract(raw) == {"a": 1}


def test_untagged_fence_is_accepted() -> None:
    raw = 'Result:\n```\n{"a": 1}\n```\nDone.'

    assert extract(raw) == {"a": 1}


def test_fence_body_with_extra_prose_goes_through_the_scan() -> None:
    raw = '```json\nHere you go: {"a": {"b": 2}} hope it helps\n```'

    assert extract(raw) == {"a": {"b": 2}}


def test_broken_fence_falls_back_to_brace_scan_of_whole_reply() -> None:
    raw = '```python\nprint("hi")\n```\nAnd the data: {"a": 1}'

    assert extract(raw) == {"a": 1}


# ── brace scan ────────────────────────────────────────────────

def test_braces_inside_string_values_do_not_affect_nesting() -> None:
    raw = 'Here is it: {"a": "value with } brace", "b": 2} thanks'

    assert extract(raw) == {"a": "value with } brace", "b": 2}


def test_opening_braces_inside_strings_are_ignored_too() -> None:
    raw = 'Output {"template": "{{name}} and {", "n": 1} end'

    assert extract(raw) == {"template": "{{name}} and {", "n": 1}


def test_escaped_quote_keeps_scanner_inside_the_string() -> None:
    raw = r'Reply: {"quote": "she said \"}\" loudly", "ok": true} bye'

    assert extract(raw) == {"quote": 'she said "}" loudly', "ok": True}


def test_escaped_backslash_before_closing_quote() -> None:
    # "C:\\" ends with an escaped backslash, so the following quote closes the string
    raw = r'Path: {"dir": "C:\\", "next": "}"} trailing'

    assert extract(raw) == {"dir": "C:\\", "next": "}"}


def test_unicode_escapes_and_surrogate_pairs() -> None:
    raw = r'Voilà : {"emoji": "\ud83d\ude00 {", "name": "Zoë"} fin'

    assert extract(raw) == {"emoji": "\U0001F600 {", "name": "Zoë"}


def test_literal_astral_characters_inside_strings() -> None:
    raw = 'Result 🎯 {"label": "🚀 launch }", "score": 9} 👍'

    assert extract(raw) == {"label": "🚀 launch }", "score": 9}


def test_only_the_first_top_level_object_is_used() -> None:
    raw = 'First {"a": 1} then {"b": 2}'

    assert extract(raw) == {"a": 1}


def test_scan_object_returns_the_exact_span() -> None:
    assert scan_object('xx {"a": {"b": "}"}} yy') == '{"a": {"b": "}"}}'


# ── failures ──────────────────────────────────────────────────

def test_no_brace_raises_no_json_found() -> None:
    with pytest.raises(NoJsonFoundError):
        extract("I am sorry, I cannot help with that.")


def test_empty_reply_raises_no_json_found() -> None:
    with pytest.raises(NoJsonFoundError):
        extract("")


def test_object_that_never_closes_raises_unbalanced() -> None:
    with pytest.raises(UnbalancedJsonError):
        extract('{"a": 1, "b": {"c": 2}')


def test_brace_inside_unterminated_string_is_unbalanced() -> None:
    with pytest.raises(UnbalancedJsonError):
        extract('Result: {"a": "oops }')


def test_delimited_but_invalid_json_raises_syntax_error() -> None:
    with pytest.raises(JsonSyntaxError) as excinfo:
        extract("Answer: {score: 75, 'overall': 'single quotes'}")

    assert isinstance(excinfo.value.__cause__, json.JSONDecodeError)


@pytest.mark.skipif(
    not hasattr(sys, "get_int_max_str_digits"), reason="no integer digit limit on this interpreter"
)
def test_integer_past_the_digit_limit_raises_syntax_error() -> None:
    raw = 'Sure: {"score": 1' + "0" * 5000 + ', "overall": "x"}'

    with pytest.raises(JsonSyntaxError):
        extract(raw)


def test_deeply_nested_candidate_raises_syntax_error() -> None:
    raw = 'Result: {"a": ' + "[" * 100000 + "]" * 100000 + "}"

    with pytest.raises(JsonSyntaxError) as excinfo:
        extract(raw)

    assert isinstance(excinfo.value.__cause__, RecursionError)


def test_errors_share_a_base_class_and_name_their_stage() -> None:
    stages = set()
    for raw in ("nothing", "{", "{bad}"):
        with pytest.raises(ExtractionError) as excinfo:
            extract(raw)
        stages.add(excinfo.value.stage)

    assert stages == {"no_json", "unbalanced", "syntax"}


def test_raw_preview_is_truncated_and_single_line(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "RAW_PREVIEW_CHARS", 20)
    raw = "line one\nline two\n" + "x" * 100

    with pytest.raises(NoJsonFoundError) as excinfo:
        extract(raw)

    assert excinfo.value.raw_preview == "line one line two xx"
