"""
Recover the JSON object a language model was asked to produce.

Local models rarely obey "respond with ONLY the JSON object" – they wrap it
in prose, in markdown fences, or both. `extract()` tries three strategies in
order and returns on the first success:

  1. Direct parse        the whole reply is JSON.
  2. Fenced block        a ```json … ``` (or bare ``` … ```) block; its body
                         goes back through `extract()`.
  3. Brace scan          from the first "{", walk forward counting nesting
                         depth, ignoring braces inside string literals, until
                         the object closes.

Each way of failing has its own exception so the caller can log which stage
gave up. Nothing here retries.
"""

from __future__ import annotations

import json as _json
import re
from typing import Any

import config

# Opening fence, optional language tag, lazy body, closing fence.
_FENCE_RE = re.compile(r"```[ \t]*(?:json)?[ \t]*\r?\n?([\s\S]*?)```", re.IGNORECASE)


# ── Exceptions ────────────────────────────────────────────────

class ExtractionError(ValueError):
    """Base class for every way a model reply can fail to yield JSON."""

    stage = "extract"

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw_preview = _preview(raw)


class NoJsonFoundError(ExtractionError):
    """The reply contains no "{" at all."""

    stage = "no_json"


class UnbalancedJsonError(ExtractionError):
    """An object starts but the reply ends before it closes."""

    stage = "unbalanced"


class JsonSyntaxError(ExtractionError):
    """A delimited candidate was found but is not valid JSON."""

    stage = "syntax"


# ── Public API ────────────────────────────────────────────────

def extract(raw: str) -> Any:
    """
    Return the JSON value embedded in `raw`.

    Raises NoJsonFoundError, UnbalancedJsonError or JsonSyntaxError.
    """
    text = (raw or "").strip()

    # Strategy 1: direct
    try:
        return _json.loads(text)
    except (ValueError, RecursionError):
        pass

    # Strategy 2: markdown fences
    fence = _FENCE_RE.search(text)
    if fence:
        try:
            return extract(fence.group(1))
        except ExtractionError:
            pass

    # Strategy 3: first balanced object
    return _json_loads_candidate(scan_object(text), raw)


def scan_object(text: str) -> str:
    """
    Return the slice of `text` from the first "{" to the brace that closes it.

    Braces inside double-quoted strings do not count; a backslash inside a
    string escapes whatever follows it, so \\" and \\\\ are handled.
    """
    start = text.find("{")
    if start == -1:
        raise NoJsonFoundError("No JSON object found in LLM response", text)

    depth = 0
    in_string = False
    escaped = False
    for pos in range(start, len(text)):
        ch = text[pos]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : pos + 1]

    raise UnbalancedJsonError(
        f"JSON object opened at offset {start} never closes (depth {depth} at end of input)",
        text,
    )


# ── helpers ───────────────────────────────────────────────────

def _json_loads_candidate(candidate: str, raw: str) -> Any:
    try:
        return _json.loads(candidate)
    except (ValueError, RecursionError) as exc:
        raise JsonSyntaxError(f"Invalid JSON in LLM response: {exc}", raw) from exc


def _preview(raw: str) -> str:
    """Single-line, length-bounded view of a model reply for log lines."""
    return (raw or "")[: config.RAW_PREVIEW_CHARS].replace("\n", " ")
