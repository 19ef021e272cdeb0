"""Utility to extract JSON from LLM responses."""

from __future__ import annotations

import json
import re
from typing import Any

from resume_optimizer.errors import MalformedResponse

_FENCED_BLOCK = re.compile(r"```json\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_FENCE_MARKER = re.compile(r"```(?:json)?", re.IGNORECASE)


def extract_json(text: str, *, strict: bool = False) -> Any:
    """Extract JSON from an LLM response, handling ```json blocks.

    Tries in order:
    1. The interior of a fenced ```json block, if there is one
    2. The whole text with stray fence markers removed
    3. The outermost {...} or [...] span, whichever opens first
       (skipped when ``strict`` is set)

    A reply cut off mid-JSON is never patched up; it fails like any
    other unparseable reply.

    Raises:
        MalformedResponse: with the raw text attached when nothing parses.
    """
    if not isinstance(text, str) or not text.strip():
        raise MalformedResponse(text or "", "empty reply")

    candidate = _fenced_interior(text)
    if candidate is None:
        candidate = strip_code_fences(text)

    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        pass

    if not strict:
        # Only the container that opens first is the outermost one
        opener, closer = min((("{", "}"), ("[", "]")), key=lambda pair: _find_or_end(candidate, pair[0]))
        result = _extract_span(candidate, opener, closer)
        if result is not None:
            return result

    raise MalformedResponse(text, "no parseable JSON")


def _fenced_interior(text: str) -> str | None:
    match = _FENCED_BLOCK.search(text)
    if match is None:
        return None
    return match.group(1).strip()


def strip_code_fences(text: str) -> str:
    """Remove every markdown code fence marker from text."""
    return _FENCE_MARKER.sub("", text).strip()


def _find_or_end(text: str, char: str) -> int:
    idx = text.find(char)
    return len(text) if idx == -1 else idx


def _extract_span(text: str, opener: str, closer: str) -> Any | None:
    """Try to parse the text between the first opener and the last closer."""
    start = text.find(opener)
    end = text.rfind(closer)
    if start != -1 and end != -1 and end > start:
        try:
            return json.loads(text[start : end + 1])
        except json.JSONDecodeError:
            pass
    return None
