"""Coerce single-section model output into the shape callers expect."""

from __future__ import annotations

import re
from typing import Any, Union

from resume_optimizer.models.request import SectionKind
from resume_optimizer.pipeline.normalizer import clean_value
from resume_optimizer.utils.json_parser import strip_code_fences

SectionOutput = Union[str, list[str], list[list[str]]]

# Keys models commonly wrap their answer in, e.g. {"bullets": [...]}
_WRAPPER_KEYS = (
    "variations",
    "bullets",
    "items",
    "text",
    "summary",
    "careerObjective",
    "skills",
    "certifications",
    "achievements",
    "result",
    "output",
)

_BULLET_MARKER = re.compile(r"^\s*(?:[-*•●◦▪·–—]+|\d+[.)](?=\s))\s*")


class ShapeMismatch(ValueError):
    """Parsed JSON could not be coerced to the expected section shape."""


def _unwrap(data: Any) -> Any:
    if isinstance(data, dict):
        for key in _WRAPPER_KEYS:
            if key in data:
                return data[key]
        if len(data) == 1:
            return next(iter(data.values()))
    return data


def _strings(value: Any) -> list[str]:
    value = _unwrap(value)
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ShapeMismatch(f"Expected a list of strings, got {type(value).__name__}")
    result = []
    for item in value:
        item = _unwrap(item)
        if isinstance(item, (int, float)) and not isinstance(item, bool):
            item = str(item)
        if isinstance(item, str) and item:
            result.append(item)
    return result


def _scalar(value: Any) -> str:
    value = _unwrap(value)
    if isinstance(value, list):
        return " ".join(_strings(value))
    if isinstance(value, str):
        return value
    raise ShapeMismatch(f"Expected a string, got {type(value).__name__}")


def shape_section_output(kind: SectionKind, variations: int | None, parsed: Any) -> SectionOutput:
    """Coerce parsed JSON into ``str``, ``list[str]`` or ``list[list[str]]``.

    Scalar kinds give a string, or a list of strings when variations are
    requested. List kinds give a list of strings, or a list of lists when
    more than one variation is requested.
    """
    data = clean_value(_unwrap(parsed))
    count = variations or 1

    if kind.is_scalar:
        if variations is None:
            return _scalar(data)
        items = data if isinstance(data, list) else [data]
        result = [s for s in (_scalar(v) for v in items) if s]
        return result[:count]

    if count == 1:
        if isinstance(data, list) and data and all(isinstance(_unwrap(v), list) for v in data):
            # One variation requested but a list of sets returned
            return _strings(data[0])
        return _strings(data)

    if not isinstance(data, list):
        raise ShapeMismatch(f"Expected a list of variations, got {type(data).__name__}")
    if data and all(isinstance(v, str) for v in data):
        # A flat list came back; treat it as a single variation
        return [_strings(data)]
    sets = [s for s in (_strings(v) for v in data) if s]
    return sets[:count]


def split_lines(text: str) -> list[str]:
    """Split free text into lines, stripping bullet markers and blank lines."""
    lines = []
    for line in clean_value(strip_code_fences(text)).splitlines():
        line = _BULLET_MARKER.sub("", line).strip().strip('"').strip()
        if line:
            lines.append(line)
    return lines


def fallback_section_output(kind: SectionKind, variations: int | None, text: str) -> SectionOutput:
    """Best-effort shaping of a non-JSON reply via line splitting."""
    lines = split_lines(text)
    if kind.is_scalar:
        if variations is None:
            return " ".join(lines)
        return lines[: variations]
    if (variations or 1) > 1:
        return [lines] if lines else []
    return lines
