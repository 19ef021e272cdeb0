"""Strip comment syntax and editor artifacts from text blocks."""

from __future__ import annotations

import re

_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_ANNOTATION = re.compile(r"[ \t]*//[ \t]*Line[ \t]+\d+[^\n]*")
_TRAILING_SPACE = re.compile(r"[ \t]+$", re.MULTILINE)
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def sanitize(text: str) -> str:
    """Remove comment markers that leaked into prompt input or model output.

    Block comments, ``// Line 12`` annotations and whole-line or trailing
    ``//`` comments are removed. ``https://`` style URLs are left intact.
    Runs of three or more newlines collapse to two.
    """
    if not text:
        return text

    # Removing one block comment can splice "/" and "*" into a new opener.
    while True:
        stripped = _BLOCK_COMMENT.sub("", text)
        if stripped == text:
            break
        text = stripped
    text = _LINE_ANNOTATION.sub("", text)

    lines = []
    for line in text.split("\n"):
        if line.lstrip().startswith("//"):
            continue
        lines.append(_strip_trailing_comment(line))
    text = "\n".join(lines)

    text = _TRAILING_SPACE.sub("", text)
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    return text


def _strip_trailing_comment(line: str) -> str:
    """Cut a line at the first ``//`` that is not part of a URL."""
    start = 0
    while True:
        idx = line.find("//", start)
        if idx == -1:
            return line
        if _is_url_slashes(line, idx):
            start = idx + 2
            continue
        return line[:idx].rstrip()


def _is_url_slashes(line: str, idx: int) -> bool:
    # scheme://  (https://, ftp://, ...)
    if idx > 0 and line[idx - 1] == ":":
        j = idx - 1
        while j > 0 and (line[j - 1].isalnum() or line[j - 1] in "+.-"):
            j -= 1
        return j < idx - 1
    # path segments inside a URL token: example.com/a//b
    token_start = max(line.rfind(" ", 0, idx), line.rfind("\t", 0, idx)) + 1
    return "://" in line[token_start:idx]
