"""Load plain resume text from TXT, Markdown, PDF or DOCX files."""

from __future__ import annotations

import re
from pathlib import Path

SUPPORTED_SUFFIXES = (".txt", ".md", ".pdf", ".docx")

_INVISIBLE = re.compile(r"[\u200b\u200c\u200d\u00ad\u2060\ufeff]")
_FANCY_BULLET = re.compile(r"^(\s*)[●•◦◆■▪★○]\s*", re.MULTILINE)


def parse_resume(file_path: str | Path) -> str:
    """Read a resume file and return its text with layout noise removed."""
    path = Path(file_path)
    suffix = path.suffix.lower()
    if suffix == ".pdf":
        raw = _read_pdf(path)
    elif suffix == ".docx":
        raw = _read_docx(path)
    elif suffix in (".txt", ".md"):
        raw = path.read_text(encoding="utf-8")
    else:
        raise ValueError(
            f"Unsupported file format: {path.suffix} (expected one of {', '.join(SUPPORTED_SUFFIXES)})"
        )
    return clean_text(raw)


def clean_text(text: str) -> str:
    """Normalize extracted text.

    Removes zero-width characters, turns decorative bullets into ``-``,
    trims trailing whitespace and collapses runs of blank lines.
    """
    text = _INVISIBLE.sub("", text)
    text = _FANCY_BULLET.sub(r"\1- ", text)
    lines = [line.rstrip() for line in text.splitlines()]
    text = "\n".join(lines)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def _read_pdf(path: Path) -> str:
    import fitz  # pymupdf

    with fitz.open(str(path)) as doc:
        return "\n".join(page.get_text() for page in doc)


def _read_docx(path: Path) -> str:
    from docx import Document

    doc = Document(str(path))
    return "\n".join(p.text for p in doc.paragraphs if p.text.strip())
