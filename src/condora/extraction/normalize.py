# src/condora/extraction/normalize.py
from __future__ import annotations

import re

from bs4 import BeautifulSoup

_WS_RE = re.compile(r"\s+")
_INLINE_WS_RE = re.compile(r"[^\S\n]+")


def markup_text(raw: str) -> str:
    """Text content of an HTML fragment, every entity decoded. Plain text passes through."""
    return BeautifulSoup(raw, "html.parser").get_text(" ")


def clean_text(raw: str | None, *, keep_lines: bool = False) -> str:
    """
    Markup -> plain text with whitespace collapsed. `None` and "" give "".

    keep_lines=True keeps one line per source line (blank lines dropped), so
    line-scoped patterns do not run on into the next label of a brochure.
    """
    if not raw:
        return ""
    text = markup_text(raw)
    if not keep_lines:
        return _WS_RE.sub(" ", text).strip()
    lines = (_INLINE_WS_RE.sub(" ", line).strip() for line in text.splitlines())
    return "\n".join(line for line in lines if line)
