"""Cleanup of provider-specific wrapping around recognized text.

Some vision models wrap plain OCR output in a fenced code block, in an HTML
document, or prefix lines with markdown heading markers. The steps below undo
that, in a fixed order:

1. unwrap a single outer code fence (fences may contain HTML),
2. strip HTML tags and decode entities,
3. strip heading markers (headings may appear inside the unwrapped HTML).
"""
from __future__ import annotations

import re
from typing import Callable, Sequence

_FENCE_RE = re.compile(r"\A```[^\n]*\n(.*)\n```\Z", re.DOTALL)
_HTML_PROBE_RE = re.compile(r"<[a-z][\s\S]*>", re.IGNORECASE)
_BREAK_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_BLOCK_CLOSE_RE = re.compile(r"</(?:p|div|li)>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_ENTITY_RE = re.compile(r"&(nbsp|lt|gt|amp|quot);")
_BLANK_RUN_RE = re.compile(r"\n{3,}")
_HEADING_RE = re.compile(r"^#{1,6} ", re.MULTILINE)

_ENTITIES = {"nbsp": " ", "lt": "<", "gt": ">", "amp": "&", "quot": '"'}

Step = Callable[[str], str]


def unwrap_code_fence(text: str) -> str:
    """Return the body of ``text`` when all of it is one fenced code block."""

    match = _FENCE_RE.match(text)
    if match is None:
        return text
    return match.group(1).strip()


def strip_html(text: str) -> str:
    """Turn HTML-looking output into plain text with paragraph breaks preserved."""

    if not _HTML_PROBE_RE.search(text):
        return text
    text = _BREAK_RE.sub("\n", text)
    text = _BLOCK_CLOSE_RE.sub("\n", text)
    text = _TAG_RE.sub("", text)
    # Single pass so "&amp;lt;" decodes to "&lt;" and not "<".
    text = _ENTITY_RE.sub(lambda match: _ENTITIES[match.group(1)], text)
    text = _BLANK_RUN_RE.sub("\n\n", text)
    return text.strip()


def strip_heading_markers(text: str) -> str:
    """Drop a leading ``#``..``######`` marker and its space from every line."""

    return _HEADING_RE.sub("", text)


NORMALIZATION_STEPS: Sequence[Step] = (
    unwrap_code_fence,
    strip_html,
    strip_heading_markers,
)


def apply_steps(text: str, steps: Sequence[Step] = NORMALIZATION_STEPS) -> str:
    """Run each step once, in order."""

    text = text.strip()
    for step in steps:
        text = step(text)
    return text


def normalize_output(text: str) -> str:
    """Normalize recognized text until it no longer changes.

    Every step either leaves its input alone or makes it strictly shorter, so
    the loop terminates, and the result is stable under a second application.
    """

    current = apply_steps(text)
    while True:
        following = apply_steps(current)
        if following == current:
            return current
        current = following
