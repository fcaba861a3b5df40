"""Minimal markdown-to-HTML rendering for recognized text.

Only a fixed subset is supported: fenced code blocks, inline code, pipe
tables, ``**bold**``, ``*italic*`` and line breaks. Everything else is shown
as escaped text.
"""
from __future__ import annotations

import re
from typing import Callable, List, Sequence

_CODE_BLOCK_RE = re.compile(r"```(\w*)\n?([\s\S]*?)```")
_INLINE_CODE_RE = re.compile(r"`([^`\n]+)`")
_TABLE_SEPARATOR_RE = re.compile(r"^\|[\s\-|:]+\|$")
_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
_ITALIC_RE = re.compile(r"\*(.+?)\*")
_PLACEHOLDER_RE = re.compile("\x00(\\d+)\x00")

_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#39;",
}
_ESCAPE_RE = re.compile("[&<>\"']")


def escape_html(text: str) -> str:
    """Escape the five HTML-sensitive characters."""

    return _ESCAPE_RE.sub(lambda match: _ESCAPES[match.group(0)], text)


def parse_table_row(line: str) -> List[str]:
    return [cell.strip() for cell in line.strip().split("|")[1:-1]]


def _is_table_line(line: str) -> bool:
    stripped = line.strip()
    return len(stripped) >= 2 and stripped.startswith("|") and stripped.endswith("|")


def _render_table(lines: Sequence[str]) -> str:
    headers = parse_table_row(lines[0])
    rows = [parse_table_row(line) for line in lines[2:]]

    parts = ["<table><thead><tr>"]
    parts.extend(f"<th>{cell}</th>" for cell in headers)
    parts.append("</tr></thead><tbody>")
    for row in rows:
        parts.append("<tr>")
        parts.extend(f"<td>{cell}</td>" for cell in row)
        parts.append("</tr>")
    parts.append("</tbody></table>")
    return "".join(parts)


def render_tables(text: str) -> str:
    """Replace pipe-table blocks with ``<table>`` markup.

    A block is a run of lines that start and end with ``|`` whose second line is
    a separator made of pipes, dashes, colons and spaces. Other pipe text is
    left untouched. A rendered table swallows its own line breaks.
    """

    lines = text.split("\n")
    pieces: List[str] = []
    index = 0
    while index < len(lines):
        if not _is_table_line(lines[index]):
            pieces.append(lines[index])
            pieces.append("\n")
            index += 1
            continue

        end = index
        while end < len(lines) and _is_table_line(lines[end]):
            end += 1
        block = lines[index:end]
        if len(block) >= 2 and _TABLE_SEPARATOR_RE.match(block[1].strip()) and "-" in block[1]:
            pieces.append(_render_table(block))
        else:
            for line in block:
                pieces.append(line)
                pieces.append("\n")
        index = end

    if pieces and pieces[-1] == "\n":
        pieces.pop()
    return "".join(pieces)


class MarkdownRenderer:
    """Ordered pipeline turning normalized text into display-safe markup.

    Code regions are swapped for placeholders as soon as they are found so that
    no later rule can reinterpret their contents; they are restored last.
    """

    def __init__(self) -> None:
        self._protected: List[str] = []

    @property
    def steps(self) -> Sequence[Callable[[str], str]]:
        return (
            escape_html,
            self.extract_code_blocks,
            self.extract_inline_code,
            render_tables,
            self.apply_emphasis,
            self.convert_line_breaks,
            self.restore_protected,
        )

    def render(self, text: str) -> str:
        self._protected = []
        html = text.replace("\x00", "")
        for step in self.steps:
            html = step(html)
        return html

    def _protect(self, markup: str) -> str:
        self._protected.append(markup)
        return f"\x00{len(self._protected) - 1}\x00"

    def extract_code_blocks(self, html: str) -> str:
        def _replace(match: re.Match[str]) -> str:
            lang, code = match.group(1), match.group(2).strip()
            attrs = f' class="language-{lang}"' if lang else ""
            return self._protect(f"<pre><code{attrs}>{code}</code></pre>")

        return _CODE_BLOCK_RE.sub(_replace, html)

    def extract_inline_code(self, html: str) -> str:
        return _INLINE_CODE_RE.sub(lambda match: self._protect(f"<code>{match.group(1)}</code>"), html)

    @staticmethod
    def apply_emphasis(html: str) -> str:
        html = _BOLD_RE.sub(r"<strong>\1</strong>", html)
        return _ITALIC_RE.sub(r"<em>\1</em>", html)

    @staticmethod
    def convert_line_breaks(html: str) -> str:
        return html.replace("\n", "<br>")

    def restore_protected(self, html: str) -> str:
        return _PLACEHOLDER_RE.sub(lambda match: self._protected[int(match.group(1))], html)


def render_markdown(text: str) -> str:
    """Render ``text`` with a fresh :class:`MarkdownRenderer`."""

    return MarkdownRenderer().render(text)
