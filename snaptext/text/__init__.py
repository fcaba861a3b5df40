"""Text post-processing: output normalization and markdown rendering."""

from .markdown import MarkdownRenderer, escape_html, render_markdown
from .normalize import NORMALIZATION_STEPS, normalize_output, strip_heading_markers, strip_html, unwrap_code_fence

__all__ = [
    "MarkdownRenderer",
    "escape_html",
    "render_markdown",
    "NORMALIZATION_STEPS",
    "normalize_output",
    "strip_heading_markers",
    "strip_html",
    "unwrap_code_fence",
]
