"""
Rich text helpers for export rendering.

Formatting mirrors what the host does when it prints a stored text field:
the field's format decides how newlines and markup are treated, and
untrusted HTML is cleaned of script-capable markup first.
"""
import html
import re
import unicodedata
from functools import lru_cache
from typing import Union

from ..core.models import PLUGINFILE_PLACEHOLDER, TextFormat


# Script-capable markup removed from untrusted HTML
_SCRIPT_BLOCK = re.compile(r'<script\b[^>]*>.*?</script\s*>', re.IGNORECASE | re.DOTALL)
_EVENT_HANDLER = re.compile(r'\s+on\w+\s*=\s*("[^"]*"|\'[^\']*\'|[^\s>]+)', re.IGNORECASE)
_JS_URL = re.compile(r'(href|src)\s*=\s*(["\']?)\s*javascript:[^"\'>\s]*\2', re.IGNORECASE)

_FILENAME_FORBIDDEN = re.compile(r'[\x00-\x1f\x7f/\\:*?"<>|]')
_BLANK_LINES = re.compile(r'\n\s*\n')


def s(text: Union[str, int, None]) -> str:
    """Escape a value for output inside HTML text or attributes."""
    if text is None:
        return ""
    return html.escape(str(text), quote=True)


def nl2br(text: str) -> str:
    text = text.replace('\r\n', '\n').replace('\r', '\n')
    return text.replace('\n', '<br />\n')


def clean_text(text: str) -> str:
    """Strip script blocks, inline event handlers and javascript: URLs."""
    text = _SCRIPT_BLOCK.sub('', text)
    text = _EVENT_HANDLER.sub('', text)
    text = _JS_URL.sub(r'\1=\2#\2', text)
    return text


def _paragraphs(text: str) -> str:
    text = text.replace('\r\n', '\n').replace('\r', '\n').strip()
    if not text:
        return ""
    blocks = _BLANK_LINES.split(text)
    return "".join(f"<p>{nl2br(block.strip())}</p>" for block in blocks if block.strip())


def format_text(text: str, text_format: Union[TextFormat, int], trusted: bool = False) -> str:
    """
    Render a stored text field as HTML.

    Args:
        text: Raw field content
        text_format: Stored format of the field
        trusted: Whether the author was allowed to use unrestricted HTML

    Returns:
        HTML fragment
    """
    if not text:
        return ""

    text_format = TextFormat.coerce(text_format)

    if text_format == TextFormat.PLAIN:
        return nl2br(s(text))

    if text_format == TextFormat.MARKDOWN:
        # No markdown engine is involved; the source renders as escaped paragraphs.
        return _paragraphs(s(text))

    if text_format == TextFormat.MOODLE:
        text = nl2br(text)

    return text if trusted else clean_text(text)


def rewrite_pluginfile_urls(text: str, prefix: str) -> str:
    """
    Point embedded file URLs at the package file directory.

    ``@@PLUGINFILE@@/image.png`` becomes ``<prefix>/image.png``; an empty
    prefix leaves bare filenames.
    """
    replacement = f"{prefix}/" if prefix else ""
    return text.replace(f"{PLUGINFILE_PLACEHOLDER}/", replacement)


@lru_cache(maxsize=1024)
def clean_filename(name: str, default: str = "export") -> str:
    """Make ``name`` safe to use as a single path component."""
    name = unicodedata.normalize("NFC", name or "")
    name = _FILENAME_FORBIDDEN.sub('_', name).strip().strip('.')
    name = re.sub(r'\s+', ' ', name)
    if not name:
        return default
    return name[:200]
