import html
import logging
import re
from typing import Optional

import bleach

from ..config import HTML_SANITIZER_MODE

logger = logging.getLogger(__name__)

# Elements removed together with everything inside them
BLOCKED_ELEMENTS = ("script", "style", "iframe", "object", "embed")

_BLOCKED_NAMES = "|".join(BLOCKED_ELEMENTS)
_BLOCKED_WITH_CONTENT = re.compile(
    rf"<\s*({_BLOCKED_NAMES})\b[^>]*>.*?<\s*/\s*\1\s*>", re.IGNORECASE | re.DOTALL
)
# Self-closing, void or unterminated leftovers such as <embed src=...> or a stray </script>
_BLOCKED_TAG = re.compile(rf"<\s*/?\s*({_BLOCKED_NAMES})\b[^>]*/?>", re.IGNORECASE)
# An opening tag whose closing tag never arrives swallows the rest of the document
# (embed is a void element and never has one)
_BLOCKED_UNCLOSED = re.compile(r"<\s*(script|style|iframe|object)\b[^>]*>.*\Z", re.IGNORECASE | re.DOTALL)

# Markup an email body can reasonably contain
PREVIEW_TAGS = frozenset(
    {
        "a",
        "abbr",
        "b",
        "blockquote",
        "br",
        "caption",
        "center",
        "code",
        "col",
        "colgroup",
        "div",
        "em",
        "font",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "hr",
        "i",
        "img",
        "li",
        "ol",
        "p",
        "pre",
        "s",
        "small",
        "span",
        "strong",
        "sub",
        "sup",
        "table",
        "tbody",
        "td",
        "tfoot",
        "th",
        "thead",
        "tr",
        "u",
        "ul",
    }
)


def _allow_attribute(tag: str, name: str, value: str) -> bool:
    """Drop event handlers and inline style, keep everything else"""
    name = name.lower()
    return not name.startswith("on") and name != "style"


def escape_html(value: str) -> str:
    """Render markup as literal text by escaping &, < and >"""
    return html.escape(value, quote=False)


def strip_blocked_elements(value: str) -> str:
    """Remove script/style/iframe/object/embed elements including their content"""
    value = _BLOCKED_WITH_CONTENT.sub("", value)
    value = _BLOCKED_UNCLOSED.sub("", value)
    return _BLOCKED_TAG.sub("", value)


def sanitize_html(html_content: Optional[str], mode: Optional[str] = None) -> str:
    """
    Clean HTML for on-screen preview.

    In "parser" mode dangerous elements are removed with their content,
    event-handler and style attributes are dropped from every remaining
    element, and bleach normalizes whatever is left. Malformed markup is
    cleaned on a best-effort basis and never raises.

    In "escape" mode nothing is interpreted: &, < and > are escaped so the
    whole input shows up as literal text.

    Args:
        html_content: HTML to clean
        mode: "parser" or "escape" (defaults to HTML_SANITIZER_MODE)

    Returns:
        Sanitized HTML
    """
    if not html_content:
        return ""

    mode = (mode or HTML_SANITIZER_MODE).lower()
    if mode == "escape":
        return escape_html(html_content)

    if mode != "parser":
        logger.warning(f"⚠️ Unknown sanitizer mode '{mode}', escaping instead")
        return escape_html(html_content)

    return bleach.clean(
        strip_blocked_elements(html_content),
        tags=PREVIEW_TAGS,
        attributes=_allow_attribute,
        strip=True,
    )
