"""Text formatting for feed items.

Pure functions with no I/O. Every function accepts any string,
including the empty string, without raising.
"""

from __future__ import annotations

import html
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..models.post import NewsPost

DEFAULT_TITLE = "News Post"
DEFAULT_TITLE_LENGTH = 120
ELLIPSIS = "..."

# Applied in order, each as a single non-recursive pass
_MARKUP_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\*\*(.*?)\*\*"), r"<strong>\1</strong>"),
    (re.compile(r"\*(.*?)\*"), r"<em>\1</em>"),
    (re.compile(r"`(.*?)`"), r"<code>\1</code>"),
    (re.compile(r"\n"), "<br>"),
    (
        re.compile(r"\[([^\]]*)\]\(((?:https?://|mailto:)[^\s()]+)\)"),
        r'<a href="\2">\1</a>',
    ),
)

BASE_CATEGORIES = ("mattermost", "news")

# Code points XML 1.0 does not allow, tab, LF and CR excepted
_INVALID_XML_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


def strip_invalid_xml_chars(text: str) -> str:
    """Remove characters that would make an XML document malformed."""
    return _INVALID_XML_CHARS.sub("", text)


def extract_title(message: str, max_length: int = DEFAULT_TITLE_LENGTH) -> str:
    """Use the first line of a message as its title.

    Args:
        message: Raw message text.
        max_length: Longest first line kept intact.

    Returns:
        The first line, truncated to ``max_length`` plus an ellipsis when
        longer, or ``"News Post"`` when the first line is empty.
    """
    first_line = strip_invalid_xml_chars(message).split("\n", 1)[0]

    if len(first_line) > max_length:
        return first_line[:max_length] + ELLIPSIS
    return first_line or DEFAULT_TITLE


def format_description(message: str) -> str:
    """Render lightweight message markup as HTML.

    The message is HTML-escaped first, then bold, italic, inline code,
    line breaks and ``[text](url)`` links are substituted in that order.
    Only http(s) and mailto links become anchors. Nested or unbalanced
    markup is left as-is.

    Args:
        message: Raw message text.

    Returns:
        HTML fragment for the item description.
    """
    result = html.escape(strip_invalid_xml_chars(message))
    for pattern, replacement in _MARKUP_RULES:
        result = pattern.sub(replacement, result)
    return result


def extract_categories(post: NewsPost) -> list[str]:
    """Derive RSS item categories from post flags and props.

    ``props.tags`` is read as a comma separated list; ``props.category``
    as a single value. Duplicates and blanks are dropped, order is kept.
    """
    categories = list(BASE_CATEGORIES)

    if post.is_pinned:
        categories.append("pinned")
    if post.has_reactions:
        categories.append("popular")
    if post.reply_count > 0:
        categories.append("discussion")

    tags = post.props.get("tags")
    if isinstance(tags, str):
        categories.extend(tag.strip() for tag in tags.split(","))

    category = post.props.get("category")
    if isinstance(category, str):
        categories.append(category.strip())

    return list(dict.fromkeys(c for c in categories if c))
