"""Core feed logic: text formatting and feed assembly."""

from .feed_builder import FeedBuilder, FeedGenerationError
from .formatting import (
    extract_categories,
    extract_title,
    format_description,
    strip_invalid_xml_chars,
)

__all__ = [
    "FeedBuilder",
    "FeedGenerationError",
    "extract_title",
    "format_description",
    "extract_categories",
    "strip_invalid_xml_chars",
]
