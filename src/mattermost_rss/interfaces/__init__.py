"""Abstract interfaces for pluggable components."""

from .source import PostSource

__all__ = ["PostSource"]
