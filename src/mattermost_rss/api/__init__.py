"""HTTP interface for the feed service."""

from .app import create_app

__all__ = ["create_app"]
