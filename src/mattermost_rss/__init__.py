"""Mattermost RSS - serve a Mattermost channel as an RSS feed."""

from mattermost_rss._version import __version__

__all__ = ["__version__"]
