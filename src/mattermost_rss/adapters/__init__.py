"""Concrete implementations of the post source interface.

Currently provides:
- mattermost: Mattermost REST API v4 via httpx
"""

from .mattermost import (
    ChannelResolutionError,
    MattermostAdapter,
    MattermostError,
    MetadataFetchError,
    PostFetchError,
    UpstreamRequestError,
)

__all__ = [
    "MattermostAdapter",
    "MattermostError",
    "UpstreamRequestError",
    "ChannelResolutionError",
    "PostFetchError",
    "MetadataFetchError",
]
