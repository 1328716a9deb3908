"""Data models and transfer objects."""

from .mattermost import (
    ChannelInfo,
    MattermostPost,
    PostList,
    PostMetadata,
    Reaction,
    UserInfo,
)
from .post import NewsPost

__all__ = [
    # Upstream models
    "MattermostPost",
    "PostList",
    "PostMetadata",
    "Reaction",
    "ChannelInfo",
    "UserInfo",
    # Feed models
    "NewsPost",
]
