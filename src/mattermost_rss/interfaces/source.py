"""Abstract interface for the upstream post source."""

from typing import Protocol

from ..models.mattermost import ChannelInfo, UserInfo
from ..models.post import NewsPost


class PostSource(Protocol):
    """Contract between the feed/HTTP layers and the chat server.

    The HTTP layer depends only on this protocol, so tests can pass an
    in-memory double instead of a live Mattermost adapter.
    """

    async def resolve_channel_id(self) -> str:
        """
        Resolve the configured news channel to its identifier.

        Returns:
            The channel identifier

        Raises:
            ChannelResolutionError: If the channel lookup fails
        """
        ...

    async def fetch_posts(self, limit: int = 50) -> list[NewsPost]:
        """
        Fetch one page of ordinary posts from the news channel.

        Args:
            limit: Maximum number of posts to request

        Returns:
            Posts sorted newest first

        Raises:
            PostFetchError: If the channel or its posts can't be fetched
        """
        ...

    async def fetch_channel_info(self) -> ChannelInfo:
        """
        Fetch news channel metadata.

        Never raises for upstream failures; returns ``ChannelInfo.fallback()``.
        """
        ...

    async def fetch_identity(self) -> UserInfo:
        """
        Fetch the user record of the API credential.

        Never raises for upstream failures; returns ``UserInfo.fallback()``.
        """
        ...
