"""Mattermost adapter using the REST API v4.

This module implements the PostSource protocol against a Mattermost
server with httpx. Every call is a single authenticated GET with an
explicit timeout and no retries; callers decide whether a failure is
fatal (post listing) or replaced by a fallback (channel and identity
metadata).
"""

from __future__ import annotations

from typing import Any, TypeVar
from urllib.parse import quote

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from .._version import __version__
from ..config.schema import MattermostConfig
from ..models.mattermost import ChannelInfo, PostList, UserInfo
from ..models.post import NewsPost

log = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)

# Mattermost rejects larger pages
MAX_PAGE_SIZE = 200
DEFAULT_PAGE_SIZE = 50


class MattermostError(Exception):
    """Base exception for Mattermost adapter errors."""


class UpstreamRequestError(MattermostError):
    """Raised when a single API call fails.

    Covers network errors, timeouts, non-2xx responses and bodies that
    don't match the expected shape.

    Attributes:
        path: API path that was requested.
        status_code: HTTP status, if a response was received.
    """

    def __init__(self, message: str, path: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.path = path
        self.status_code = status_code


class ChannelResolutionError(MattermostError):
    """Raised when the news channel can't be looked up by name."""

    def __init__(self, channel_name: str) -> None:
        super().__init__(f"Failed to find news channel: {channel_name}")
        self.channel_name = channel_name


class PostFetchError(MattermostError):
    """Raised when the post listing can't be fetched."""


class MetadataFetchError(MattermostError):
    """Raised when channel or identity metadata can't be fetched.

    Never escapes the adapter: public methods replace it with a fallback.
    """


class MattermostAdapter:
    """Mattermost adapter implementing the PostSource protocol.

    Example:
        config = AppConfig().mattermost
        async with MattermostAdapter(config) as adapter:
            posts = await adapter.fetch_posts(limit=20)
    """

    def __init__(
        self,
        config: MattermostConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            config: Mattermost connection settings.
            transport: Optional httpx transport, used by tests to fake the server.
        """
        self._config = config
        self._client = httpx.AsyncClient(
            base_url=config.api_url,
            headers={
                "Authorization": f"Bearer {config.bot_token}",
                "Content-Type": "application/json",
                "User-Agent": f"mattermost-rss/{__version__}",
            },
            timeout=config.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> MattermostAdapter:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def _get(
        self,
        path: str,
        model: type[ModelT],
        params: dict[str, Any] | None = None,
    ) -> ModelT:
        """GET an API path and validate the JSON body.

        Args:
            path: Path relative to ``/api/v4``.
            model: Pydantic model the body must match.
            params: Optional query parameters.

        Returns:
            The validated model.

        Raises:
            UpstreamRequestError: If the request or validation fails.
        """
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise UpstreamRequestError(f"Request to {path} failed: {e}", path) from e

        if response.is_error:
            raise UpstreamRequestError(
                f"Request to {path} returned HTTP {response.status_code}",
                path,
                status_code=response.status_code,
            )

        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise UpstreamRequestError(
                f"Malformed response from {path}: {e}",
                path,
                status_code=response.status_code,
            ) from e

    async def resolve_channel_id(self) -> str:
        """Resolve the configured news channel to its identifier.

        A configured channel id is returned without a network call.

        Raises:
            ChannelResolutionError: If the lookup by name fails.
        """
        if self._config.news_channel_id:
            return self._config.news_channel_id

        name = self._config.news_channel_name
        path = (
            f"/teams/{quote(self._config.team_id, safe='')}"
            f"/channels/name/{quote(name, safe='')}"
        )
        try:
            channel = await self._get(path, ChannelInfo)
        except UpstreamRequestError as e:
            log.error(
                "channel_resolution_failed",
                channel=name,
                status_code=e.status_code,
                error=str(e),
            )
            raise ChannelResolutionError(name) from e

        if not channel.id:
            log.error("channel_resolution_failed", channel=name, error="missing id")
            raise ChannelResolutionError(name)

        log.debug("channel_resolved", channel=name, channel_id=channel.id)
        return channel.id

    async def fetch_posts(self, limit: int = DEFAULT_PAGE_SIZE) -> list[NewsPost]:
        """Fetch one page of ordinary posts, newest first.

        System and event posts (non-empty ``type``) are dropped.

        Args:
            limit: Page size, clamped to 1..200.

        Returns:
            At most ``limit`` posts sorted by creation time, newest first.

        Raises:
            PostFetchError: If channel resolution or the listing fails.
        """
        per_page = max(1, min(limit, MAX_PAGE_SIZE))

        try:
            channel_id = await self.resolve_channel_id()
            page = await self._get(
                f"/channels/{quote(channel_id, safe='')}/posts",
                PostList,
                params={"per_page": per_page, "page": 0},
            )
        except MattermostError as e:
            log.error("post_fetch_failed", error=str(e))
            raise PostFetchError("Failed to fetch news posts from Mattermost") from e

        news_posts: list[NewsPost] = []
        for post_id in page.order:
            post = page.posts.get(post_id)
            if post is None:
                log.error(
                    "post_fetch_failed",
                    error="order references unknown post",
                    post_id=post_id,
                )
                raise PostFetchError("Failed to fetch news posts from Mattermost")
            if post.is_user_message:
                news_posts.append(NewsPost.from_upstream(post))

        news_posts.sort(key=lambda p: p.create_at, reverse=True)
        news_posts = news_posts[:per_page]

        log.info(
            "posts_fetched",
            channel_id=channel_id,
            received=len(page.order),
            kept=len(news_posts),
        )
        return news_posts

    async def _load_channel_info(self) -> ChannelInfo:
        try:
            channel_id = await self.resolve_channel_id()
            return await self._get(f"/channels/{quote(channel_id, safe='')}", ChannelInfo)
        except MattermostError as e:
            raise MetadataFetchError(f"Failed to fetch channel info: {e}") from e

    async def _load_identity(self) -> UserInfo:
        try:
            return await self._get("/users/me", UserInfo)
        except MattermostError as e:
            raise MetadataFetchError(f"Failed to fetch user info: {e}") from e

    async def fetch_channel_info(self) -> ChannelInfo:
        """Fetch news channel metadata, or the fallback record on failure."""
        try:
            return await self._load_channel_info()
        except MetadataFetchError as e:
            log.warning("channel_info_fallback", error=str(e))
            return ChannelInfo.fallback()

    async def fetch_identity(self) -> UserInfo:
        """Fetch the credential owner's user record, or the fallback on failure."""
        try:
            return await self._load_identity()
        except MetadataFetchError as e:
            log.warning("identity_fallback", error=str(e))
            return UserInfo.fallback()
