"""Shared test fixtures for Mattermost RSS."""

from __future__ import annotations

import copy
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import httpx
import pytest

from mattermost_rss.config.schema import AppConfig
from mattermost_rss.models.mattermost import ChannelInfo, UserInfo
from mattermost_rss.models.post import NewsPost

MATTERMOST_URL = "https://chat.example.com"
API = "/api/v4"
FIXED_NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)

ENV_VARS = (
    "MATTERMOST_URL",
    "MATTERMOST_BOT_TOKEN",
    "MATTERMOST_TEAM_ID",
    "MATTERMOST_TEAM_NAME",
    "MATTERMOST_NEWS_CHANNEL",
    "MATTERMOST_NEWS_CHANNEL_ID",
    "BASE_URL",
    "HOST",
    "PORT",
    "REQUEST_TIMEOUT",
    "LOG_LEVEL",
    "LOG_FORMAT",
)

POSTS_PAYLOAD: dict[str, Any] = {
    "order": ["p2", "p3", "p1", "sys"],
    "posts": {
        "p1": {
            "id": "p1",
            "message": "First announcement",
            "create_at": 100,
            "update_at": 100,
            "channel_id": "chan1",
            "user_id": "u1",
            "type": "",
        },
        "p2": {
            "id": "p2",
            "message": "**Release** 2.0 is out\nSee [notes](https://example.com/notes)",
            "create_at": 300,
            "update_at": 350,
            "channel_id": "chan1",
            "user_id": "u1",
            "type": "",
            "file_ids": ["f1"],
            "reply_count": 2,
            "is_pinned": True,
            "props": {"tags": "release, ops"},
        },
        "p3": {
            "id": "p3",
            "message": "Maintenance window tonight",
            "create_at": 200,
            "update_at": 200,
            "channel_id": "chan1",
            "user_id": "u2",
            "type": "",
            "metadata": {
                "reactions": [
                    {"emoji_name": "+1", "user_id": "u3", "post_id": "p3", "create_at": 250}
                ]
            },
        },
        "sys": {
            "id": "sys",
            "message": "bob joined the channel.",
            "create_at": 400,
            "update_at": 400,
            "channel_id": "chan1",
            "user_id": "u9",
            "type": "system_join_channel",
        },
    },
}

CHANNEL_PAYLOAD: dict[str, Any] = {
    "id": "chan1",
    "display_name": "Company News",
    "purpose": "Announcements for everyone",
    "header": "",
    "name": "news",
    "team_id": "team1",
}

USER_PAYLOAD: dict[str, Any] = {
    "id": "bot1",
    "username": "newsbot",
    "first_name": "News",
    "last_name": "Bot",
    "email": "newsbot@example.com",
    "roles": "system_user",
}

Route = tuple[int, Any] | Exception


def mock_mattermost(
    routes: dict[str, Route],
    calls: list[httpx.Request] | None = None,
) -> httpx.MockTransport:
    """Build a transport that answers API paths from a route table.

    Values are ``(status, json_body)`` tuples or exceptions to raise.
    Unknown paths answer 404.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        route = routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "not found"})
        if isinstance(route, Exception):
            raise route
        status, body = route
        return httpx.Response(status, json=copy.deepcopy(body))

    return httpx.MockTransport(handler)


def healthy_routes() -> dict[str, Route]:
    """Routes for a server where every call succeeds."""
    return {
        f"{API}/teams/team1/channels/name/news": (200, CHANNEL_PAYLOAD),
        f"{API}/channels/chan1/posts": (200, POSTS_PAYLOAD),
        f"{API}/channels/chan1": (200, CHANNEL_PAYLOAD),
        f"{API}/users/me": (200, USER_PAYLOAD),
    }


class FakeSource:
    """In-memory PostSource double."""

    def __init__(
        self,
        posts: list[NewsPost] | None = None,
        channel: ChannelInfo | None = None,
        identity: UserInfo | None = None,
        posts_error: Exception | None = None,
        channel_error: Exception | None = None,
    ) -> None:
        self.posts = posts or []
        self.channel = channel or ChannelInfo.fallback()
        self.identity = identity or UserInfo.fallback()
        self.posts_error = posts_error
        self.channel_error = channel_error
        self.requested_limits: list[int] = []

    async def resolve_channel_id(self) -> str:
        return "chan1"

    async def fetch_posts(self, limit: int = 50) -> list[NewsPost]:
        self.requested_limits.append(limit)
        if self.posts_error is not None:
            raise self.posts_error
        return self.posts[:limit]

    async def fetch_channel_info(self) -> ChannelInfo:
        if self.channel_error is not None:
            raise self.channel_error
        return self.channel

    async def fetch_identity(self) -> UserInfo:
        return self.identity


def make_post(post_id: str, create_at: int, message: str = "Hello", **kwargs: Any) -> NewsPost:
    """Create a NewsPost with sensible defaults."""
    return NewsPost(
        id=post_id,
        message=message,
        create_at=create_at,
        update_at=kwargs.pop("update_at", create_at),
        channel_id=kwargs.pop("channel_id", "chan1"),
        **kwargs,
    )


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of AppConfig."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def app_config() -> AppConfig:
    """Configuration pointing at the fake server, resolving the channel by name."""
    return AppConfig(
        _env_file=None,  # type: ignore[call-arg]
        mattermost_url=MATTERMOST_URL,
        mattermost_bot_token="test-token-1234567890",
        mattermost_team_id="team1",
        mattermost_team_name="acme",
        mattermost_news_channel="news",
        base_url="https://feeds.example.com",
    )


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock frozen at FIXED_NOW."""
    return lambda: FIXED_NOW
