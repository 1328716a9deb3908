"""Tests for RSS feed assembly."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Callable
from datetime import datetime

import pytest
from conftest import FakeSource, make_post

from mattermost_rss.adapters.mattermost import PostFetchError
from mattermost_rss.config.schema import AppConfig
from mattermost_rss.core.feed_builder import (
    MATTERMOST_NS,
    FeedBuilder,
    FeedGenerationError,
)
from mattermost_rss.models.mattermost import ChannelInfo, UserInfo

MM = f"{{{MATTERMOST_NS}}}"


@pytest.fixture
def channel() -> ChannelInfo:
    return ChannelInfo(
        id="chan1",
        display_name="Company News",
        purpose="Announcements for everyone",
        name="news",
    )


@pytest.fixture
def identity() -> UserInfo:
    return UserInfo(
        id="bot1",
        username="newsbot",
        first_name="News",
        last_name="Bot",
        email="newsbot@example.com",
    )


@pytest.fixture
def source(channel: ChannelInfo, identity: UserInfo) -> FakeSource:
    return FakeSource(
        posts=[
            make_post("p2", 1_700_000_300_000, "**Big** news\nmore text", reply_count=2),
            make_post("p1", 1_700_000_000_000, ""),
        ],
        channel=channel,
        identity=identity,
    )


def parse_channel(xml: str) -> ET.Element:
    root = ET.fromstring(xml.encode("utf-8"))
    assert root.tag == "rss"
    assert root.get("version") == "2.0"
    channel = root.find("channel")
    assert channel is not None
    return channel


class TestBuildFeed:
    """Tests for FeedBuilder.build_feed."""

    async def test_channel_fields(
        self,
        source: FakeSource,
        app_config: AppConfig,
        fixed_clock: Callable[[], datetime],
    ) -> None:
        """Test feed-level metadata."""
        xml = await FeedBuilder(source, app_config, clock=fixed_clock).build_feed()
        feed = parse_channel(xml)

        assert feed.findtext("title") == "acme - News Feed"
        assert feed.findtext("description") == "Announcements for everyone"
        assert feed.findtext("link") == "https://chat.example.com"
        assert feed.findtext("image/url") == "https://chat.example.com/api/v4/brand/image"
        assert feed.findtext("language") == "en"
        assert feed.findtext("ttl") == "60"
        assert feed.findtext("copyright") == "Copyright 2026"
        assert feed.findtext("managingEditor") == "newsbot@example.com (News Bot)"
        assert feed.findtext("webMaster") == "newsbot@example.com (News Bot)"
        assert feed.findtext("pubDate") == "Sun, 01 Mar 2026 12:00:00 GMT"
        assert [c.text for c in feed.findall("category")] == ["Mattermost", "News", "Updates"]

        self_link = feed.find("{http://www.w3.org/2005/Atom}link")
        assert self_link is not None
        assert self_link.get("href") == "https://feeds.example.com/rss"
        assert self_link.get("rel") == "self"

    async def test_items(
        self,
        source: FakeSource,
        app_config: AppConfig,
        fixed_clock: Callable[[], datetime],
    ) -> None:
        """Test item mapping and order."""
        xml = await FeedBuilder(source, app_config, clock=fixed_clock).build_feed()
        items = parse_channel(xml).findall("item")

        assert [i.findtext("guid") for i in items] == ["p2", "p1"]
        first = items[0]
        assert first.findtext("title") == "**Big** news"
        assert first.findtext("description") == "<strong>Big</strong> news<br>more text"
        assert first.findtext("link") == "https://chat.example.com/acme/pl/p2"
        assert first.find("guid").get("isPermaLink") == "false"  # type: ignore[union-attr]
        assert first.findtext("pubDate") == "Tue, 14 Nov 2023 22:18:20 GMT"
        assert "discussion" in [c.text for c in first.findall("category")]
        assert first.findtext(f"{MM}post_id") == "p2"
        assert first.findtext(f"{MM}channel_id") == "chan1"
        assert first.findtext(f"{MM}reply_count") == "2"
        assert first.findtext(f"{MM}has_reactions") == "false"

        assert items[1].findtext("title") == "News Post"

    async def test_requests_fifty_posts(self, source: FakeSource, app_config: AppConfig) -> None:
        """Test the feed page size."""
        await FeedBuilder(source, app_config).build_feed()
        assert source.requested_limits == [50]

    async def test_fallback_metadata(self, app_config: AppConfig) -> None:
        """Test a feed built entirely from fallback records."""
        config = app_config.model_copy(update={"mattermost_team_name": ""})
        source = FakeSource(posts=[make_post("p1", 1)])
        xml = await FeedBuilder(source, config).build_feed()
        feed = parse_channel(xml)

        assert feed.findtext("title") == "News Channel"
        assert feed.findtext("description") == "News and updates feed"
        assert feed.findtext("managingEditor") == "noreply@mattermost.com (Mattermost API)"

    async def test_description_defaults_when_no_purpose(self, app_config: AppConfig) -> None:
        """Test the generated description."""
        source = FakeSource(channel=ChannelInfo(id="c", display_name="Ops"))
        feed = parse_channel(await FeedBuilder(source, app_config).build_feed())
        assert feed.findtext("description") == "Latest posts from Ops"

    async def test_empty_channel(self, source: FakeSource, app_config: AppConfig) -> None:
        """Test a feed without items."""
        source.posts = []
        feed = parse_channel(await FeedBuilder(source, app_config).build_feed())
        assert feed.findall("item") == []

    async def test_post_failure_raises(self, app_config: AppConfig) -> None:
        """Test that a failed post listing aborts the feed."""
        source = FakeSource(posts_error=PostFetchError("upstream down"))
        with pytest.raises(FeedGenerationError) as exc_info:
            await FeedBuilder(source, app_config).build_feed()
        assert isinstance(exc_info.value.__cause__, PostFetchError)

    async def test_identical_output_for_same_data(
        self,
        source: FakeSource,
        app_config: AppConfig,
        fixed_clock: Callable[[], datetime],
    ) -> None:
        """Test that rebuilding with unchanged data is byte-identical."""
        builder = FeedBuilder(source, app_config, clock=fixed_clock)
        assert await builder.build_feed() == await builder.build_feed()

    async def test_pinned_and_author_elements(self, app_config: AppConfig) -> None:
        """Test the pinned flag and author id on items."""
        source = FakeSource(posts=[make_post("p1", 1, user_id="u1", is_pinned=True)])
        item = parse_channel(await FeedBuilder(source, app_config).build_feed()).find("item")
        assert item is not None
        assert item.findtext(f"{MM}is_pinned") == "true"
        assert item.findtext(f"{MM}author_id") == "u1"

    async def test_control_characters_stay_well_formed(self, app_config: AppConfig) -> None:
        """Test that terminal escapes and other forbidden characters are dropped."""
        message = "build \x1b[31mFAILED\x1b[0m\nlog:\x00\x0b\x0c\ufffe done"
        source = FakeSource(
            posts=[make_post("p1", 1, message, props={"category": "ci\x07"})],
            channel=ChannelInfo(id="c", display_name="Ops\x01", purpose="Alerts\x1f"),
        )
        feed = parse_channel(await FeedBuilder(source, app_config).build_feed())

        assert feed.findtext("description") == "Alerts"
        item = feed.find("item")
        assert item is not None
        assert item.findtext("title") == "build [31mFAILED[0m"
        assert item.findtext("description") == "build [31mFAILED[0m<br>log: done"
        assert "ci" in [c.text for c in item.findall("category")]

    async def test_xml_declaration(self, source: FakeSource, app_config: AppConfig) -> None:
        """Test the document prolog."""
        xml = await FeedBuilder(source, app_config).build_feed()
        assert xml.startswith("<?xml version='1.0' encoding='utf-8'?>")


class TestBuildPostsPayload:
    """Tests for the /posts envelope."""

    async def test_envelope(
        self,
        source: FakeSource,
        app_config: AppConfig,
        fixed_clock: Callable[[], datetime],
    ) -> None:
        """Test the JSON envelope fields."""
        payload = await FeedBuilder(source, app_config, clock=fixed_clock).build_posts_payload(10)

        assert payload["count"] == 2
        assert payload["timestamp"] == "2026-03-01T12:00:00.000Z"
        assert payload["channel"] == "news"
        assert [p["id"] for p in payload["posts"]] == ["p2", "p1"]
        assert source.requested_limits == [10]

    async def test_failure_propagates(self, app_config: AppConfig) -> None:
        """Test that post errors are not swallowed."""
        source = FakeSource(posts_error=PostFetchError("upstream down"))
        with pytest.raises(PostFetchError):
            await FeedBuilder(source, app_config).build_posts_payload()
