"""Feed assembly: turn channel posts and metadata into RSS 2.0.

The builder fetches posts, channel metadata and the credential identity
concurrently. Only the post listing is fatal; the two metadata calls
already degrade to fallback records inside the source.

The XML is produced with ElementTree, dates are RFC 822 (as RSS
requires) and every item carries ``mattermost:`` extension elements
with the raw post identifiers and counters.
"""

from __future__ import annotations

import asyncio
import xml.etree.ElementTree as ET
from email.utils import format_datetime
from typing import TYPE_CHECKING, Any, cast

import structlog

from .._version import __version__
from ..models.mattermost import ChannelInfo, UserInfo
from ..models.post import NewsPost
from ..utils.clock import Clock, from_epoch_ms, isoformat_utc, utc_now
from .formatting import (
    extract_categories,
    extract_title,
    format_description,
    strip_invalid_xml_chars,
)

if TYPE_CHECKING:
    from ..config.schema import AppConfig
    from ..interfaces.source import PostSource

log = structlog.get_logger()

FEED_POST_LIMIT = 50
FEED_TTL_MINUTES = 60
FEED_LANGUAGE = "en"
FEED_CATEGORIES = ("Mattermost", "News", "Updates")

ATOM_NS = "http://www.w3.org/2005/Atom"
MATTERMOST_NS = "https://mattermost.com/rss"

ET.register_namespace("atom", ATOM_NS)
ET.register_namespace("mattermost", MATTERMOST_NS)


class FeedGenerationError(Exception):
    """Raised when the feed can't be assembled."""


def _sub(parent: ET.Element, tag: str, text: str | None = None, **attrib: str) -> ET.Element:
    element = ET.SubElement(parent, tag, attrib)
    if text is not None:
        element.text = strip_invalid_xml_chars(text)
    return element


def _mm(tag: str) -> str:
    return f"{{{MATTERMOST_NS}}}{tag}"


class FeedBuilder:
    """Builds the RSS document and the raw JSON post listing.

    Example:
        builder = FeedBuilder(adapter, config)
        xml = await builder.build_feed()
    """

    def __init__(self, source: PostSource, config: AppConfig, clock: Clock | None = None) -> None:
        """Initialize the builder.

        Args:
            source: Where posts and metadata come from.
            config: Application configuration.
            clock: Returns the current UTC time; defaults to the system clock.
        """
        self._source = source
        self._config = config
        self._clock = clock or utc_now

    async def build_feed(self) -> str:
        """Fetch everything and render the RSS XML.

        Returns:
            The UTF-8 RSS document as a string.

        Raises:
            FeedGenerationError: If the post listing can't be fetched.
        """
        posts, channel, identity = await asyncio.gather(
            self._source.fetch_posts(FEED_POST_LIMIT),
            self._source.fetch_channel_info(),
            self._source.fetch_identity(),
            return_exceptions=True,
        )

        if isinstance(posts, BaseException):
            log.error("feed_generation_failed", error=str(posts))
            raise FeedGenerationError(f"Failed to generate RSS feed: {posts}") from posts
        # Metadata calls fall back internally, so anything here is a bug
        for result in (channel, identity):
            if isinstance(result, BaseException):
                raise result

        channel_info = cast(ChannelInfo, channel)
        xml = self.render(posts, channel_info, cast(UserInfo, identity))
        log.info("feed_generated", items=len(posts), channel=channel_info.display_name)
        return xml

    def render(self, posts: list[NewsPost], channel: ChannelInfo, identity: UserInfo) -> str:
        """Render already-fetched data as RSS XML.

        Args:
            posts: Items, newest first.
            channel: Channel metadata (possibly the fallback).
            identity: Credential identity (possibly the fallback).

        Returns:
            The RSS document.
        """
        config = self._config
        now = self._clock()
        site_url = config.mattermost_url
        title = (
            f"{config.mattermost_team_name} - News Feed"
            if config.mattermost_team_name
            else channel.display_name
        )

        rss = ET.Element("rss", {"version": "2.0"})
        feed = _sub(rss, "channel")

        _sub(feed, "title", title)
        _sub(feed, "description", channel.purpose or f"Latest posts from {channel.display_name}")
        _sub(feed, "link", site_url)

        image = _sub(feed, "image")
        _sub(image, "url", f"{site_url}/api/v4/brand/image")
        _sub(image, "title", title)
        _sub(image, "link", site_url)

        _sub(feed, "generator", f"mattermost-rss {__version__}")
        _sub(feed, "lastBuildDate", format_datetime(now, usegmt=True))
        _sub(
            feed,
            f"{{{ATOM_NS}}}link",
            href=config.feed_url,
            rel="self",
            type="application/rss+xml",
        )
        _sub(feed, "pubDate", format_datetime(now, usegmt=True))
        _sub(feed, "copyright", f"Copyright {now.year}")
        _sub(feed, "language", FEED_LANGUAGE)
        _sub(feed, "managingEditor", identity.contact)
        _sub(feed, "webMaster", identity.contact)
        _sub(feed, "ttl", str(FEED_TTL_MINUTES))
        for category in FEED_CATEGORIES:
            _sub(feed, "category", category)

        for post in posts:
            self._render_item(feed, post)

        ET.indent(rss, space="  ")
        return ET.tostring(rss, encoding="utf-8", xml_declaration=True).decode("utf-8")

    def _render_item(self, feed: ET.Element, post: NewsPost) -> None:
        config = self._config
        item = _sub(feed, "item")

        _sub(item, "title", extract_title(post.message))
        _sub(item, "description", format_description(post.message))
        _sub(item, "link", f"{config.mattermost_url}/{config.mattermost_team_name}/pl/{post.id}")
        _sub(item, "guid", post.id, isPermaLink="false")
        for category in extract_categories(post):
            _sub(item, "category", category)
        _sub(item, "pubDate", format_datetime(from_epoch_ms(post.create_at), usegmt=True))

        _sub(item, _mm("post_id"), post.id)
        _sub(item, _mm("channel_id"), post.channel_id)
        _sub(item, _mm("reply_count"), str(post.reply_count))
        _sub(item, _mm("has_reactions"), "true" if post.has_reactions else "false")
        _sub(item, _mm("is_pinned"), "true" if post.is_pinned else "false")
        _sub(item, _mm("author_id"), post.user_id)
        _sub(item, _mm("updated_at"), isoformat_utc(from_epoch_ms(post.update_at)))

    async def build_posts_payload(self, limit: int = FEED_POST_LIMIT) -> dict[str, Any]:
        """Build the ``/posts`` JSON envelope.

        Raises:
            PostFetchError: If the post listing can't be fetched.
        """
        posts = await self._source.fetch_posts(limit)
        return {
            "posts": [post.to_dict() for post in posts],
            "count": len(posts),
            "timestamp": isoformat_utc(self._clock()),
            "channel": self._config.mattermost_news_channel,
        }
