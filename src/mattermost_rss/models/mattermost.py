"""Pydantic models for Mattermost REST API v4 payloads.

Only the fields this service reads are declared; anything else the
server sends is ignored.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

FALLBACK_EMAIL = "noreply@mattermost.com"


class Reaction(BaseModel):
    """An emoji reaction attached to a post."""

    emoji_name: str = ""
    user_id: str = ""
    post_id: str = ""
    create_at: int = 0


class PostMetadata(BaseModel):
    """Server-computed metadata attached to a post."""

    reactions: list[Reaction] = []


class MattermostPost(BaseModel):
    """A post as returned by ``GET /channels/{id}/posts``."""

    id: str
    message: str = ""
    create_at: int
    update_at: int = 0
    channel_id: str = ""
    user_id: str = ""
    file_ids: list[str] | None = None
    # Empty for ordinary user messages, e.g. "system_join_channel" otherwise
    type: str = ""
    reply_count: int | None = None
    is_pinned: bool = False
    has_reactions: bool = False
    props: dict[str, Any] | None = None
    metadata: PostMetadata | None = None

    @property
    def is_user_message(self) -> bool:
        """True for ordinary messages, False for system and event posts."""
        return self.type == ""


class PostList(BaseModel):
    """Page of posts: display order plus an id-to-post mapping."""

    order: list[str]
    posts: dict[str, MattermostPost]


class ChannelInfo(BaseModel):
    """Channel metadata from ``GET /channels/{id}``."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    display_name: str = ""
    purpose: str = ""
    header: str = ""
    name: str = ""

    @classmethod
    def fallback(cls) -> "ChannelInfo":
        """Stand-in used when channel metadata can't be fetched."""
        return cls(
            id="",
            display_name="News Channel",
            purpose="News and updates feed",
            header="",
            name="news",
        )


class UserInfo(BaseModel):
    """The credential owner's user record from ``GET /users/me``."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    username: str = ""
    first_name: str = ""
    last_name: str = ""
    email: str | None = None
    roles: str | None = Field(default=None, description="Space separated role tags")

    @classmethod
    def fallback(cls) -> "UserInfo":
        """Stand-in used when the identity lookup fails."""
        return cls(id="", username="api-user", first_name="Mattermost", last_name="API")

    @property
    def contact(self) -> str:
        """RSS person string, e.g. ``bot@example.com (News Bot)``."""
        return f"{self.email or FALLBACK_EMAIL} ({self.first_name} {self.last_name})"
