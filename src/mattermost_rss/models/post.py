"""Normalized post records served by the feed."""

from dataclasses import dataclass, field
from typing import Any

from .mattermost import MattermostPost


@dataclass(frozen=True)
class NewsPost:
    """An ordinary channel message, reshaped for the feed."""

    id: str
    message: str
    create_at: int  # epoch milliseconds
    update_at: int  # epoch milliseconds
    channel_id: str
    file_ids: list[str] = field(default_factory=list)
    type: str = ""
    reply_count: int = 0

    user_id: str = ""
    is_pinned: bool = False
    has_reactions: bool = False
    props: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_upstream(cls, post: MattermostPost) -> "NewsPost":
        """Build a NewsPost from a raw Mattermost post."""
        reactions = post.metadata.reactions if post.metadata else []
        return cls(
            id=post.id,
            message=post.message,
            create_at=post.create_at,
            update_at=post.update_at,
            channel_id=post.channel_id,
            file_ids=list(post.file_ids or []),
            type=post.type,
            reply_count=post.reply_count or 0,
            user_id=post.user_id,
            is_pinned=post.is_pinned,
            has_reactions=post.has_reactions or bool(reactions),
            props=dict(post.props or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase JSON shape served by ``/posts``."""
        return {
            "id": self.id,
            "message": self.message,
            "createAt": self.create_at,
            "updateAt": self.update_at,
            "channelId": self.channel_id,
            "fileIds": list(self.file_ids),
            "type": self.type,
            "replyCount": self.reply_count,
            "userId": self.user_id,
            "isPinned": self.is_pinned,
            "hasReactions": self.has_reactions,
            "props": dict(self.props),
        }
