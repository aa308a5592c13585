from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

REASON_REPOST = "app.bsky.feed.defs#reasonRepost"
EMBED_IMAGES = "app.bsky.embed.images#view"
EMBED_VIDEO = "app.bsky.embed.video#view"
EMBED_EXTERNAL = "app.bsky.embed.external#view"
EMBED_RECORD = "app.bsky.embed.record#view"
EMBED_RECORD_WITH_MEDIA = "app.bsky.embed.recordWithMedia#view"
VIEW_RECORD = "app.bsky.embed.record#viewRecord"


class BlueskyModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class BlueskyProfile(BlueskyModel):
    did: str | None = None
    handle: str = ""
    display_name: str | None = Field(default=None, alias="displayName")


class BlueskyPostView(BlueskyModel):
    uri: str | None = None
    cid: str | None = None
    author: BlueskyProfile = Field(default_factory=BlueskyProfile)
    record: dict[str, Any] = Field(default_factory=dict)
    embed: dict[str, Any] | None = None
    indexed_at: str | None = Field(default=None, alias="indexedAt")


class BlueskyViewRecord(BlueskyModel):
    """Quoted post as embedded by ``app.bsky.embed.record#view``."""

    type: str | None = Field(default=None, alias="$type")
    uri: str | None = None
    author: BlueskyProfile = Field(default_factory=BlueskyProfile)
    value: dict[str, Any] = Field(default_factory=dict)
    embeds: list[dict[str, Any]] = Field(default_factory=list)
    indexed_at: str | None = Field(default=None, alias="indexedAt")


class BlueskyReason(BlueskyModel):
    type: str | None = Field(default=None, alias="$type")
    by: BlueskyProfile | None = None
    indexed_at: str | None = Field(default=None, alias="indexedAt")


class BlueskyFeedItem(BlueskyModel):
    post: BlueskyPostView
    reason: BlueskyReason | None = None


class BlueskyTimeline(BlueskyModel):
    feed: list[BlueskyFeedItem]
    cursor: str | None = None


class BlueskySession(BlueskyModel):
    access_jwt: str = Field(alias="accessJwt", min_length=1)
    did: str | None = None
    handle: str | None = None
