import logging
from typing import Any

from pydantic import ValidationError

from timeline_rss.schemas.bluesky import (
    EMBED_EXTERNAL,
    EMBED_IMAGES,
    EMBED_RECORD,
    EMBED_RECORD_WITH_MEDIA,
    EMBED_VIDEO,
    REASON_REPOST,
    VIEW_RECORD,
    BlueskyFeedItem,
    BlueskyPostView,
    BlueskyProfile,
    BlueskyTimeline,
    BlueskyViewRecord,
)
from timeline_rss.schemas.feed import MAX_NESTING_DEPTH, MediaItem, MediaKind, NormalizedPost
from timeline_rss.services.normalize.common import clean_text, first_text, parse_timestamp
from timeline_rss.utils.network import safe_url

logger = logging.getLogger(__name__)

BSKY_APP_URL = "https://bsky.app"
POST_COLLECTION = "app.bsky.feed.post"


def post_permalink(author: BlueskyProfile, uri: str) -> str:
    """bsky.app URL for an ``at://{did}/app.bsky.feed.post/{rkey}`` post, else the at-uri."""
    actor = first_text(author.handle, author.did)
    parts = uri.removeprefix("at://").split("/")
    if actor and uri.startswith("at://") and len(parts) == 3 and parts[1] == POST_COLLECTION and parts[2]:
        return f"{BSKY_APP_URL}/profile/{actor}/post/{parts[2]}"
    return uri


def _alt(value: Any) -> str | None:
    return clean_text(value) if isinstance(value, str) else None


def _media_items(embed: dict[str, Any] | None) -> list[MediaItem]:
    if not embed:
        return []
    embed_type = embed.get("$type")
    items: list[MediaItem] = []
    if embed_type == EMBED_IMAGES:
        for image in embed.get("images") or []:
            if not isinstance(image, dict):
                continue
            url = safe_url(image.get("fullsize")) or safe_url(image.get("thumb"))
            if url:
                items.append(MediaItem(url=url, kind=MediaKind.image, alt_text=_alt(image.get("alt"))))
    elif embed_type == EMBED_VIDEO:
        url = safe_url(embed.get("playlist"))
        if url:
            items.append(
                MediaItem(
                    url=url,
                    kind=MediaKind.video,
                    alt_text=_alt(embed.get("alt")),
                    thumbnail_url=safe_url(embed.get("thumbnail")),
                    mime_type="application/x-mpegURL",
                )
            )
    elif embed_type == EMBED_EXTERNAL:
        external = embed.get("external") or {}
        url = safe_url(external.get("thumb")) if isinstance(external, dict) else None
        if url:
            items.append(MediaItem(url=url, kind=MediaKind.image, alt_text=_alt(external.get("title"))))
    elif embed_type == EMBED_RECORD_WITH_MEDIA:
        media = embed.get("media")
        if isinstance(media, dict) and media.get("$type") != EMBED_RECORD_WITH_MEDIA:
            items.extend(_media_items(media))
    return items


def _quoted_record(embed: dict[str, Any] | None) -> BlueskyViewRecord | None:
    if not embed:
        return None
    embed_type = embed.get("$type")
    record = embed.get("record")
    if embed_type == EMBED_RECORD_WITH_MEDIA and isinstance(record, dict):
        record = record.get("record")
    elif embed_type != EMBED_RECORD:
        return None
    if not isinstance(record, dict) or record.get("$type") != VIEW_RECORD:
        # Blocked, deleted and non-post records (feeds, lists) have nothing to quote.
        return None
    try:
        return BlueskyViewRecord.model_validate(record)
    except ValidationError:
        logger.debug("Ignoring malformed quoted record")
        return None


def _build_post(
    uri: str | None,
    author: BlueskyProfile,
    record: dict[str, Any],
    embed: dict[str, Any] | None,
    indexed_at: str | None,
    depth: int,
) -> NormalizedPost | None:
    uri = clean_text(uri).strip() if uri else ""
    if not uri:
        return None

    quoted_post = None
    if depth < MAX_NESTING_DEPTH:
        quoted = _quoted_record(embed)
        if quoted is not None:
            quoted_post = _normalize_view_record(quoted, depth + 1)

    text = record.get("text")
    return NormalizedPost(
        id=uri,
        author_display_name=first_text(author.display_name, author.handle),
        author_handle=first_text(author.handle, author.did),
        text_html_unsafe=clean_text(text) if isinstance(text, str) else "",
        permalink=post_permalink(author, uri),
        created_at=parse_timestamp(record.get("createdAt")) or parse_timestamp(indexed_at),
        quoted_post=quoted_post,
        media=_media_items(embed),
    )


def _normalize_view_record(view: BlueskyViewRecord, depth: int) -> NormalizedPost | None:
    embed = view.embeds[0] if view.embeds else None
    return _build_post(view.uri, view.author, view.value, embed, view.indexed_at, depth)


def normalize_post_view(post: BlueskyPostView, depth: int = 0) -> NormalizedPost | None:
    return _build_post(post.uri, post.author, post.record, post.embed, post.indexed_at, depth)


def normalize_feed_item(item: BlueskyFeedItem) -> NormalizedPost | None:
    reason = item.reason
    if reason is None or reason.type != REASON_REPOST or reason.by is None:
        return normalize_post_view(item.post)

    reposted = normalize_post_view(item.post, depth=1)
    if reposted is None:
        return None
    reposter = reason.by
    return NormalizedPost(
        id=f"{reposted.id}#repost:{first_text(reposter.did, reposter.handle)}",
        author_display_name=first_text(reposter.display_name, reposter.handle),
        author_handle=first_text(reposter.handle, reposter.did),
        permalink=reposted.permalink,
        created_at=parse_timestamp(reason.indexed_at) or reposted.created_at,
        reposted_post=reposted,
    )


def normalize_feed(timeline: BlueskyTimeline) -> list[NormalizedPost]:
    posts: list[NormalizedPost] = []
    for item in timeline.feed:
        post = normalize_feed_item(item)
        if post is None:
            logger.info("Skipping Bluesky feed item without a post uri")
            continue
        posts.append(post)
    return posts
