import logging
import mimetypes
from collections.abc import Sequence
from datetime import datetime, timezone

from feedgen.feed import FeedGenerator

from timeline_rss.schemas.feed import MAX_NESTING_DEPTH, FeedMetadata, MediaItem, MediaKind, NormalizedPost
from timeline_rss.utils.network import safe_url

logger = logging.getLogger(__name__)

GENERATOR_NAME = "timeline-rss"
DEFAULT_MIME_TYPES = {
    MediaKind.image: "image/jpeg",
    MediaKind.video: "video/mp4",
}


class ChannelBuildError(RuntimeError):
    pass


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _renderable_media(post: NormalizedPost, depth: int = 0) -> list[tuple[str, MediaItem]]:
    """Media shown in the item body, including that of a reposted post."""
    media = [(url, item) for item in post.media if (url := safe_url(item.url))]
    if post.reposted_post is not None and depth < MAX_NESTING_DEPTH:
        media.extend(_renderable_media(post.reposted_post, depth + 1))
    return media


def _mime_type(url: str, media: MediaItem) -> str:
    if media.mime_type:
        return media.mime_type
    guessed, _ = mimetypes.guess_type(url.split("?", 1)[0])
    if guessed and guessed.split("/", 1)[0] == media.kind.value:
        return guessed
    return DEFAULT_MIME_TYPES[media.kind]


def _build(items: Sequence[tuple[NormalizedPost, str]], metadata: FeedMetadata) -> str:
    fg = FeedGenerator()
    fg.title(metadata.title)
    fg.description(metadata.description)
    fg.link(href=metadata.channel_link, rel="alternate")
    fg.generator(GENERATOR_NAME)

    has_media = any(_renderable_media(post) for post, _ in items)
    if has_media:
        fg.load_extension("media", atom=False, rss=True)

    dates = [_as_utc(post.created_at) for post, _ in items if post.created_at is not None]
    if dates:
        fg.lastBuildDate(max(dates))

    for post, description in items:
        entry = fg.add_entry(order="append")
        entry.guid(post.id, permalink=False)
        entry.title(post.author_display_name or post.author_handle)
        entry.description(description)
        if post.permalink:
            entry.link(href=post.permalink)
        if post.created_at is not None:
            entry.pubDate(_as_utc(post.created_at))

        media = _renderable_media(post)
        for url, item in media:
            entry.media.content(url=url, medium=item.kind.value, type=_mime_type(url, item), group=None)
        if media:
            url, item = media[0]
            entry.enclosure(url, "0", _mime_type(url, item))

    return fg.rss_str(pretty=True).decode("utf-8")


def assemble_feed(items: Sequence[tuple[NormalizedPost, str]], metadata: FeedMetadata) -> str:
    """Serialize rendered posts into an RSS 2.0 document, keeping their order."""
    try:
        return _build(items, metadata)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Failed to build RSS channel %r", metadata.title)
        raise ChannelBuildError("Failed to build RSS channel") from exc
