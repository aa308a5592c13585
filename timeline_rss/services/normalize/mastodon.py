import logging
from typing import Any

from pydantic import ValidationError

from timeline_rss.schemas.feed import MAX_NESTING_DEPTH, MediaItem, MediaKind, NormalizedPost
from timeline_rss.schemas.mastodon import MastodonAttachment, MastodonStatus
from timeline_rss.services.normalize.common import clean_text, first_text, html_to_text, parse_timestamp
from timeline_rss.utils.network import safe_url

logger = logging.getLogger(__name__)

VIDEO_ATTACHMENT_TYPES = {"video", "gifv"}


def _quoted_status(quote: dict[str, Any] | None) -> MastodonStatus | None:
    if not quote:
        return None
    candidate = quote.get("quoted_status") if "quoted_status" in quote else quote
    if not isinstance(candidate, dict):
        return None
    try:
        return MastodonStatus.model_validate(candidate)
    except ValidationError:
        logger.debug("Ignoring malformed quoted status")
        return None


def _media_item(attachment: MastodonAttachment) -> MediaItem | None:
    if attachment.type == "image":
        url = safe_url(attachment.url) or safe_url(attachment.remote_url) or safe_url(attachment.preview_url)
        kind = MediaKind.image
    elif attachment.type in VIDEO_ATTACHMENT_TYPES:
        url = safe_url(attachment.url) or safe_url(attachment.remote_url)
        kind = MediaKind.video
    else:
        return None
    if not url:
        return None
    return MediaItem(
        url=url,
        kind=kind,
        alt_text=clean_text(attachment.description) if attachment.description is not None else None,
        thumbnail_url=safe_url(attachment.preview_url) if kind == MediaKind.video else None,
    )


def normalize_status(status: MastodonStatus, depth: int = 0) -> NormalizedPost | None:
    status_id = clean_text(str(status.id)).strip() if status.id is not None else ""
    if not status_id:
        return None

    account = status.account
    handle = first_text(account.acct, account.username)
    reposted_post = None
    quoted_post = None
    if depth < MAX_NESTING_DEPTH:
        if status.reblog is not None:
            reposted_post = normalize_status(status.reblog, depth + 1)
        quoted = _quoted_status(status.quote)
        if quoted is not None:
            quoted_post = normalize_status(quoted, depth + 1)

    media = [item for item in (_media_item(a) for a in status.media_attachments) if item is not None]
    return NormalizedPost(
        id=status_id,
        author_display_name=first_text(account.display_name, handle),
        author_handle=handle,
        text_html_unsafe=html_to_text(status.content),
        permalink=safe_url(status.url) or safe_url(status.uri) or "",
        created_at=parse_timestamp(status.created_at),
        reposted_post=reposted_post,
        quoted_post=quoted_post,
        media=media,
    )


def normalize_statuses(statuses: list[MastodonStatus]) -> list[NormalizedPost]:
    posts: list[NormalizedPost] = []
    for status in statuses:
        post = normalize_status(status)
        if post is None:
            logger.info("Skipping Mastodon status without an id")
            continue
        posts.append(post)
    return posts
