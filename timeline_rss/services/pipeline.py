"""One fetch-and-render cycle per request.

Both platforms run through the same steps: fetch, classify, normalize,
render, assemble. Only the fetch and normalize steps differ per platform.
"""

import logging

from pydantic import TypeAdapter

from timeline_rss.core.config import AuthMode, get_settings
from timeline_rss.core.observability import FEED_ITEMS, UPSTREAM_REQUESTS
from timeline_rss.schemas.bluesky import BlueskyTimeline
from timeline_rss.schemas.feed import FeedMetadata, NormalizedPost
from timeline_rss.schemas.mastodon import MastodonStatus
from timeline_rss.services.classifier import Success, Unparseable, classify
from timeline_rss.services.feed import assemble_feed
from timeline_rss.services.normalize.bluesky import BSKY_APP_URL, normalize_feed
from timeline_rss.services.normalize.mastodon import normalize_statuses
from timeline_rss.services.render import render_post
from timeline_rss.services.upstream import bluesky, mastodon
from timeline_rss.services.upstream.common import UpstreamRequestError, UpstreamResponse
from timeline_rss.utils.network import validate_instance

logger = logging.getLogger(__name__)

MASTODON_TIMELINE = TypeAdapter(list[MastodonStatus])
BLUESKY_TIMELINE = TypeAdapter(BlueskyTimeline)


class MissingCredentialsError(ValueError):
    def __init__(self, message: str, code: str = "MISSING_CREDENTIALS"):
        super().__init__(message)
        self.code = code


def _expect_success(platform: str, response: UpstreamResponse, parser: TypeAdapter):
    outcome = classify(response.status_code, response.body, parser)
    if isinstance(outcome, Success):
        UPSTREAM_REQUESTS.labels(platform, "success").inc()
        return outcome.posts
    label = "unparseable" if isinstance(outcome, Unparseable) else "upstream_error"
    UPSTREAM_REQUESTS.labels(platform, label).inc()
    raise UpstreamRequestError(outcome.message, status_code=outcome.status_code)


def render_feed(platform: str, posts: list[NormalizedPost], metadata: FeedMetadata) -> str:
    items = [(post, render_post(post)) for post in posts]
    FEED_ITEMS.labels(platform).observe(len(items))
    return assemble_feed(items, metadata)


async def build_mastodon_feed(instance: str, access_token: str) -> str:
    base_url = validate_instance(instance)
    if not access_token or not access_token.strip():
        raise MissingCredentialsError("An access token is required", code="MISSING_TOKEN")

    settings = get_settings()
    response = await mastodon.fetch_home_timeline(base_url, access_token.strip(), settings.timeline_limit)
    statuses = _expect_success(mastodon.PLATFORM, response, MASTODON_TIMELINE)
    posts = normalize_statuses(statuses)
    logger.info("Rendering %d Mastodon posts from %s", len(posts), instance)
    metadata = FeedMetadata(title="Mastodon Timeline", description="Mastodon Timeline", channel_link=base_url)
    return render_feed(mastodon.PLATFORM, posts, metadata)


async def build_bluesky_feed(mode: AuthMode, access_token: str | None = None) -> str:
    settings = get_settings()
    if mode == AuthMode.credentials:
        if not settings.bluesky_identifier or not settings.bluesky_password:
            raise MissingCredentialsError(
                "Bluesky credentials are not configured; use /bluesky/{access_token} instead"
            )
        access_jwt = await bluesky.create_session(
            settings.bluesky_service_url, settings.bluesky_identifier, settings.bluesky_password
        )
    else:
        if not access_token or not access_token.strip():
            raise MissingCredentialsError("An access token is required", code="MISSING_TOKEN")
        access_jwt = access_token.strip()

    response = await bluesky.fetch_timeline(settings.bluesky_service_url, access_jwt, settings.timeline_limit)
    timeline = _expect_success(bluesky.PLATFORM, response, BLUESKY_TIMELINE)
    posts = normalize_feed(timeline)
    logger.info("Rendering %d Bluesky posts (%s)", len(posts), mode.value)
    metadata = FeedMetadata(title="Bluesky Timeline", description="Bluesky Timeline", channel_link=f"{BSKY_APP_URL}/")
    return render_feed(bluesky.PLATFORM, posts, metadata)
