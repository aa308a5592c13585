import logging

from pydantic import ValidationError

from timeline_rss.schemas.bluesky import BlueskySession
from timeline_rss.services.classifier import UNEXPECTED_RESPONSE_MESSAGE, extract_error_message
from timeline_rss.services.upstream.common import UpstreamAuthError, UpstreamResponse, request_upstream

logger = logging.getLogger(__name__)

PLATFORM = "bluesky"
CREATE_SESSION = "/xrpc/com.atproto.server.createSession"
GET_TIMELINE = "/xrpc/app.bsky.feed.getTimeline"


async def create_session(service_url: str, identifier: str, password: str) -> str:
    """Exchange an identifier and app password for an access JWT."""
    response = await request_upstream(
        PLATFORM,
        "POST",
        f"{service_url.rstrip('/')}{CREATE_SESSION}",
        json={"identifier": identifier, "password": password},
    )
    if not 200 <= response.status_code < 300:
        message = extract_error_message(response.status_code, response.body)
        logger.warning("Bluesky session creation failed with HTTP %s: %s", response.status_code, message)
        raise UpstreamAuthError(message, status_code=response.status_code)
    try:
        session = BlueskySession.model_validate_json(response.body)
    except ValidationError as exc:
        raise UpstreamAuthError(UNEXPECTED_RESPONSE_MESSAGE, status_code=response.status_code) from exc
    return session.access_jwt


async def fetch_timeline(service_url: str, access_jwt: str, limit: int) -> UpstreamResponse:
    return await request_upstream(
        PLATFORM,
        "GET",
        f"{service_url.rstrip('/')}{GET_TIMELINE}",
        params={"limit": limit},
        headers={"Authorization": f"Bearer {access_jwt}"},
    )
