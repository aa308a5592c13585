from fastapi import APIRouter
from starlette.responses import Response

from timeline_rss.core.config import AuthMode
from timeline_rss.core.responses import rss_response
from timeline_rss.services.pipeline import build_bluesky_feed, build_mastodon_feed

router = APIRouter(tags=["feeds"])


# Registered before the Mastodon route, which would otherwise capture /bluesky/{token}.
@router.get("/bluesky")
async def bluesky_credentials_feed() -> Response:
    return rss_response(await build_bluesky_feed(AuthMode.credentials))


@router.get("/bluesky/{access_token}")
async def bluesky_token_feed(access_token: str) -> Response:
    return rss_response(await build_bluesky_feed(AuthMode.bearer_token, access_token))


@router.get("/{mastodon_instance}/{access_token}")
async def mastodon_feed(mastodon_instance: str, access_token: str) -> Response:
    return rss_response(await build_mastodon_feed(mastodon_instance, access_token))
