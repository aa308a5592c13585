from timeline_rss.services.upstream.common import UpstreamResponse, request_upstream

PLATFORM = "mastodon"


async def fetch_home_timeline(base_url: str, access_token: str, limit: int) -> UpstreamResponse:
    return await request_upstream(
        PLATFORM,
        "GET",
        f"{base_url}api/v1/timelines/home",
        params={"limit": limit},
        headers={"Authorization": f"Bearer {access_token}"},
    )
