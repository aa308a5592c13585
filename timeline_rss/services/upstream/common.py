import logging
from dataclasses import dataclass
from time import perf_counter

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from timeline_rss.core.config import get_settings
from timeline_rss.core.observability import UPSTREAM_LATENCY

logger = logging.getLogger(__name__)

USER_AGENT = "timeline-rss/0.1"
RETRY_WAIT = wait_exponential(multiplier=1, min=1, max=8)


class UpstreamRequestError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class UpstreamAuthError(UpstreamRequestError):
    pass


class UpstreamUnavailableError(RuntimeError):
    pass


@dataclass(frozen=True)
class UpstreamResponse:
    status_code: int
    body: bytes
    content_type: str | None = None


def _client() -> httpx.AsyncClient:
    settings = get_settings()
    return httpx.AsyncClient(
        timeout=settings.upstream_timeout_seconds,
        follow_redirects=False,
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
    )


async def _send(method: str, url: str, **kwargs) -> UpstreamResponse:
    async for attempt in AsyncRetrying(
        wait=RETRY_WAIT,
        stop=stop_after_attempt(get_settings().upstream_max_retries),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    ):
        with attempt:
            async with _client() as client:
                response = await client.request(method, url, **kwargs)
    return UpstreamResponse(
        status_code=response.status_code,
        body=response.content,
        content_type=response.headers.get("content-type"),
    )


async def request_upstream(platform: str, method: str, url: str, **kwargs) -> UpstreamResponse:
    """Send one upstream request; the status code is left for the classifier to judge."""
    started = perf_counter()
    try:
        response = await _send(method, url, **kwargs)
    except httpx.TransportError as exc:
        logger.warning("Could not reach %s upstream %s: %s", platform, httpx.URL(url).host, exc)
        raise UpstreamUnavailableError(f"Could not reach the {platform} server. Please try again later.") from exc
    finally:
        UPSTREAM_LATENCY.labels(platform).observe(perf_counter() - started)
    return response
