from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "timeline_rss_requests_total",
    "Total HTTP requests",
    ["method", "route", "status"],
)

REQUEST_LATENCY = Histogram(
    "timeline_rss_request_latency_seconds",
    "HTTP request latency",
    ["method", "route"],
)

UPSTREAM_REQUESTS = Counter(
    "timeline_rss_upstream_requests_total",
    "Upstream timeline fetches by outcome",
    ["platform", "outcome"],
)

UPSTREAM_LATENCY = Histogram(
    "timeline_rss_upstream_latency_seconds",
    "Upstream API call latency",
    ["platform"],
)

FEED_ITEMS = Histogram(
    "timeline_rss_feed_items",
    "Items per rendered feed",
    ["platform"],
    buckets=(0, 1, 5, 10, 20, 40, 100),
)
