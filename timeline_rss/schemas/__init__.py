from timeline_rss.schemas.feed import MAX_NESTING_DEPTH, FeedMetadata, MediaItem, MediaKind, NormalizedPost

__all__ = [
    "MAX_NESTING_DEPTH",
    "FeedMetadata",
    "MediaItem",
    "MediaKind",
    "NormalizedPost",
]
