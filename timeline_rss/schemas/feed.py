from __future__ import annotations

import enum
from datetime import datetime

from pydantic import BaseModel, Field, model_validator

# Repost/quote levels kept below a timeline entry. Two levels keep a quote that
# sits inside a boost; anything deeper is dropped during normalization.
MAX_NESTING_DEPTH = 2


class MediaKind(str, enum.Enum):
    image = "image"
    video = "video"


class MediaItem(BaseModel):
    url: str | None = None
    kind: MediaKind = MediaKind.image
    alt_text: str | None = None
    thumbnail_url: str | None = None
    mime_type: str | None = None


class NormalizedPost(BaseModel):
    id: str = Field(min_length=1)
    author_display_name: str = ""
    author_handle: str = ""
    text_html_unsafe: str = ""
    permalink: str = ""
    created_at: datetime | None = None
    reposted_post: NormalizedPost | None = None
    quoted_post: NormalizedPost | None = None
    media: list[MediaItem] = Field(default_factory=list)

    @model_validator(mode="after")
    def fallback_display_name(self) -> NormalizedPost:
        if not self.author_display_name.strip():
            self.author_display_name = self.author_handle
        return self


class FeedMetadata(BaseModel):
    title: str
    description: str
    channel_link: str
