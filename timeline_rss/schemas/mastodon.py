from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class MastodonAccount(BaseModel):
    id: str | int | None = None
    username: str | None = None
    acct: str | None = None
    display_name: str | None = None
    url: str | None = None


class MastodonAttachment(BaseModel):
    type: str = "unknown"
    url: str | None = None
    preview_url: str | None = None
    remote_url: str | None = None
    description: str | None = None


class MastodonStatus(BaseModel):
    id: str | int | None = None
    uri: str | None = None
    url: str | None = None
    created_at: str | None = None
    content: str | None = None
    account: MastodonAccount = Field(default_factory=MastodonAccount)
    reblog: MastodonStatus | None = None
    # Either a status (Fedibird, Akkoma) or a Mastodon 4.4 ``{"state", "quoted_status"}`` wrapper.
    quote: dict[str, Any] | None = None
    media_attachments: list[MastodonAttachment] = Field(default_factory=list)
