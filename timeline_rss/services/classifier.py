"""Classification of raw upstream timeline responses.

Upstream APIs do not promise well-typed errors, so the body is probed as an
untyped mapping for a small ordered set of message keys and anything else
degrades to a generic message that embeds only the HTTP status.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

ERROR_MESSAGE_KEYS = ("error", "error_description", "message")
MAX_MESSAGE_LENGTH = 200
BODY_PREVIEW_LENGTH = 500
GENERIC_STATUS_MESSAGE = "Upstream server responded with HTTP {status}. Please try again later."
UNEXPECTED_RESPONSE_MESSAGE = "Unexpected response from upstream server. Please try again later."

_NOT_JSON = object()


@dataclass(frozen=True)
class Success(Generic[T]):
    posts: T


@dataclass(frozen=True)
class UpstreamError:
    message: str
    status_code: int


@dataclass(frozen=True)
class Unparseable:
    status_code: int
    message: str = UNEXPECTED_RESPONSE_MESSAGE


Outcome = Success | UpstreamError | Unparseable


def body_preview(body: bytes) -> str:
    return body[:BODY_PREVIEW_LENGTH].decode("utf-8", errors="replace")


def _decode_json(body: bytes) -> Any:
    try:
        return json.loads(body)
    except (ValueError, RecursionError):
        return _NOT_JSON


def _clean_message(value: str) -> str:
    message = " ".join(value.split())
    if len(message) > MAX_MESSAGE_LENGTH:
        message = message[: MAX_MESSAGE_LENGTH - 3].rstrip() + "..."
    return message


def probe_error_message(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    for key in ERROR_MESSAGE_KEYS:
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return _clean_message(value)
    return None


def extract_error_message(status_code: int, body: bytes) -> str:
    """Best human-readable message for a failed upstream call."""
    payload = _decode_json(body)
    if payload is not _NOT_JSON:
        message = probe_error_message(payload)
        if message:
            return message
    return GENERIC_STATUS_MESSAGE.format(status=status_code)


def classify(status_code: int, body: bytes, parser: TypeAdapter[T]) -> Outcome:
    payload = _decode_json(body)

    if 200 <= status_code < 300:
        if payload is not _NOT_JSON:
            try:
                return Success(parser.validate_python(payload))
            except (ValidationError, RecursionError):
                pass
            message = probe_error_message(payload)
            if message:
                logger.warning("Upstream returned an error body with HTTP %s: %s", status_code, message)
                return UpstreamError(message=message, status_code=status_code)
        logger.warning(
            "Upstream returned an unparseable body with HTTP %s: %r", status_code, body_preview(body)
        )
        return Unparseable(status_code=status_code)

    message = probe_error_message(payload) if payload is not _NOT_JSON else None
    logger.warning("Upstream request failed with HTTP %s: %r", status_code, body_preview(body))
    return UpstreamError(
        message=message or GENERIC_STATUS_MESSAGE.format(status=status_code),
        status_code=status_code,
    )
