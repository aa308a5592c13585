import json
import logging

from pydantic import TypeAdapter

from timeline_rss.schemas.bluesky import BlueskyTimeline
from timeline_rss.schemas.mastodon import MastodonStatus
from timeline_rss.services.classifier import (
    GENERIC_STATUS_MESSAGE,
    MAX_MESSAGE_LENGTH,
    UNEXPECTED_RESPONSE_MESSAGE,
    Success,
    Unparseable,
    UpstreamError,
    classify,
    extract_error_message,
)

MASTODON = TypeAdapter(list[MastodonStatus])
BLUESKY = TypeAdapter(BlueskyTimeline)


def _json(payload) -> bytes:
    return json.dumps(payload).encode()


def test_success_with_post_list():
    body = _json([{"id": "1", "content": "<p>hi</p>", "account": {"acct": "a"}}])
    outcome = classify(200, body, MASTODON)
    assert isinstance(outcome, Success)
    assert outcome.posts[0].id == "1"


def test_success_with_empty_list_is_an_empty_timeline():
    outcome = classify(200, b"[]", MASTODON)
    assert isinstance(outcome, Success)
    assert outcome.posts == []


def test_failure_status_extracts_error_key():
    outcome = classify(401, _json({"error": "invalid_token"}), MASTODON)
    assert outcome == UpstreamError(message="invalid_token", status_code=401)


def test_error_keys_are_probed_in_priority_order():
    body = _json({"message": "third", "error_description": "second", "error": "first"})
    assert classify(400, body, MASTODON).message == "first"
    body = _json({"message": "third", "error_description": "second"})
    assert classify(400, body, MASTODON).message == "second"
    body = _json({"message": "Token has expired"})
    assert classify(400, body, BLUESKY).message == "Token has expired"


def test_non_string_error_values_are_skipped():
    body = _json({"error": {"code": 7}, "message": "usable"})
    assert classify(500, body, MASTODON).message == "usable"


def test_failure_status_with_non_json_body_uses_generic_message():
    outcome = classify(503, b"<html>Service Unavailable</html>", MASTODON)
    assert isinstance(outcome, UpstreamError)
    assert outcome.message == GENERIC_STATUS_MESSAGE.format(status=503)
    assert "503" in outcome.message


def test_failure_status_with_json_but_no_known_key_uses_generic_message():
    outcome = classify(500, _json({"detail": "boom"}), MASTODON)
    assert outcome.message == GENERIC_STATUS_MESSAGE.format(status=500)


def test_failure_status_wins_even_when_body_looks_like_posts():
    outcome = classify(500, b"[]", MASTODON)
    assert isinstance(outcome, UpstreamError)


def test_success_status_with_error_object_is_upstream_error():
    outcome = classify(200, _json({"error": "ExpiredToken", "message": "Token has expired"}), BLUESKY)
    assert outcome == UpstreamError(message="ExpiredToken", status_code=200)


def test_success_status_with_unexpected_body_is_unparseable():
    outcome = classify(200, _json({"unexpected": True}), MASTODON)
    assert isinstance(outcome, Unparseable)
    assert outcome.message == UNEXPECTED_RESPONSE_MESSAGE


def test_success_status_with_non_json_body_is_unparseable():
    outcome = classify(200, b"\xff\xfe not json", BLUESKY)
    assert isinstance(outcome, Unparseable)
    assert outcome.status_code == 200


def test_deeply_nested_json_does_not_escape_as_exception():
    body = b"[" * 100000 + b"]" * 100000
    assert isinstance(classify(200, body, MASTODON), Unparseable)


def test_upstream_message_is_collapsed_and_truncated():
    outcome = classify(400, _json({"error": "line one\nline two " + "x" * 1000}), MASTODON)
    assert "\n" not in outcome.message
    assert len(outcome.message) <= MAX_MESSAGE_LENGTH


def test_raw_body_is_logged_as_bounded_preview(caplog):
    body = b"<html>" + b"A" * 5000 + b"</html>"
    with caplog.at_level(logging.WARNING, logger="timeline_rss.services.classifier"):
        classify(502, body, MASTODON)
    assert caplog.records
    assert all(len(record.getMessage()) < 1000 for record in caplog.records)


def test_extract_error_message_for_session_errors():
    assert extract_error_message(401, _json({"error": "AuthenticationRequired"})) == "AuthenticationRequired"
    assert extract_error_message(429, b"slow down") == GENERIC_STATUS_MESSAGE.format(status=429)
