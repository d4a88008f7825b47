"""Mock responses for Threads API integration tests."""

from __future__ import annotations

BASE_URL = "https://graph.threads.net"
USER_ID = "17841400000000000"

CONTAINER_CREATED_RESPONSE = {"id": "18000000000000001"}

CONTAINER_IN_PROGRESS_RESPONSE = {
    "id": "18000000000000001",
    "status": "IN_PROGRESS",
}

CONTAINER_FINISHED_RESPONSE = {
    "id": "18000000000000001",
    "status": "FINISHED",
}

CONTAINER_ERROR_RESPONSE = {
    "id": "18000000000000001",
    "status": "ERROR",
    "error_message": "Media download has failed. The media URI doesn't meet our requirements.",
}

PUBLISH_RESPONSE = {"id": "18100000000000001"}

GET_POST_RESPONSE = {
    "id": "18100000000000001",
    "media_product_type": "THREADS",
    "media_type": "TEXT_POST",
    "permalink": "https://www.threads.net/@integration/post/C1a2b3c4",
    "owner": {"id": USER_ID},
    "username": "integration",
    "text": "Hello from integration test!",
    "timestamp": "2024-07-01T10:00:00+0000",
    "shortcode": "C1a2b3c4",
    "is_quote_post": False,
}

ME_RESPONSE = {
    "id": USER_ID,
    "username": "integration",
    "name": "Integration Test",
    "threads_profile_picture_url": "https://scontent.cdninstagram.com/profile.jpg",
    "threads_biography": "Testing the Threads API",
}

USER_THREADS_PAGE_1 = {
    "data": [
        {"id": "1", "text": "first", "timestamp": "2024-07-02T10:00:00+0000"},
        {"id": "2", "text": "second", "timestamp": "2024-07-01T10:00:00+0000"},
    ],
    "paging": {"cursors": {"before": "QVFIU0", "after": "QVFIU1"}},
}

USER_THREADS_PAGE_2 = {
    "data": [{"id": "3", "text": "third", "timestamp": "2024-06-30T10:00:00+0000"}],
    "paging": {"cursors": {"before": "QVFIU1", "after": "QVFIU2"}},
}

USER_THREADS_EMPTY = {"data": []}

RATE_LIMIT_ERROR_RESPONSE = {
    "error": {
        "message": "Application request limit reached",
        "type": "OAuthException",
        "code": 4,
        "fbtrace_id": "AbCdEfGh",
    }
}

INVALID_TOKEN_RESPONSE = {
    "error": {
        "message": "Error validating access token: Session has expired.",
        "type": "OAuthException",
        "code": 190,
        "error_subcode": 463,
    }
}
