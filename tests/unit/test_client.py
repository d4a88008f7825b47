from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import pytest

from threads_client import ThreadsClient
from threads_client.auth import MemoryTokenStorage
from threads_client.config import ClientConfig
from threads_client.exceptions import ConfigurationError

from tests.fakes import RecordingSleeper


def test_client_wires_shared_collaborators() -> None:
    client = ThreadsClient(ClientConfig(), sleep=RecordingSleeper())

    assert client.posts.http is client.http
    assert client.posts.containers is client.containers
    assert client.replies.tokens is client.tokens
    assert client.auth.tokens is client.tokens
    assert client.http.rate_limiter is client.rate_limiter
    assert client.logger is logging.getLogger("threads_client")
    client.close()


def test_client_rejects_invalid_config() -> None:
    with pytest.raises(ConfigurationError):
        ThreadsClient(ClientConfig(http_timeout=-1))


def test_clone_has_independent_limiter_and_token() -> None:
    client = ThreadsClient(sleep=RecordingSleeper())
    client.set_token("token-abc", user_id="user-1")
    client.rate_limiter.mark_rate_limited(datetime.now(timezone.utc) + timedelta(minutes=5))

    clone = client.clone(http_timeout=5.0)

    assert clone.rate_limiter is not client.rate_limiter
    assert clone.is_rate_limited() is False
    assert clone.tokens.access_token == "token-abc"
    assert clone.config.http_timeout == 5.0
    assert client.config.http_timeout == 30.0

    clone.set_token("token-other", user_id="user-2")
    assert client.tokens.access_token == "token-abc"


def test_clone_with_explicit_storage_starts_empty() -> None:
    client = ThreadsClient()
    client.set_token("token-abc", user_id="user-1")

    clone = client.clone(token_storage=MemoryTokenStorage())

    assert clone.is_authenticated() is False


def test_rate_limit_queries() -> None:
    client = ThreadsClient(sleep=RecordingSleeper())

    status = client.get_rate_limit_status()

    assert status.limit == status.remaining
    assert client.is_near_rate_limit() is False
    client.wait_for_rate_limit()


def test_context_manager_closes_client() -> None:
    with ThreadsClient() as client:
        assert client.is_authenticated() is False
