from __future__ import annotations

import pytest

from threads_client.auth import TokenStore
from threads_client.clients.http_client import error_from_response
from threads_client.exceptions import ApiError, ValidationError
from threads_client.services.user_service import UserService

from tests.fakes import ScriptedHttp, authenticated_store


def test_get_me_decodes_aliased_profile_fields() -> None:
    http = ScriptedHttp(
        {
            ("GET", "/me"): [
                {
                    "id": "user-1",
                    "username": "alice",
                    "threads_profile_picture_url": "https://cdn.example.com/p.jpg",
                    "threads_biography": "hello",
                    "is_verified": True,
                }
            ]
        }
    )
    service = UserService(http, authenticated_store())  # type: ignore[arg-type]

    user = service.get_me()

    assert user.username == "alice"
    assert user.profile_picture_url == "https://cdn.example.com/p.jpg"
    assert user.biography == "hello"
    assert user.is_verified is True


def test_get_me_records_user_id_when_token_has_none() -> None:
    tokens = TokenStore()
    tokens.set_token("token-abc")
    http = ScriptedHttp({("GET", "/me"): [{"id": "user-42"}]})
    service = UserService(http, tokens)  # type: ignore[arg-type]

    service.get_me()

    assert tokens.user_id == "user-42"


def test_get_user_maps_404() -> None:
    http = ScriptedHttp({("GET", "/nobody"): [error_from_response(404, b"")]})
    service = UserService(http, authenticated_store())  # type: ignore[arg-type]

    with pytest.raises(ValidationError) as exc_info:
        service.get_user("nobody")

    assert exc_info.value.field == "user_id"


def test_lookup_public_profile_strips_at_sign() -> None:
    http = ScriptedHttp(
        {("GET", "/profile_lookup"): [{"username": "bob", "follower_count": 12, "is_verified": False}]}
    )
    service = UserService(http, authenticated_store())  # type: ignore[arg-type]

    profile = service.lookup_public_profile("@bob")

    assert profile.username == "bob"
    assert profile.follower_count == 12
    assert http.calls[0].params == {"username": "bob"}


def test_malformed_profile_is_reported_as_api_error() -> None:
    http = ScriptedHttp({("GET", "/me"): [{"username": "no id"}]})
    service = UserService(http, authenticated_store())  # type: ignore[arg-type]

    with pytest.raises(ApiError, match="Failed to parse user profile"):
        service.get_me()


def test_get_public_profile_posts_strips_at_sign() -> None:
    http = ScriptedHttp({("GET", "/profile_posts"): [{"data": [{"id": "1", "username": "zuck"}]}]})
    service = UserService(http, authenticated_store())  # type: ignore[arg-type]

    page = service.get_public_profile_posts("@zuck", limit=5)

    assert page.data[0].username == "zuck"
    params = http.calls[0].params
    assert params["username"] == "zuck"
    assert params["limit"] == 5


def test_get_public_profile_posts_maps_404() -> None:
    http = ScriptedHttp({("GET", "/profile_posts"): [error_from_response(404, b"")]})
    service = UserService(http, authenticated_store())  # type: ignore[arg-type]

    with pytest.raises(ValidationError) as exc_info:
        service.get_public_profile_posts("nobody")

    assert exc_info.value.field == "username"
