"""
User profile lookups.
"""

from __future__ import annotations

from dataclasses import dataclass

from threads_client.cancellation import CancellationToken
from threads_client.models import PostsResponse, PublicUser, User
from threads_client.services.base import POST_FIELDS, USER_FIELDS, ApiService
from threads_client.validation import require_id, validate_limit


@dataclass(slots=True)
class UserService(ApiService):
    def get_me(self, *, cancel: CancellationToken | None = None) -> User:
        """Profile of the token owner; records the user id on the token when missing."""

        response = self._request("GET", "/me", params={"fields": USER_FIELDS}, cancel=cancel)
        user = self._decode(response, User, "user profile")
        if not self.tokens.user_id:
            self.tokens.set_user_id(user.id)
        return user

    def get_user(self, user_id: str, *, cancel: CancellationToken | None = None) -> User:
        require_id(user_id, "user_id", "User ID is required")
        response = self._request(
            "GET",
            f"/{user_id}",
            params={"fields": USER_FIELDS},
            cancel=cancel,
            not_found=("user_id", "User not found"),
        )
        return self._decode(response, User, "user profile")

    def lookup_public_profile(self, username: str, *, cancel: CancellationToken | None = None) -> PublicUser:
        require_id(username, "username", "Username is required")
        response = self._request(
            "GET",
            "/profile_lookup",
            params={"username": username.lstrip("@")},
            cancel=cancel,
            not_found=("username", "Profile not found"),
        )
        return self._decode(response, PublicUser, "public profile")

    def get_public_profile_posts(
        self,
        username: str,
        *,
        limit: int | None = None,
        before: str | None = None,
        after: str | None = None,
        since: int | None = None,
        until: int | None = None,
        cancel: CancellationToken | None = None,
    ) -> PostsResponse:
        require_id(username, "username", "Username is required")
        validate_limit(limit)
        params = {
            "username": username.strip().lstrip("@"),
            "fields": POST_FIELDS,
            "limit": limit,
            "before": before,
            "after": after,
            "since": since,
            "until": until,
        }
        response = self._request(
            "GET",
            "/profile_posts",
            params=params,
            cancel=cancel,
            not_found=("username", "Profile not found"),
        )
        return self._decode(response, PostsResponse, "public profile posts")
