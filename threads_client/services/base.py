"""
Shared plumbing for endpoint services: token lookup, 404 mapping and decoding.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Mapping, TypeVar

import pydantic
from pydantic import BaseModel

from threads_client.auth import TokenStore
from threads_client.cancellation import CancellationToken
from threads_client.clients.http_client import HttpClient, RequestOptions, Response
from threads_client.exceptions import ApiError, AuthenticationError, ValidationError
from threads_client.models import Post, PostsResponse
from threads_client.validation import require_id

POST_FIELDS = (
    "id,media_product_type,media_type,media_url,permalink,owner,username,text,timestamp,"
    "shortcode,thumbnail_url,children,is_quote_post,alt_text,link_attachment_url,has_replies,"
    "reply_audience,quoted_post,reposted_post,gif_url"
)
REPLY_FIELDS = (
    "id,media_product_type,media_type,media_url,permalink,username,text,timestamp,shortcode,"
    "thumbnail_url,children,is_quote_post,has_replies,root_post,replied_to,is_reply,"
    "is_reply_owned_by_me,reply_audience,quoted_post,reposted_post,gif_url,alt_text,hide_status,topic_tag"
)
USER_FIELDS = "id,username,name,threads_profile_picture_url,threads_biography,is_verified"
CONTAINER_STATUS_FIELDS = "id,status,error_message"
LOCATION_FIELDS = "id,address,name,city,country,latitude,longitude,postal_code"
PUBLISHING_LIMIT_FIELDS = (
    "quota_usage,config,reply_quota_usage,reply_config,delete_quota_usage,delete_config,"
    "location_search_quota_usage,location_search_config"
)

DEFAULT_POSTS_LIMIT = 25

ModelT = TypeVar("ModelT", bound=BaseModel)


def iterate_pages(fetch_page: Callable[[str | None], PostsResponse]) -> Iterator[Post]:
    """Yield posts across pages by following ``paging.cursors.after``.

    ``fetch_page`` receives the cursor of the next page (``None`` for the first).
    Iteration ends on an empty page, a page without cursor, or a cursor seen before.
    """

    cursor: str | None = None
    seen: set[str] = set()
    while True:
        page = fetch_page(cursor)
        yield from page.data
        cursor = page.next_cursor()
        if cursor is None or cursor in seen:
            return
        seen.add(cursor)


@dataclass(slots=True)
class ApiService:
    """Base class for services that call the Threads API on behalf of the token owner."""

    http: HttpClient
    tokens: TokenStore
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("threads_client.services"))

    def _token(self) -> str:
        return self.tokens.ensure_valid_token()

    def _user_id(self) -> str:
        user_id = self.tokens.user_id
        if not user_id:
            raise AuthenticationError(401, "User ID not available", "Cannot determine user ID from token")
        return user_id

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        body: Any = None,
        cancel: CancellationToken | None = None,
        not_found: tuple[str, str] | None = None,
    ) -> Response:
        """Execute an authenticated call; ``not_found`` is ``(field, message)`` for 404 mapping."""

        token = self._token()
        try:
            return self.http.execute(
                RequestOptions(method, path, params=params, body=body, cancel=cancel),
                token,
            )
        except ApiError as exc:
            if not_found is None or exc.status_code != 404:
                raise
            field_name, message = not_found
            raise ValidationError(404, message, exc.details or exc.message, field=field_name) from exc

    def _decode(self, response: Response, model: type[ModelT], context: str) -> ModelT:
        data = response.json()
        try:
            return model.model_validate(data)
        except pydantic.ValidationError as exc:
            raise ApiError(
                response.status_code,
                f"Failed to parse {context}",
                str(exc)[:500],
                request_id=response.request_id,
            ) from exc

    def _decode_id(self, response: Response, what: str) -> str:
        data = response.json()
        identifier = data.get("id") if isinstance(data, dict) else None
        if not identifier:
            raise ApiError(
                response.status_code,
                f"{what} ID not returned",
                f"API response missing {what.lower()} ID",
                request_id=response.request_id,
            )
        return str(identifier)

    def _fetch_post(self, post_id: str, *, cancel: CancellationToken | None = None) -> Post:
        require_id(post_id, "post_id", "Post ID is required")
        response = self._request(
            "GET",
            f"/{post_id}",
            params={"fields": POST_FIELDS},
            cancel=cancel,
            not_found=("post_id", "Post not found"),
        )
        return self._decode(response, Post, "post")
