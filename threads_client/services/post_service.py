"""
Post related workflows built on top of the container publisher.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from threads_client.cancellation import CancellationToken
from threads_client.clients.http_client import FormParams
from threads_client.exceptions import ApiError, ValidationError
from threads_client.models import (
    CarouselPostContent,
    ImagePostContent,
    MediaType,
    Post,
    PostContent,
    PostsResponse,
    TextPostContent,
    VideoPostContent,
)
from threads_client.services.base import DEFAULT_POSTS_LIMIT, POST_FIELDS, ApiService, iterate_pages
from threads_client.services.container_service import ContainerPublisher, build_container_params
from threads_client.validation import (
    require_id,
    validate_carousel_post,
    validate_image_post,
    validate_limit,
    validate_media_url,
    validate_text_post,
    validate_video_post,
)


@dataclass(slots=True)
class PostService(ApiService):
    """High level orchestration for post creation, retrieval and deletion."""

    containers: ContainerPublisher = field(kw_only=True)

    def create_text_post(self, content: TextPostContent, *, cancel: CancellationToken | None = None) -> Post:
        validate_text_post(content)
        self._token()
        if content.auto_publish_text:
            return self._publish_text_directly(content, cancel)
        container_id = self.containers.create_container(build_container_params(content), cancel)
        self.containers.wait_for_container_ready(container_id, cancel=cancel)
        return self.containers.publish_container(container_id, cancel)

    def create_image_post(self, content: ImagePostContent, *, cancel: CancellationToken | None = None) -> Post:
        validate_image_post(content)
        self._token()
        container_id = self.containers.create_container(build_container_params(content), cancel)
        self.containers.wait_for_container_ready(container_id, cancel=cancel)
        return self.containers.publish_container(container_id, cancel)

    def create_video_post(self, content: VideoPostContent, *, cancel: CancellationToken | None = None) -> Post:
        validate_video_post(content)
        self._token()
        container_id = self.containers.create_container(build_container_params(content), cancel)
        self.containers.wait_for_video_ready(container_id, cancel)
        return self.containers.publish_container(container_id, cancel)

    def create_carousel_post(
        self, content: CarouselPostContent, *, cancel: CancellationToken | None = None
    ) -> Post:
        validate_carousel_post(content)
        self._token()
        container_id = self.containers.create_container(build_container_params(content), cancel)
        self.containers.wait_for_container_ready(container_id, cancel=cancel)
        return self.containers.publish_container(container_id, cancel)

    def create_post(self, content: PostContent, *, cancel: CancellationToken | None = None) -> Post:
        """Dispatch to the creation workflow matching the content kind."""

        match content:
            case TextPostContent():
                return self.create_text_post(content, cancel=cancel)
            case ImagePostContent():
                return self.create_image_post(content, cancel=cancel)
            case VideoPostContent():
                return self.create_video_post(content, cancel=cancel)
            case CarouselPostContent():
                return self.create_carousel_post(content, cancel=cancel)
        raise ValidationError(400, "Unsupported post content", type(content).__name__, field="content")

    def create_quote_post(
        self,
        content: PostContent,
        quoted_post_id: str,
        *,
        cancel: CancellationToken | None = None,
    ) -> Post:
        require_id(quoted_post_id, "quoted_post_id", "Quoted post ID is required")
        return self.create_post(content.model_copy(update={"quoted_post_id": quoted_post_id}), cancel=cancel)

    def create_media_container(
        self,
        media_type: MediaType | str,
        media_url: str,
        *,
        alt_text: str | None = None,
        cancel: CancellationToken | None = None,
    ) -> str:
        """Create a carousel item container and return its id (not published)."""

        try:
            kind = MediaType(media_type.upper() if isinstance(media_type, str) else media_type)
        except ValueError:
            kind = None
        if kind not in (MediaType.IMAGE, MediaType.VIDEO):
            raise ValidationError(
                400, "Invalid media type", "Carousel items must be IMAGE or VIDEO", field="media_type"
            )
        validate_media_url(media_url, kind.value.lower())

        params = FormParams({"media_type": kind.value, "is_carousel_item": True})
        params.set("image_url" if kind is MediaType.IMAGE else "video_url", media_url)
        if alt_text:
            params.set("alt_text", alt_text)
        return self.containers.create_container(params, cancel)

    def repost(self, post_id: str, *, cancel: CancellationToken | None = None) -> Post:
        require_id(post_id, "post_id", "Post ID is required")
        response = self._request(
            "POST", f"/{post_id}/repost", cancel=cancel, not_found=("post_id", "Post not found")
        )
        repost_id = self._decode_id(response, "Repost")
        return self._fetch_post(repost_id, cancel=cancel)

    def get_post(self, post_id: str, *, cancel: CancellationToken | None = None) -> Post:
        return self._fetch_post(post_id, cancel=cancel)

    def get_user_posts(
        self,
        user_id: str | None = None,
        *,
        limit: int | None = None,
        before: str | None = None,
        after: str | None = None,
        since: int | None = None,
        until: int | None = None,
        cancel: CancellationToken | None = None,
    ) -> PostsResponse:
        """One page of posts authored by ``user_id`` (the token owner by default)."""

        user_id = user_id or self._user_id()
        require_id(user_id, "user_id", "User ID is required")
        validate_limit(limit)
        params = {
            "fields": POST_FIELDS,
            "limit": limit,
            "before": before,
            "after": after,
            "since": since,
            "until": until,
        }
        response = self._request(
            "GET",
            f"/{user_id}/threads",
            params=params,
            cancel=cancel,
            not_found=("user_id", "User not found"),
        )
        return self._decode(response, PostsResponse, "posts response")

    def iter_user_posts(
        self,
        user_id: str | None = None,
        *,
        limit: int = DEFAULT_POSTS_LIMIT,
        cancel: CancellationToken | None = None,
    ) -> Iterator[Post]:
        return iterate_pages(lambda cursor: self.get_user_posts(user_id, limit=limit, after=cursor, cancel=cancel))

    def get_user_mentions(
        self,
        user_id: str | None = None,
        *,
        limit: int | None = None,
        before: str | None = None,
        after: str | None = None,
        cancel: CancellationToken | None = None,
    ) -> PostsResponse:
        """One page of posts in which ``user_id`` (the token owner by default) is mentioned."""

        user_id = user_id or self._user_id()
        require_id(user_id, "user_id", "User ID is required")
        validate_limit(limit)
        params = {"fields": POST_FIELDS, "limit": limit, "before": before, "after": after}
        response = self._request(
            "GET",
            f"/{user_id}/mentions",
            params=params,
            cancel=cancel,
            not_found=("user_id", "User not found"),
        )
        return self._decode(response, PostsResponse, "mentions response")

    def delete_post(self, post_id: str, *, cancel: CancellationToken | None = None) -> bool:
        require_id(post_id, "post_id", "Post ID is required")
        response = self._request(
            "DELETE", f"/{post_id}", cancel=cancel, not_found=("post_id", "Post not found")
        )
        data = response.json()
        if isinstance(data, dict) and data.get("success") is False:
            raise ApiError(
                response.status_code,
                f"Unable to delete post '{post_id}'.",
                request_id=response.request_id,
            )
        self.logger.info("Post deleted post_id=%s", post_id)
        return True

    def _publish_text_directly(self, content: TextPostContent, cancel: CancellationToken | None) -> Post:
        params = build_container_params(content, auto_publish=True)
        user_id = self._user_id()
        response = self._request("POST", f"/{user_id}/threads", body=params, cancel=cancel)
        post_id = self._decode_id(response, "Post")
        return self._fetch_post(post_id, cancel=cancel)
