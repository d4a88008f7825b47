"""
Reply creation, retrieval and moderation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from threads_client.cancellation import CancellationToken
from threads_client.clients.http_client import FormParams
from threads_client.exceptions import ValidationError
from threads_client.models import ApprovalStatus, MediaType, Post, PostsResponse, ReplyContent
from threads_client.services.base import DEFAULT_POSTS_LIMIT, REPLY_FIELDS, ApiService, iterate_pages
from threads_client.services.container_service import ContainerPublisher
from threads_client.validation import require_id, validate_limit, validate_media_url, validate_text_length


@dataclass(slots=True)
class ReplyService(ApiService):
    containers: ContainerPublisher = field(kw_only=True)

    def create_reply(self, content: ReplyContent, *, cancel: CancellationToken | None = None) -> Post:
        """Create a reply container, wait the fixed reply delay, then publish it."""

        require_id(content.reply_to_id, "reply_to_id", "Reply target is required")
        validate_text_length(content.text)
        self._token()

        params = FormParams({"media_type": content.media_type.value, "reply_to_id": content.reply_to_id})
        if content.text and content.text.strip():
            params.set("text", content.text)
        if content.media_type is MediaType.IMAGE:
            validate_media_url(content.image_url, "image")
            params.set("image_url", content.image_url)
        elif content.media_type is MediaType.VIDEO:
            validate_media_url(content.video_url, "video")
            params.set("video_url", content.video_url)

        container_id = self.containers.create_container(params, cancel)
        self.logger.info("Reply container created, waiting before publishing container_id=%s", container_id)
        self.containers.wait_reply_delay(cancel)
        return self.containers.publish_container(container_id, cancel)

    def reply_to_post(
        self, post_id: str, content: ReplyContent | str, *, cancel: CancellationToken | None = None
    ) -> Post:
        require_id(post_id, "post_id", "Post ID is required")
        if isinstance(content, str):
            content = ReplyContent(reply_to_id=post_id, text=content)
        else:
            content = content.model_copy(update={"reply_to_id": post_id})
        return self.create_reply(content, cancel=cancel)

    def get_replies(
        self,
        post_id: str,
        *,
        limit: int | None = None,
        before: str | None = None,
        after: str | None = None,
        reverse: bool | None = None,
        cancel: CancellationToken | None = None,
    ) -> PostsResponse:
        return self._list(f"/{post_id}/replies", post_id, limit, before, after, reverse, cancel)

    def get_conversation(
        self,
        post_id: str,
        *,
        limit: int | None = None,
        before: str | None = None,
        after: str | None = None,
        reverse: bool | None = None,
        cancel: CancellationToken | None = None,
    ) -> PostsResponse:
        return self._list(f"/{post_id}/conversation", post_id, limit, before, after, reverse, cancel)

    def iter_replies(
        self,
        post_id: str,
        *,
        limit: int = DEFAULT_POSTS_LIMIT,
        reverse: bool | None = None,
        cancel: CancellationToken | None = None,
    ) -> Iterator[Post]:
        return iterate_pages(
            lambda cursor: self.get_replies(post_id, limit=limit, after=cursor, reverse=reverse, cancel=cancel)
        )

    def get_pending_replies(
        self,
        post_id: str,
        *,
        limit: int | None = None,
        before: str | None = None,
        after: str | None = None,
        reverse: bool | None = None,
        approval_status: ApprovalStatus | str | None = None,
        cancel: CancellationToken | None = None,
    ) -> PostsResponse:
        """Replies held back on a post that has reply approvals enabled."""

        status = None
        if approval_status is not None:
            try:
                status = ApprovalStatus(approval_status).value
            except ValueError as exc:
                raise ValidationError(
                    400,
                    "Invalid approval status",
                    "Approval status must be 'pending' or 'ignored'",
                    field="approval_status",
                ) from exc
        return self._list(
            f"/{post_id}/pending_replies",
            post_id,
            limit,
            before,
            after,
            reverse,
            cancel,
            extra={"approval_status": status},
        )

    def approve_pending_reply(self, reply_id: str, *, cancel: CancellationToken | None = None) -> None:
        self._manage_pending(reply_id, True, cancel)

    def ignore_pending_reply(self, reply_id: str, *, cancel: CancellationToken | None = None) -> None:
        """Ignored replies stay hidden but can still be approved later."""

        self._manage_pending(reply_id, False, cancel)

    def get_user_replies(
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
        """One page of replies written by ``user_id`` (the token owner by default)."""

        user_id = user_id or self._user_id()
        require_id(user_id, "user_id", "User ID is required")
        validate_limit(limit)
        params = {
            "fields": REPLY_FIELDS,
            "limit": limit,
            "before": before,
            "after": after,
            "since": since,
            "until": until,
        }
        response = self._request(
            "GET",
            f"/{user_id}/replies",
            params=params,
            cancel=cancel,
            not_found=("user_id", "User not found"),
        )
        return self._decode(response, PostsResponse, "user replies")

    def hide_reply(self, reply_id: str, *, cancel: CancellationToken | None = None) -> None:
        self._manage_visibility(reply_id, True, cancel)

    def unhide_reply(self, reply_id: str, *, cancel: CancellationToken | None = None) -> None:
        self._manage_visibility(reply_id, False, cancel)

    def _list(
        self,
        path: str,
        post_id: str,
        limit: int | None,
        before: str | None,
        after: str | None,
        reverse: bool | None,
        cancel: CancellationToken | None,
        extra: dict[str, str | None] | None = None,
    ) -> PostsResponse:
        require_id(post_id, "post_id", "Post ID is required")
        validate_limit(limit)
        params = {
            "fields": REPLY_FIELDS,
            "limit": limit,
            "before": before,
            "after": after,
            "reverse": reverse,
            **(extra or {}),
        }
        response = self._request(
            "GET", path, params=params, cancel=cancel, not_found=("post_id", "Post not found")
        )
        return self._decode(response, PostsResponse, "replies response")

    def _manage_visibility(self, reply_id: str, hide: bool, cancel: CancellationToken | None) -> None:
        require_id(reply_id, "reply_id", "Reply ID is required")
        self._request(
            "POST",
            f"/{reply_id}/manage_reply",
            body=FormParams({"hide": hide}),
            cancel=cancel,
            not_found=("reply_id", "Reply not found"),
        )
        self.logger.info("Reply visibility changed reply_id=%s hide=%s", reply_id, hide)

    def _manage_pending(self, reply_id: str, approve: bool, cancel: CancellationToken | None) -> None:
        require_id(reply_id, "reply_id", "Reply ID is required")
        self._request(
            "POST",
            f"/{reply_id}/manage_pending_reply",
            body=FormParams({"approve": approve}),
            cancel=cancel,
            not_found=("reply_id", "Reply not found"),
        )
        self.logger.info("Pending reply %s reply_id=%s", "approved" if approve else "ignored", reply_id)
