"""
Media container workflow: create, poll until ready, publish.

Threads publishes in two steps. A container is created with the post content,
processed asynchronously by the API, and converted into a live post by
``threads_publish`` once it reports ``FINISHED``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field

from threads_client.cancellation import CancellationToken, Sleeper, cancellable_sleep
from threads_client.clients.http_client import FormParams
from threads_client.exceptions import (
    ApiError,
    AuthenticationError,
    ContainerExpired,
    ContainerProcessingFailed,
    ContainerTimeout,
    NetworkError,
    RateLimitError,
    ValidationError,
)
from threads_client.models import (
    CarouselPostContent,
    ContainerState,
    ContainerStatus,
    ImagePostContent,
    MediaType,
    Post,
    PostContent,
    TextPostContent,
    VideoPostContent,
)
from threads_client.services.base import CONTAINER_STATUS_FIELDS, ApiService
from threads_client.validation import require_id

DEFAULT_POLL_MAX_ATTEMPTS = 30
DEFAULT_POLL_INTERVAL = 1.0
VIDEO_POLL_MAX_ATTEMPTS = 120
VIDEO_POLL_INTERVAL = 5.0
REPLY_PUBLISH_DELAY = 10.0


def build_container_params(content: PostContent, *, auto_publish: bool = False) -> FormParams:
    """Translate post content into ``/{user_id}/threads`` form parameters."""

    params = FormParams()
    match content:
        case TextPostContent():
            params.set("media_type", MediaType.TEXT.value)
            if content.link_attachment:
                params.set("link_attachment", content.link_attachment)
            if content.poll_attachment is not None:
                params.set("poll_attachment", json.dumps(content.poll_attachment.model_dump(exclude_none=True)))
            if auto_publish:
                params.set("auto_publish_text", True)
        case ImagePostContent():
            params.set("media_type", MediaType.IMAGE.value)
            params.set("image_url", content.image_url)
            if content.alt_text:
                params.set("alt_text", content.alt_text)
            if content.is_spoiler_media:
                params.set("is_spoiler_media", True)
        case VideoPostContent():
            params.set("media_type", MediaType.VIDEO.value)
            params.set("video_url", content.video_url)
            if content.alt_text:
                params.set("alt_text", content.alt_text)
            if content.is_spoiler_media:
                params.set("is_spoiler_media", True)
        case CarouselPostContent():
            params.set("media_type", MediaType.CAROUSEL.value)
            params.set("children", ",".join(content.children))
            if content.is_spoiler_media:
                params.set("is_spoiler_media", True)

    if content.text:
        params.set("text", content.text)
    if content.reply_control is not None:
        params.set("reply_control", content.reply_control.value)
    if content.reply_to_id:
        params.set("reply_to_id", content.reply_to_id)
    if content.topic_tag:
        params.set("topic_tag", content.topic_tag)
    for code in content.allowlisted_country_codes:
        params.add("allowlisted_country_codes", code.upper())
    if content.location_id:
        params.set("location_id", content.location_id)
    if content.quoted_post_id:
        params.set("quote_post_id", content.quoted_post_id)
    return params


@dataclass(slots=True)
class ContainerPublisher(ApiService):
    """Drives a container from creation to a published post."""

    max_attempts: int = DEFAULT_POLL_MAX_ATTEMPTS
    poll_interval: float = DEFAULT_POLL_INTERVAL
    video_max_attempts: int = VIDEO_POLL_MAX_ATTEMPTS
    video_poll_interval: float = VIDEO_POLL_INTERVAL
    reply_publish_delay: float = REPLY_PUBLISH_DELAY
    sleep: Sleeper = field(default=cancellable_sleep)

    def create_container(self, params: FormParams, cancel: CancellationToken | None = None) -> str:
        user_id = self._user_id()
        response = self._request("POST", f"/{user_id}/threads", body=params, cancel=cancel)
        container_id = self._decode_id(response, "Container")
        self.logger.debug(
            "Container created container_id=%s media_type=%s", container_id, params.get("media_type")
        )
        return container_id

    def get_container_status(
        self, container_id: str, cancel: CancellationToken | None = None
    ) -> ContainerStatus:
        require_id(container_id, "container_id", "Container ID is required")
        response = self._request(
            "GET",
            f"/{container_id}",
            params={"fields": CONTAINER_STATUS_FIELDS},
            cancel=cancel,
        )
        data = response.json()
        if not isinstance(data, dict) or not data.get("id") or not data.get("status"):
            raise ApiError(
                response.status_code,
                "Container status response incomplete",
                "API response missing id or status",
                request_id=response.request_id,
            )
        return self._decode(response, ContainerStatus, "container status")

    def wait_for_container_ready(
        self,
        container_id: str,
        max_attempts: int | None = None,
        interval: float | None = None,
        cancel: CancellationToken | None = None,
    ) -> ContainerStatus:
        """Poll until the container is publishable.

        Raises ``ContainerProcessingFailed`` on ERROR, ``ContainerExpired`` on
        EXPIRED and ``ContainerTimeout`` once ``max_attempts`` polls have all
        returned IN_PROGRESS. A failed status check consumes one attempt.
        """

        attempts = max_attempts if max_attempts is not None else self.max_attempts
        delay = interval if interval is not None else self.poll_interval
        if attempts <= 0:
            raise ValidationError(400, "max_attempts must be positive", field="max_attempts")

        for attempt in range(1, attempts + 1):
            if cancel is not None:
                cancel.raise_if_cancelled()

            try:
                status = self.get_container_status(container_id, cancel)
            except (AuthenticationError, ValidationError):
                raise
            except (NetworkError, ApiError, RateLimitError) as exc:
                self.logger.warning(
                    "Failed to check container status container_id=%s attempt=%d error=%s",
                    container_id,
                    attempt,
                    exc,
                )
                if attempt >= attempts:
                    exc.add_note(f"container status check failed after {attempts} attempts")
                    raise
                self.sleep(delay, cancel)
                continue

            state = status.state
            if state in (ContainerState.FINISHED, ContainerState.PUBLISHED):
                self.logger.debug(
                    "Container ready container_id=%s status=%s attempts=%d", container_id, status.status, attempt
                )
                return status
            if state is ContainerState.ERROR:
                message = status.error_message or "unknown error"
                raise ContainerProcessingFailed(
                    500,
                    f"Container processing failed: {message}",
                    f"Container {container_id} reported ERROR",
                    container_id=container_id,
                )
            if state is ContainerState.EXPIRED:
                raise ContainerExpired(
                    410,
                    "Container expired before publishing",
                    f"Container {container_id} was not published within 24 hours",
                    container_id=container_id,
                )

            self.logger.debug(
                "Container not ready container_id=%s status=%s attempt=%d max_attempts=%d",
                container_id,
                status.status,
                attempt,
                attempts,
            )
            if attempt < attempts:
                self.sleep(delay, cancel)

        raise ContainerTimeout(
            f"Container not ready after {attempts} attempts",
            f"Container {container_id} still processing",
            container_id=container_id,
            attempts=attempts,
        )

    def wait_for_video_ready(
        self, container_id: str, cancel: CancellationToken | None = None
    ) -> ContainerStatus:
        self.logger.info("Waiting for video container processing container_id=%s", container_id)
        return self.wait_for_container_ready(
            container_id,
            max_attempts=self.video_max_attempts,
            interval=self.video_poll_interval,
            cancel=cancel,
        )

    def wait_reply_delay(self, cancel: CancellationToken | None = None) -> None:
        """Replies are published after a fixed delay rather than by polling."""

        self.sleep(self.reply_publish_delay, cancel)

    def publish_container(self, container_id: str, cancel: CancellationToken | None = None) -> Post:
        require_id(container_id, "container_id", "Container ID is required")
        user_id = self._user_id()
        response = self._request(
            "POST",
            f"/{user_id}/threads_publish",
            body=FormParams({"creation_id": container_id}),
            cancel=cancel,
        )
        post_id = self._decode_id(response, "Post")
        self.logger.info("Container published container_id=%s post_id=%s", container_id, post_id)
        return self._fetch_post(post_id, cancel=cancel)
