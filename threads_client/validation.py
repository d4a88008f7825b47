"""
Local input checks performed before any request is sent.

Every check raises ``ValidationError`` (code 400) naming the offending field.
"""

from __future__ import annotations

import re
from typing import Iterable, Sequence

from threads_client.exceptions import ValidationError
from threads_client.models import (
    CarouselPostContent,
    ImagePostContent,
    TextPostContent,
    VideoPostContent,
)

MAX_TEXT_LENGTH = 500
MAX_LINKS = 5
MIN_CAROUSEL_ITEMS = 2
MAX_CAROUSEL_ITEMS = 20
MAX_TOPIC_TAG_LENGTH = 50
MAX_POSTS_PER_REQUEST = 100
MIN_SEARCH_TIMESTAMP = 1688540400  # 2023-07-05, launch of the Threads API

_URL_PATTERN = re.compile(r"https?://[^\s]+", re.IGNORECASE)


def require_id(value: str | None, field: str, message: str) -> str:
    if not value or not value.strip():
        raise ValidationError(400, message, f"{field} cannot be empty", field=field)
    return value


def validate_text_length(text: str | None, field: str = "text") -> None:
    if text is not None and len(text) > MAX_TEXT_LENGTH:
        raise ValidationError(
            400,
            f"{field} too long",
            f"{field} is limited to {MAX_TEXT_LENGTH} characters",
            field=field,
        )


def validate_link_count(text: str | None, link_attachment: str | None = None) -> None:
    links = set(_URL_PATTERN.findall(text or ""))
    if link_attachment:
        links.add(link_attachment)
    if len(links) > MAX_LINKS:
        raise ValidationError(
            400,
            "Too many links",
            f"Posts are limited to {MAX_LINKS} unique links, found {len(links)}",
            field="text",
        )


def validate_media_url(url: str | None, media_type: str) -> None:
    if not url:
        raise ValidationError(400, "Media URL cannot be empty", f"{media_type} URL is required", field="media_url")
    if not url.startswith(("http://", "https://")):
        raise ValidationError(
            400,
            "Invalid media URL format",
            "Media URL must start with http:// or https://",
            field="media_url",
        )


def validate_topic_tag(tag: str | None) -> None:
    if not tag:
        return
    if len(tag) > MAX_TOPIC_TAG_LENGTH:
        raise ValidationError(
            400,
            "Invalid topic tag",
            f"Topic tags must be 1-{MAX_TOPIC_TAG_LENGTH} characters",
            field="topic_tag",
        )
    if "." in tag or "&" in tag:
        raise ValidationError(
            400,
            "Invalid topic tag",
            "Topic tags cannot contain periods (.) or ampersands (&)",
            field="topic_tag",
        )


def validate_country_codes(codes: Iterable[str] | None) -> None:
    for code in codes or ():
        if len(code) != 2 or not code.isascii() or not code.isalpha():
            raise ValidationError(
                400,
                "Invalid country code",
                f"Country code '{code}' must be two letters (ISO 3166-1 alpha-2)",
                field="allowlisted_country_codes",
            )


def validate_carousel_children(children: Sequence[str]) -> None:
    count = len(children)
    if count < MIN_CAROUSEL_ITEMS:
        raise ValidationError(
            400,
            "Too few carousel items",
            f"Carousel must have at least {MIN_CAROUSEL_ITEMS} children",
            field="children",
        )
    if count > MAX_CAROUSEL_ITEMS:
        raise ValidationError(
            400,
            "Too many carousel items",
            f"Carousel cannot have more than {MAX_CAROUSEL_ITEMS} children",
            field="children",
        )
    for child in children:
        require_id(child, "children", "Carousel child ID is required")


def validate_limit(limit: int | None) -> None:
    if limit is None:
        return
    if limit <= 0 or limit > MAX_POSTS_PER_REQUEST:
        raise ValidationError(
            400,
            "Invalid limit",
            f"Limit must be between 1 and {MAX_POSTS_PER_REQUEST}",
            field="limit",
        )


def validate_search_since(since: int | None) -> None:
    if since is not None and since < MIN_SEARCH_TIMESTAMP:
        raise ValidationError(
            400,
            "Invalid since timestamp",
            f"Since timestamp must be greater than or equal to {MIN_SEARCH_TIMESTAMP}",
            field="since",
        )


def _validate_common(content: TextPostContent | ImagePostContent | VideoPostContent | CarouselPostContent) -> None:
    validate_text_length(content.text)
    validate_topic_tag(content.topic_tag)
    validate_country_codes(content.allowlisted_country_codes)


def validate_text_post(content: TextPostContent) -> None:
    if not content.text or not content.text.strip():
        raise ValidationError(400, "Text cannot be empty", "Text posts require text", field="text")
    _validate_common(content)
    validate_link_count(content.text, content.link_attachment)


def validate_image_post(content: ImagePostContent) -> None:
    validate_media_url(content.image_url, "image")
    _validate_common(content)


def validate_video_post(content: VideoPostContent) -> None:
    validate_media_url(content.video_url, "video")
    _validate_common(content)


def validate_carousel_post(content: CarouselPostContent) -> None:
    validate_carousel_children(content.children)
    _validate_common(content)
