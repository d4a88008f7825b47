"""
Pydantic models for Threads API payloads used by threads_client.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReplyControl(str, Enum):
    """Who may reply to a post."""

    EVERYONE = "everyone"
    ACCOUNTS_YOU_FOLLOW = "accounts_you_follow"
    MENTIONED_ONLY = "mentioned_only"
    PARENT_POST_AUTHOR_ONLY = "parent_post_author_only"
    FOLLOWERS_ONLY = "followers_only"


class MediaType(str, Enum):
    TEXT = "TEXT"
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"
    CAROUSEL = "CAROUSEL"


class ContainerState(str, Enum):
    """Lifecycle states reported for a media container."""

    IN_PROGRESS = "IN_PROGRESS"
    FINISHED = "FINISHED"
    PUBLISHED = "PUBLISHED"
    ERROR = "ERROR"
    EXPIRED = "EXPIRED"


class ApprovalStatus(str, Enum):
    """Filter for replies held by reply approvals."""

    PENDING = "pending"
    IGNORED = "ignored"


def _parse_threads_timestamp(value: Any) -> Any:
    # The API emits "+0000" offsets which older ISO parsers reject.
    if isinstance(value, str) and len(value) > 5 and value[-5] in "+-" and value[-4:].isdigit():
        return f"{value[:-2]}:{value[-2:]}"
    return value


class PostOwner(BaseModel):
    id: str


class PollAttachment(BaseModel):
    option_a: str
    option_b: str
    option_c: str | None = None
    option_d: str | None = None


class Post(BaseModel):
    """Normalized representation of a post."""

    id: str
    text: str | None = None
    media_type: str | None = None
    media_product_type: str | None = None
    media_url: str | None = None
    permalink: str | None = None
    shortcode: str | None = None
    thumbnail_url: str | None = None
    alt_text: str | None = None
    username: str | None = None
    owner: PostOwner | None = None
    timestamp: datetime | None = None
    is_reply: bool = False
    is_quote_post: bool = False
    has_replies: bool = False
    reply_audience: str | None = None
    hide_status: str | None = None
    topic_tag: str | None = None
    link_attachment_url: str | None = None

    model_config = ConfigDict(extra="allow")

    @field_validator("timestamp", mode="before")
    @classmethod
    def normalize_timestamp(cls, value: Any) -> Any:
        return _parse_threads_timestamp(value)


class Cursors(BaseModel):
    before: str | None = None
    after: str | None = None


class Paging(BaseModel):
    cursors: Cursors | None = None
    next: str | None = None
    previous: str | None = None


class PostsResponse(BaseModel):
    """A page of posts."""

    data: list[Post] = Field(default_factory=list)
    paging: Paging | None = None

    def next_cursor(self) -> str | None:
        if not self.data or self.paging is None or self.paging.cursors is None:
            return None
        return self.paging.cursors.after or None


class User(BaseModel):
    """Profile of a Threads user as seen by this app."""

    id: str
    username: str | None = None
    name: str | None = None
    profile_picture_url: str | None = Field(default=None, alias="threads_profile_picture_url")
    biography: str | None = Field(default=None, alias="threads_biography")
    is_verified: bool = False

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class PublicUser(BaseModel):
    """Public profile returned by profile discovery."""

    username: str
    name: str | None = None
    profile_picture_url: str | None = None
    biography: str | None = None
    is_verified: bool = False
    follower_count: int | None = None
    likes_count: int | None = None
    quotes_count: int | None = None
    replies_count: int | None = None
    reposts_count: int | None = None
    views_count: int | None = None

    model_config = ConfigDict(extra="allow")


class ContainerStatus(BaseModel):
    """Status document of a media container."""

    id: str
    status: str
    error_message: str | None = None

    @property
    def state(self) -> ContainerState | None:
        """Known state, or ``None`` for a status string this client does not recognize."""

        try:
            return ContainerState(self.status)
        except ValueError:
            return None


class Location(BaseModel):
    id: str
    name: str | None = None
    address: str | None = None
    city: str | None = None
    country: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    postal_code: str | None = None

    model_config = ConfigDict(extra="allow")


class LocationSearchResponse(BaseModel):
    data: list[Location] = Field(default_factory=list)


class InsightValue(BaseModel):
    value: Any = None
    end_time: str | None = None


class Insight(BaseModel):
    name: str
    period: str | None = None
    title: str | None = None
    description: str | None = None
    id: str | None = None
    values: list[InsightValue] = Field(default_factory=list)
    total_value: dict[str, Any] | None = None

    model_config = ConfigDict(extra="allow")


class InsightsResponse(BaseModel):
    data: list[Insight] = Field(default_factory=list)
    paging: Paging | None = None


class PublishingLimit(BaseModel):
    quota_usage: int | None = None
    config: dict[str, Any] | None = None
    reply_quota_usage: int | None = None
    reply_config: dict[str, Any] | None = None

    model_config = ConfigDict(extra="allow")


class TokenDebugInfo(BaseModel):
    """Token metadata reported by the ``debug_token`` endpoint."""

    type: str | None = None
    application: str | None = None
    is_valid: bool = False
    user_id: str | None = None
    scopes: list[str] = Field(default_factory=list)
    issued_at: int = 0
    expires_at: int = 0
    data_access_expires_at: int = 0

    model_config = ConfigDict(extra="allow")

    def expires_at_datetime(self) -> datetime | None:
        # 0 means the token does not expire.
        if self.expires_at <= 0:
            return None
        return datetime.fromtimestamp(self.expires_at, tz=timezone.utc)


class DebugTokenResponse(BaseModel):
    data: TokenDebugInfo


# ============================================================================
# Post content
# ============================================================================


class _ContentBase(BaseModel):
    text: str | None = None
    reply_control: ReplyControl | None = None
    reply_to_id: str | None = None
    topic_tag: str | None = None
    allowlisted_country_codes: list[str] = Field(default_factory=list)
    location_id: str | None = None
    quoted_post_id: str | None = None


class TextPostContent(_ContentBase):
    kind: Literal["text"] = "text"
    text: str
    link_attachment: str | None = None
    poll_attachment: PollAttachment | None = None
    auto_publish_text: bool = False


class ImagePostContent(_ContentBase):
    kind: Literal["image"] = "image"
    image_url: str
    alt_text: str | None = None
    is_spoiler_media: bool = False


class VideoPostContent(_ContentBase):
    kind: Literal["video"] = "video"
    video_url: str
    alt_text: str | None = None
    is_spoiler_media: bool = False


class CarouselPostContent(_ContentBase):
    kind: Literal["carousel"] = "carousel"
    children: list[str]
    is_spoiler_media: bool = False


PostContent = Annotated[
    Union[TextPostContent, ImagePostContent, VideoPostContent, CarouselPostContent],
    Field(discriminator="kind"),
]


class ReplyContent(BaseModel):
    """Content of a reply; replies only carry text or a single media URL."""

    reply_to_id: str
    text: str | None = None
    media_type: MediaType = MediaType.TEXT
    image_url: str | None = None
    video_url: str | None = None
