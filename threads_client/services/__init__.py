"""Endpoint services composed by ``ThreadsClient``."""

from __future__ import annotations

__all__ = [
    "ApiService",
    "ContainerPublisher",
    "InsightsService",
    "PostService",
    "ReplyService",
    "SearchService",
    "TokenService",
    "UserService",
    "build_container_params",
]

from .base import ApiService
from .container_service import ContainerPublisher, build_container_params
from .insights_service import InsightsService
from .post_service import PostService
from .reply_service import ReplyService
from .search_service import SearchService
from .token_service import TokenService
from .user_service import UserService
