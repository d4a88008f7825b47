"""
Keyword search and location lookups.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from threads_client.cancellation import CancellationToken
from threads_client.exceptions import ValidationError
from threads_client.models import Location, LocationSearchResponse, MediaType, Post, PostsResponse
from threads_client.services.base import DEFAULT_POSTS_LIMIT, LOCATION_FIELDS, POST_FIELDS, ApiService, iterate_pages
from threads_client.validation import require_id, validate_limit, validate_search_since

SEARCH_TYPES = ("TOP", "RECENT")
SEARCH_MODES = ("KEYWORD", "TAG")
SEARCHABLE_MEDIA_TYPES = (MediaType.TEXT.value, MediaType.IMAGE.value, MediaType.VIDEO.value)


@dataclass(slots=True)
class SearchService(ApiService):
    def keyword_search(
        self,
        query: str,
        *,
        search_type: str | None = None,
        search_mode: str | None = None,
        media_type: str | None = None,
        limit: int | None = None,
        since: int | None = None,
        until: int | None = None,
        before: str | None = None,
        after: str | None = None,
        cancel: CancellationToken | None = None,
    ) -> PostsResponse:
        if not query or not query.strip():
            raise ValidationError(400, "Search query is required", "Cannot search without a query string", field="query")
        if search_type is not None and search_type.upper() not in SEARCH_TYPES:
            raise ValidationError(400, "Invalid search type", "Search type must be TOP or RECENT", field="search_type")
        if search_mode is not None and search_mode.upper() not in SEARCH_MODES:
            raise ValidationError(400, "Invalid search mode", "Search mode must be KEYWORD or TAG", field="search_mode")
        if media_type is not None and media_type.upper() not in SEARCHABLE_MEDIA_TYPES:
            raise ValidationError(400, "Invalid media type", "Media type must be TEXT, IMAGE, or VIDEO", field="media_type")
        validate_limit(limit)
        validate_search_since(since)

        params = {
            "q": query,
            "fields": POST_FIELDS,
            "search_type": search_type.upper() if search_type else None,
            "search_mode": search_mode.upper() if search_mode else None,
            "media_type": media_type.upper() if media_type else None,
            "limit": limit,
            "since": since,
            "until": until,
            "before": before,
            "after": after,
        }
        response = self._request("GET", "/keyword_search", params=params, cancel=cancel)
        return self._decode(response, PostsResponse, "keyword search response")

    def iter_keyword_search(
        self,
        query: str,
        *,
        search_type: str | None = None,
        search_mode: str | None = None,
        media_type: str | None = None,
        limit: int = DEFAULT_POSTS_LIMIT,
        cancel: CancellationToken | None = None,
    ) -> Iterator[Post]:
        """Yield search results across pages; ``search_mode="TAG"`` searches topic tags."""

        return iterate_pages(
            lambda cursor: self.keyword_search(
                query,
                search_type=search_type,
                search_mode=search_mode,
                media_type=media_type,
                limit=limit,
                after=cursor,
                cancel=cancel,
            )
        )

    def search_locations(
        self,
        query: str | None = None,
        *,
        latitude: float | None = None,
        longitude: float | None = None,
        cancel: CancellationToken | None = None,
    ) -> LocationSearchResponse:
        if not query and latitude is None and longitude is None:
            raise ValidationError(
                400,
                "At least one search parameter required",
                "Must provide query, latitude, or longitude",
                field="search_params",
            )
        params = {
            "fields": LOCATION_FIELDS,
            "q": query or None,
            "latitude": f"{latitude:f}" if latitude is not None else None,
            "longitude": f"{longitude:f}" if longitude is not None else None,
        }
        response = self._request("GET", "/location_search", params=params, cancel=cancel)
        return self._decode(response, LocationSearchResponse, "location search response")

    def get_location(self, location_id: str, *, cancel: CancellationToken | None = None) -> Location:
        require_id(location_id, "location_id", "Location ID is required")
        response = self._request(
            "GET",
            f"/{location_id}",
            params={"fields": LOCATION_FIELDS},
            cancel=cancel,
            not_found=("location_id", "Location not found"),
        )
        return self._decode(response, Location, "location")
