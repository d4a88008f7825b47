"""
Post and account insights, plus publishing quota.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from threads_client.cancellation import CancellationToken
from threads_client.exceptions import ApiError, ValidationError
from threads_client.models import InsightsResponse, PublishingLimit
from threads_client.services.base import PUBLISHING_LIMIT_FIELDS, ApiService
from threads_client.validation import require_id

POST_INSIGHT_METRICS = ("views", "likes", "replies", "reposts", "quotes", "shares")
ACCOUNT_INSIGHT_METRICS = (
    "views",
    "likes",
    "replies",
    "reposts",
    "quotes",
    "clicks",
    "followers_count",
    "follower_demographics",
)
DEFAULT_INSIGHT_METRICS = ("views", "likes", "replies", "reposts")
INSIGHT_PERIODS = ("day", "lifetime")
DEMOGRAPHIC_BREAKDOWNS = ("country", "city", "age", "gender")
# Account insights are not available before 2024-04-13.
MIN_INSIGHT_TIMESTAMP = 1712991600
# Metrics that describe the current state and reject a time range.
SNAPSHOT_METRICS = ("followers_count", "follower_demographics")


def _check_metrics(metrics: Sequence[str] | None, allowed: Sequence[str]) -> list[str]:
    if not metrics:
        return list(DEFAULT_INSIGHT_METRICS)
    for metric in metrics:
        if metric not in allowed:
            raise ValidationError(
                400,
                "Invalid metric",
                f"Metric '{metric}' is not one of: {', '.join(allowed)}",
                field="metric",
            )
    return list(metrics)


@dataclass(slots=True)
class InsightsService(ApiService):
    def get_post_insights(
        self,
        post_id: str,
        metrics: Sequence[str] | None = None,
        *,
        cancel: CancellationToken | None = None,
    ) -> InsightsResponse:
        require_id(post_id, "post_id", "Post ID is required")
        selected = _check_metrics(metrics, POST_INSIGHT_METRICS)
        response = self._request(
            "GET",
            f"/{post_id}/insights",
            params={"metric": ",".join(selected)},
            cancel=cancel,
            not_found=("post_id", "Post not found"),
        )
        return self._decode(response, InsightsResponse, "insights response")

    def get_account_insights(
        self,
        user_id: str | None = None,
        metrics: Sequence[str] | None = None,
        *,
        period: str = "lifetime",
        since: datetime | None = None,
        until: datetime | None = None,
        breakdown: str | None = None,
        cancel: CancellationToken | None = None,
    ) -> InsightsResponse:
        user_id = user_id or self._user_id()
        selected = _check_metrics(metrics, ACCOUNT_INSIGHT_METRICS)
        if period not in INSIGHT_PERIODS:
            raise ValidationError(400, "Invalid period", f"Period must be one of: {', '.join(INSIGHT_PERIODS)}", field="period")

        params: dict[str, object] = {"metric": ",".join(selected), "period": period}

        if any(metric in SNAPSHOT_METRICS for metric in selected):
            if since is not None or until is not None:
                raise ValidationError(
                    400,
                    "Invalid parameters",
                    "followers_count and follower_demographics do not support since and until",
                    field="metric",
                )
        else:
            for name, value in (("since", since), ("until", until)):
                if value is not None and value.timestamp() < MIN_INSIGHT_TIMESTAMP:
                    raise ValidationError(
                        400,
                        f"Invalid {name} timestamp",
                        f"{name} timestamp must be >= {MIN_INSIGHT_TIMESTAMP}",
                        field=name,
                    )
                if value is not None:
                    params[name] = int(value.timestamp())
        if since is not None and until is not None and since > until:
            raise ValidationError(400, "Invalid date range", "since date cannot be after until date", field="since")

        if breakdown is not None:
            if "follower_demographics" not in selected:
                raise ValidationError(
                    400, "Invalid parameters", "breakdown requires the follower_demographics metric", field="breakdown"
                )
            if breakdown not in DEMOGRAPHIC_BREAKDOWNS:
                raise ValidationError(
                    400,
                    "Invalid breakdown",
                    f"Breakdown must be one of: {', '.join(DEMOGRAPHIC_BREAKDOWNS)}",
                    field="breakdown",
                )
            params["breakdown"] = breakdown

        response = self._request(
            "GET",
            f"/{user_id}/threads_insights",
            params=params,
            cancel=cancel,
            not_found=("user_id", "User not found"),
        )
        return self._decode(response, InsightsResponse, "insights response")

    def get_publishing_limit(self, *, cancel: CancellationToken | None = None) -> PublishingLimit:
        user_id = self._user_id()
        response = self._request(
            "GET",
            f"/{user_id}/threads_publishing_limit",
            params={"fields": PUBLISHING_LIMIT_FIELDS},
            cancel=cancel,
        )
        data = response.json()
        entries = data.get("data") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise ApiError(
                response.status_code,
                "Failed to parse publishing limits response",
                "API response missing data list",
                request_id=response.request_id,
            )
        if not entries:
            return PublishingLimit()
        return PublishingLimit.model_validate(entries[0])
