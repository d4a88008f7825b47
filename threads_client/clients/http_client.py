"""
HTTP execution pipeline shared by every Threads API call.

``HttpClient.execute`` performs one logical request: an optional wait on the
rate limiter, a bounded retry loop with exponential backoff, and deterministic
classification of failures into the ``threads_client.exceptions`` kinds.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Iterator, Mapping

import requests
from pydantic import BaseModel

from threads_client.cancellation import CancellationToken, Sleeper, cancellable_sleep
from threads_client.exceptions import (
    ApiError,
    AuthenticationError,
    NetworkError,
    RateLimitError,
    ThreadsApiError,
    ValidationError,
)
from threads_client.rate_limit import RateLimiter, RateLimitInfo, RetryConfig, get_header, utc_now

DEFAULT_BASE_URL = "https://graph.threads.net"
DEFAULT_HTTP_TIMEOUT = 30.0
REQUEST_ID_HEADER = "X-FB-Request-ID"
MAX_ERROR_DETAILS = 500
RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


class FormParams:
    """Ordered, multi-valued form parameters (``application/x-www-form-urlencoded``)."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._pairs: list[tuple[str, str]] = []
        if initial:
            for key, value in initial.items():
                self.set(key, value)

    def set(self, key: str, value: Any) -> None:
        self._pairs = [(k, v) for k, v in self._pairs if k != key]
        self._pairs.append((key, _form_value(value)))

    def add(self, key: str, value: Any) -> None:
        self._pairs.append((key, _form_value(value)))

    def get(self, key: str) -> str | None:
        for k, v in self._pairs:
            if k == key:
                return v
        return None

    def get_all(self, key: str) -> list[str]:
        return [v for k, v in self._pairs if k == key]

    def items(self) -> list[tuple[str, str]]:
        return list(self._pairs)

    def __contains__(self, key: object) -> bool:
        return any(k == key for k, _ in self._pairs)

    def __iter__(self) -> Iterator[str]:
        return iter(dict.fromkeys(k for k, _ in self._pairs))

    def __len__(self) -> int:
        return len(self._pairs)

    def __repr__(self) -> str:
        return f"FormParams({self._pairs!r})"


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(slots=True)
class RequestOptions:
    """Description of a single logical API call."""

    method: str
    path: str
    params: Mapping[str, Any] | FormParams | None = None
    body: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)
    cancel: CancellationToken | None = None


@dataclass(slots=True, frozen=True)
class Response:
    """Envelope returned by ``HttpClient.execute`` for statuses below 400."""

    status_code: int
    body: bytes
    headers: Mapping[str, str]
    request_id: str | None = None
    rate_limit: RateLimitInfo | None = None
    duration: float = 0.0

    def json(self) -> Any:
        """Decode the body, raising ``ApiError`` for empty or malformed JSON."""

        if not self.body or not self.body.strip():
            raise ApiError(self.status_code, "Empty response body.", request_id=self.request_id)
        try:
            return json.loads(self.body)
        except (UnicodeDecodeError, ValueError) as exc:
            raise ApiError(
                self.status_code,
                "Failed to parse response body as JSON.",
                _truncate(self.body),
                request_id=self.request_id,
            ) from exc


def _truncate(body: bytes) -> str:
    text = body.decode("utf-8", errors="replace")
    if len(text) > MAX_ERROR_DETAILS:
        return text[:MAX_ERROR_DETAILS] + "..."
    return text


def error_from_response(
    status_code: int,
    body: bytes,
    headers: Mapping[str, str] | None = None,
    *,
    now: datetime | None = None,
) -> ThreadsApiError:
    """Classify a failed HTTP response into one of the five error kinds."""

    headers = headers or {}
    message = f"HTTP {status_code}"
    code = status_code
    details = _truncate(body) if body else None

    if body:
        try:
            payload = json.loads(body)
        except (UnicodeDecodeError, ValueError):
            payload = None
        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            error = payload["error"]
            if error.get("message"):
                message = str(error["message"])
                if isinstance(error.get("code"), int) and error["code"] != 0:
                    code = error["code"]

    err: ThreadsApiError
    if status_code in (401, 403):
        err = AuthenticationError(code, message, details)
    elif status_code == 429:
        info = RateLimitInfo.from_headers(headers)
        retry_after = 0.0
        if info is not None and info.retry_after is not None:
            retry_after = info.retry_after
        elif info is not None and info.reset_at is not None:
            retry_after = info.seconds_until_reset(now or utc_now()) or 0.0
        err = RateLimitError(code, message, details, retry_after=retry_after)
    elif status_code in (400, 422):
        err = ValidationError(code, message, details)
    else:
        err = ApiError(code, message, details, request_id=get_header(headers, REQUEST_ID_HEADER))

    err.status_code = status_code
    return err


def network_error_from_exception(exc: requests.RequestException) -> NetworkError:
    """Wrap a transport failure; only timeouts are considered temporary."""

    temporary = isinstance(exc, requests.exceptions.Timeout)
    return NetworkError(0, "Network request failed.", str(exc) or type(exc).__name__, temporary=temporary)


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    return {
        key: ("[REDACTED]" if key.lower() == "authorization" else value)
        for key, value in headers.items()
    }


class HttpClient:
    """Retrying executor bound to one rate limiter."""

    def __init__(
        self,
        *,
        rate_limiter: RateLimiter,
        retry_config: RetryConfig | None = None,
        base_url: str = DEFAULT_BASE_URL,
        user_agent: str = "threads-client",
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        session: requests.Session | None = None,
        sleep: Sleeper = cancellable_sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self.rate_limiter = rate_limiter
        self.retry_config = retry_config or RetryConfig()
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.timeout = timeout
        self._session = session or requests.Session()
        self._owns_session = session is None
        self._sleep = sleep
        self._logger = logger or logging.getLogger(__name__)

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def get(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
        access_token: str | None = None,
        *,
        cancel: CancellationToken | None = None,
    ) -> Response:
        return self.execute(RequestOptions("GET", path, params=params, cancel=cancel), access_token)

    def post(
        self,
        path: str,
        body: Any = None,
        access_token: str | None = None,
        *,
        params: Mapping[str, Any] | None = None,
        cancel: CancellationToken | None = None,
    ) -> Response:
        return self.execute(
            RequestOptions("POST", path, params=params, body=body, cancel=cancel), access_token
        )

    def delete(
        self,
        path: str,
        access_token: str | None = None,
        *,
        cancel: CancellationToken | None = None,
    ) -> Response:
        return self.execute(RequestOptions("DELETE", path, cancel=cancel), access_token)

    def execute(self, options: RequestOptions, access_token: str | None = None) -> Response:
        """Run ``options`` with retries; raise a classified error on failure."""

        if self.rate_limiter.should_wait():
            self.rate_limiter.wait(options.cancel)

        max_attempts = self.retry_config.max_retries + 1
        last_error: ThreadsApiError | None = None
        attempt = 0

        while True:
            if last_error is not None:
                delay = self.retry_config.calculate_delay(attempt - 1)
                self._logger.warning(
                    "Retrying request attempt=%d max_attempts=%d delay=%.3f error=%s",
                    attempt + 1,
                    max_attempts,
                    delay,
                    last_error,
                )
                self._sleep(delay, options.cancel)
            elif options.cancel is not None:
                options.cancel.raise_if_cancelled()

            attempt += 1
            try:
                return self._execute_once(options, access_token)
            except NetworkError as exc:
                if not exc.temporary:
                    raise
                error: ThreadsApiError = exc
            except (RateLimitError, ApiError) as exc:
                if exc.status_code not in RETRYABLE_STATUSES:
                    raise
                error = exc

            if attempt >= max_attempts:
                error.attempts = max_attempts  # type: ignore[attr-defined]
                error.add_note(f"request failed after {max_attempts} attempts")
                raise error
            last_error = error

    def _execute_once(self, options: RequestOptions, access_token: str | None) -> Response:
        url = self.base_url + options.path
        headers: dict[str, str] = {"User-Agent": self.user_agent}
        data, content_type = self._encode_body(options.body)
        if content_type is not None:
            headers["Content-Type"] = content_type
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        headers.update(options.headers)

        params: list[tuple[str, str]] | None = None
        if isinstance(options.params, FormParams):
            params = options.params.items()
        elif options.params:
            params = [(k, _form_value(v)) for k, v in options.params.items() if v is not None]

        self._logger.debug(
            "HTTP request method=%s url=%s headers=%s body_type=%s",
            options.method,
            url,
            redact_headers(headers),
            type(options.body).__name__ if options.body is not None else None,
        )

        started = time.monotonic()
        try:
            raw = self._session.request(
                options.method,
                url,
                params=params,
                data=data,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            error = network_error_from_exception(exc)
            self._logger.error(
                "HTTP request failed method=%s url=%s temporary=%s error=%s",
                options.method,
                url,
                error.temporary,
                exc,
            )
            raise error from exc
        duration = time.monotonic() - started

        response_headers = dict(raw.headers)
        rate_limit = RateLimitInfo.from_headers(response_headers)
        response = Response(
            status_code=raw.status_code,
            body=raw.content or b"",
            headers=response_headers,
            request_id=get_header(response_headers, REQUEST_ID_HEADER),
            rate_limit=rate_limit,
            duration=duration,
        )

        log = self._logger.error if response.status_code >= 400 else self._logger.debug
        log(
            "HTTP response status=%d duration_ms=%d request_id=%s rate_limit=%s",
            response.status_code,
            int(duration * 1000),
            response.request_id,
            rate_limit,
        )

        self.rate_limiter.update_from_headers(rate_limit)

        if response.status_code < 400:
            return response

        error = error_from_response(response.status_code, response.body, response_headers)
        if isinstance(error, RateLimitError):
            reset_time = None
            if rate_limit is not None and rate_limit.reset_at is not None:
                reset_time = rate_limit.reset_at
            else:
                reset_time = utc_now() + timedelta(seconds=error.retry_after)
            self.rate_limiter.mark_rate_limited(reset_time)
        raise error

    @staticmethod
    def _encode_body(body: Any) -> tuple[str | bytes | list[tuple[str, str]] | None, str | None]:
        if body is None:
            return None, None
        if isinstance(body, str):
            return body.encode("utf-8"), "text/plain"
        if isinstance(body, (bytes, bytearray)):
            return bytes(body), "application/octet-stream"
        if isinstance(body, FormParams):
            return body.items(), "application/x-www-form-urlencoded"
        try:
            if isinstance(body, BaseModel):
                encoded = body.model_dump_json(exclude_none=True)
            else:
                encoded = json.dumps(body)
        except (TypeError, ValueError) as exc:
            raise ValidationError(0, "Request body could not be encoded as JSON.", str(exc), field="body") from exc
        return encoded.encode("utf-8"), "application/json"
