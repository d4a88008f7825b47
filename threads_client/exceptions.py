"""
Domain specific exception hierarchy for the threads_client package.

Every failure of a remote call is exactly one of five kinds
(authentication, rate limit, validation, network, API). Callers should branch
with the ``is_*`` predicates rather than matching on messages.
"""

from __future__ import annotations


class ThreadsClientError(Exception):
    """Base exception for all library errors."""


class ConfigurationError(ThreadsClientError):
    """Raised when required configuration or credentials are missing."""


class OperationCancelled(ThreadsClientError):
    """Raised when the caller cancels an operation during a wait."""


class ThreadsApiError(ThreadsClientError):
    """Common base of the five classified error kinds."""

    error_type = "threads_error"

    def __init__(self, code: int, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or None
        self.status_code: int | None = None

    def __str__(self) -> str:
        if self.details:
            return f"threads api error {self.code} ({self.error_type}): {self.message} - {self.details}"
        return f"threads api error {self.code} ({self.error_type}): {self.message}"


class AuthenticationError(ThreadsApiError):
    """Invalid, expired or missing credentials (HTTP 401/403)."""

    error_type = "authentication_error"


class RateLimitError(ThreadsApiError):
    """Raised when the Threads API enforces a rate limit (HTTP 429)."""

    error_type = "rate_limit_error"

    def __init__(
        self,
        code: int,
        message: str,
        details: str | None = None,
        *,
        retry_after: float = 0.0,
    ) -> None:
        super().__init__(code, message, details)
        self.retry_after = retry_after


class ValidationError(ThreadsApiError):
    """Invalid parameters or content (HTTP 400/422, or local checks)."""

    error_type = "validation_error"

    def __init__(
        self,
        code: int,
        message: str,
        details: str | None = None,
        *,
        field: str | None = None,
    ) -> None:
        super().__init__(code, message, details)
        self.field = field


class NetworkError(ThreadsApiError):
    """Connection, DNS, TLS or timeout failure before a response arrived."""

    error_type = "network_error"

    def __init__(
        self,
        code: int,
        message: str,
        details: str | None = None,
        *,
        temporary: bool = False,
    ) -> None:
        super().__init__(code, message, details)
        self.temporary = temporary


class ApiError(ThreadsApiError):
    """Server-side or otherwise unclassified API failure."""

    error_type = "api_error"

    def __init__(
        self,
        code: int,
        message: str,
        details: str | None = None,
        *,
        request_id: str | None = None,
    ) -> None:
        super().__init__(code, message, details)
        self.request_id = request_id


class ContainerError(ApiError):
    """A media container reached a state from which it cannot be published."""

    def __init__(self, code: int, message: str, details: str | None = None, *, container_id: str) -> None:
        super().__init__(code, message, details)
        self.container_id = container_id


class ContainerProcessingFailed(ContainerError):
    """Raised when the API reports ERROR for a media container."""


class ContainerExpired(ContainerError):
    """Raised when a container was not published before its TTL ran out."""


class ContainerTimeout(ContainerError):
    """Raised when a container stays unfinished for the whole polling budget."""

    def __init__(self, message: str, details: str | None = None, *, container_id: str, attempts: int) -> None:
        super().__init__(408, message, details, container_id=container_id)
        self.attempts = attempts


def is_authentication_error(err: BaseException) -> bool:
    return isinstance(err, AuthenticationError)


def is_rate_limit_error(err: BaseException) -> bool:
    return isinstance(err, RateLimitError)


def is_validation_error(err: BaseException) -> bool:
    return isinstance(err, ValidationError)


def is_network_error(err: BaseException) -> bool:
    return isinstance(err, NetworkError)


def is_api_error(err: BaseException) -> bool:
    return isinstance(err, ApiError)


def is_retryable_error(err: BaseException) -> bool:
    """Rate limits, temporary network failures and 5xx API errors are retried."""

    if isinstance(err, RateLimitError):
        return True
    if isinstance(err, NetworkError):
        return err.temporary
    if isinstance(err, ApiError):
        status = err.status_code if err.status_code is not None else err.code
        return 500 <= status < 600
    return False
