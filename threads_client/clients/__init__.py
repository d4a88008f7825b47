"""Transport layer for the Threads API."""

from __future__ import annotations

__all__ = [
    "FormParams",
    "HttpClient",
    "RequestOptions",
    "Response",
    "error_from_response",
]

from .http_client import FormParams, HttpClient, RequestOptions, Response, error_from_response
