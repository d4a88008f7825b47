"""Typed client for the Threads API."""

from __future__ import annotations

import logging

__version__ = "0.1.0"

__all__ = [
    "CancellationToken",
    "ClientConfig",
    "ConfigManager",
    "RetryConfig",
    "ThreadsClient",
    "ThreadsClientFactory",
    "ThreadsCredentials",
    "__version__",
]

from .cancellation import CancellationToken
from .client import ThreadsClient
from .config import ClientConfig, ConfigManager, ThreadsCredentials
from .factory import ThreadsClientFactory
from .rate_limit import RetryConfig

logging.getLogger(__name__).addHandler(logging.NullHandler())
