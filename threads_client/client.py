"""
Composition root wiring config, rate limiter, token store, executor and services.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta

import requests

from threads_client.auth import MemoryTokenStorage, TokenInfo, TokenStore
from threads_client.cancellation import CancellationToken, Sleeper, cancellable_sleep
from threads_client.clients.http_client import HttpClient
from threads_client.config import ClientConfig
from threads_client.rate_limit import RateLimiter, RateLimitStatus
from threads_client.services import (
    ContainerPublisher,
    InsightsService,
    PostService,
    ReplyService,
    SearchService,
    TokenService,
    UserService,
)


class ThreadsClient:
    """Entry point for the Threads API.

    Each client owns its own rate limiter and token store; use ``clone()`` to
    obtain an independent client with the same configuration.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        session: requests.Session | None = None,
        sleep: Sleeper = cancellable_sleep,
    ) -> None:
        self.config = config or ClientConfig()
        self.config.validate()
        self._sleep = sleep
        self.logger = self.config.logger or logging.getLogger("threads_client")

        self.rate_limiter = RateLimiter(
            backoff_multiplier=self.config.rate_limit_backoff_multiplier,
            max_backoff=self.config.rate_limit_max_backoff,
            sleep=sleep,
            logger=self.logger,
        )
        self.tokens = TokenStore(self.config.token_storage or MemoryTokenStorage(), logger=self.logger)
        self.http = HttpClient(
            rate_limiter=self.rate_limiter,
            retry_config=self.config.retry_config,
            base_url=self.config.base_url,
            user_agent=self.config.user_agent,
            timeout=self.config.http_timeout,
            session=session,
            sleep=sleep,
            logger=self.logger,
        )

        self.containers = ContainerPublisher(self.http, self.tokens, self.logger, sleep=sleep)
        self.posts = PostService(self.http, self.tokens, self.logger, containers=self.containers)
        self.replies = ReplyService(self.http, self.tokens, self.logger, containers=self.containers)
        self.users = UserService(self.http, self.tokens, self.logger)
        self.search = SearchService(self.http, self.tokens, self.logger)
        self.insights = InsightsService(self.http, self.tokens, self.logger)
        self.auth = TokenService(self.http, self.tokens, self.logger)

    def __enter__(self) -> "ThreadsClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.http.close()

    def set_token(
        self,
        access_token: str,
        *,
        user_id: str | None = None,
        expires_at: datetime | None = None,
        expires_in: timedelta | None = None,
    ) -> TokenInfo:
        return self.tokens.set_token(access_token, user_id=user_id, expires_at=expires_at, expires_in=expires_in)

    def is_authenticated(self) -> bool:
        return self.tokens.is_authenticated()

    def get_rate_limit_status(self) -> RateLimitStatus:
        return self.rate_limiter.get_status()

    def is_rate_limited(self) -> bool:
        return self.rate_limiter.is_rate_limited()

    def is_near_rate_limit(self, threshold: float = 0.8) -> bool:
        return self.rate_limiter.is_near_limit(threshold)

    def wait_for_rate_limit(self, cancel: CancellationToken | None = None) -> None:
        self.rate_limiter.wait(cancel)

    def clone(self, **overrides: object) -> "ThreadsClient":
        """New client sharing configuration but with a fresh limiter and token store.

        The current token is copied into the clone's store unless a
        ``token_storage`` override is given.
        """

        config = replace(self.config, **overrides)
        if "token_storage" not in overrides:
            storage = MemoryTokenStorage()
            token = self.tokens.get_token()
            if token is not None:
                storage.store(token)
            config.token_storage = storage
        return ThreadsClient(config, sleep=self._sleep)
