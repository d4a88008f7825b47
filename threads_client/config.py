"""
Configuration management utilities for threads_client.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Mapping, Sequence

from dotenv import dotenv_values

from threads_client import __version__
from threads_client.auth import TokenStorage
from threads_client.clients.http_client import DEFAULT_BASE_URL, DEFAULT_HTTP_TIMEOUT
from threads_client.exceptions import ConfigurationError
from threads_client.rate_limit import RetryConfig

ENV_VAR_MAP = {
    "client_id": "THREADS_CLIENT_ID",
    "client_secret": "THREADS_CLIENT_SECRET",
    "redirect_uri": "THREADS_REDIRECT_URI",
    "access_token": "THREADS_ACCESS_TOKEN",
    "user_id": "THREADS_USER_ID",
}
BASE_URL_ENV = "THREADS_BASE_URL"
HTTP_TIMEOUT_ENV = "THREADS_HTTP_TIMEOUT"

DEFAULT_SCOPES = (
    "threads_basic",
    "threads_content_publish",
    "threads_manage_replies",
    "threads_read_replies",
    "threads_manage_insights",
)


@dataclass(slots=True)
class ThreadsCredentials:
    """App credentials plus an optional pre-issued access token."""

    client_id: str | None = None
    client_secret: str | None = None
    redirect_uri: str | None = None
    access_token: str | None = None
    user_id: str | None = None

    def is_empty(self) -> bool:
        return all(
            value in (None, "")
            for value in (
                self.client_id,
                self.client_secret,
                self.redirect_uri,
                self.access_token,
                self.user_id,
            )
        )

    def merge(self, other: "ThreadsCredentials") -> "ThreadsCredentials":
        """Merge credential sets, preferring non-null values from ``other``."""

        return ThreadsCredentials(
            client_id=other.client_id or self.client_id,
            client_secret=other.client_secret or self.client_secret,
            redirect_uri=other.redirect_uri or self.redirect_uri,
            access_token=other.access_token or self.access_token,
            user_id=other.user_id or self.user_id,
        )

    def to_dict(self) -> dict[str, str]:
        return {
            key: value
            for key, value in asdict(self).items()
            if isinstance(value, str) and value
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, str | None]) -> "ThreadsCredentials":
        return cls(
            client_id=data.get("client_id"),
            client_secret=data.get("client_secret"),
            redirect_uri=data.get("redirect_uri"),
            access_token=data.get("access_token"),
            user_id=data.get("user_id"),
        )


@dataclass(slots=True)
class ClientConfig:
    """Runtime settings for a ``ThreadsClient``."""

    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = ""
    scopes: Sequence[str] = DEFAULT_SCOPES
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    retry_config: RetryConfig = field(default_factory=RetryConfig)
    base_url: str = DEFAULT_BASE_URL
    user_agent: str = f"threads-client/{__version__}"
    logger: logging.Logger | None = None
    token_storage: TokenStorage | None = None
    rate_limit_backoff_multiplier: float = 2.0
    rate_limit_max_backoff: float = 300.0

    def validate(self) -> None:
        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"base_url must be an http(s) URL, got '{self.base_url}'.")
        if self.http_timeout <= 0:
            raise ConfigurationError("http_timeout must be positive.")
        if self.rate_limit_backoff_multiplier <= 0 or self.rate_limit_max_backoff <= 0:
            raise ConfigurationError("Rate limit backoff settings must be positive.")
        if not isinstance(self.retry_config, RetryConfig):
            raise ConfigurationError("retry_config must be a RetryConfig instance.")


class ConfigManager:
    """Loads and persists credentials from environment variables, dotenv or disk."""

    def __init__(
        self,
        credential_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
        dotenv_path: Path | None = None,
    ) -> None:
        self._credential_path = credential_path or Path("credentials/threads_config.json")
        self._env = os.environ if env is None else env
        self._dotenv_path = dotenv_path or Path(".env")

    def load_credentials(
        self,
        priority: Sequence[str] = ("env", "dotenv", "file"),
    ) -> ThreadsCredentials:
        """
        Load credentials according to the requested priority order.

        Raises:
            ConfigurationError: when no credentials are available.
        """

        for source in priority:
            if source == "env":
                credentials = self._load_from_mapping(self._env)
            elif source == "dotenv":
                credentials = self._load_from_dotenv()
            elif source == "file":
                credentials = self._load_from_file()
            else:
                raise ValueError(f"Unknown credential source '{source}'.")

            if credentials and not credentials.is_empty():
                return credentials

        raise ConfigurationError("Threads credentials are not configured.")

    def save_credentials(self, credentials: ThreadsCredentials) -> None:
        """Persist credentials to disk, merging with existing values."""

        existing = self._load_from_file()
        merged = existing.merge(credentials) if existing else credentials

        self._credential_path.parent.mkdir(parents=True, exist_ok=True)
        with self._credential_path.open("w", encoding="utf-8") as fp:
            json.dump(merged.to_dict(), fp, indent=2, sort_keys=True)

        os.chmod(self._credential_path, 0o600)

    def load_client_config(self, **overrides: object) -> ClientConfig:
        """Build a ``ClientConfig`` from the stored credentials and optional env settings."""

        try:
            credentials = self.load_credentials()
        except ConfigurationError:
            credentials = ThreadsCredentials()

        settings = dict(self._dotenv_settings())
        settings.update({k: v for k, v in self._env.items() if v})

        config = ClientConfig(
            client_id=credentials.client_id or "",
            client_secret=credentials.client_secret or "",
            redirect_uri=credentials.redirect_uri or "",
        )
        if settings.get(BASE_URL_ENV):
            config.base_url = settings[BASE_URL_ENV]
        if settings.get(HTTP_TIMEOUT_ENV):
            try:
                config.http_timeout = float(settings[HTTP_TIMEOUT_ENV])
            except ValueError as exc:
                raise ConfigurationError(
                    f"{HTTP_TIMEOUT_ENV} must be a number of seconds, got '{settings[HTTP_TIMEOUT_ENV]}'."
                ) from exc
        for key, value in overrides.items():
            if not hasattr(config, key):
                raise ConfigurationError(f"Unknown client setting '{key}'.")
            setattr(config, key, value)

        config.validate()
        return config

    def _dotenv_settings(self) -> dict[str, str]:
        if not self._dotenv_path.exists():
            return {}
        return {k: v for k, v in dotenv_values(self._dotenv_path).items() if v}

    def _load_from_mapping(self, values: Mapping[str, str | None]) -> ThreadsCredentials | None:
        credentials = ThreadsCredentials.from_mapping(
            {field_name: values.get(env_name) for field_name, env_name in ENV_VAR_MAP.items()}
        )
        return credentials if not credentials.is_empty() else None

    def _load_from_dotenv(self) -> ThreadsCredentials | None:
        settings = self._dotenv_settings()
        if not settings:
            return None
        return self._load_from_mapping(settings)

    def _load_from_file(self) -> ThreadsCredentials | None:
        if not self._credential_path.exists():
            return None

        with self._credential_path.open("r", encoding="utf-8") as fp:
            data = json.load(fp)

        if not isinstance(data, Mapping):
            raise ConfigurationError(
                f"Credential file {self._credential_path} did not contain a mapping."
            )

        credentials = ThreadsCredentials.from_mapping(data)
        return credentials if not credentials.is_empty() else None


def load_client_config(
    credential_path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    dotenv_path: Path | None = None,
    **overrides: object,
) -> ClientConfig:
    return ConfigManager(credential_path, env=env, dotenv_path=dotenv_path).load_client_config(**overrides)
