"""
Factory for creating Threads client instances with proper initialization.
"""

from __future__ import annotations

from typing import Any

from threads_client.client import ThreadsClient
from threads_client.config import ClientConfig, ConfigManager, ThreadsCredentials
from threads_client.exceptions import ConfigurationError


class ThreadsClientFactory:
    """Factory for creating properly initialized Threads API clients."""

    @staticmethod
    def create_from_config(config_manager: ConfigManager, **client_kwargs: Any) -> ThreadsClient:
        """
        Create a ThreadsClient from stored credentials and settings.

        Args:
            config_manager: ConfigManager reading env, dotenv or credential file
            client_kwargs: Forwarded to ``ThreadsClient`` (e.g. ``session``, ``sleep``)

        Returns:
            ThreadsClient with the access token installed

        Raises:
            ConfigurationError: If credentials are missing or invalid
        """
        credentials = config_manager.load_credentials()
        config = config_manager.load_client_config()
        return ThreadsClientFactory.create_from_credentials(credentials, config=config, **client_kwargs)

    @staticmethod
    def create_from_credentials(
        credentials: ThreadsCredentials,
        *,
        config: ClientConfig | None = None,
        **client_kwargs: Any,
    ) -> ThreadsClient:
        """
        Create a ThreadsClient directly from credentials.

        Raises:
            ConfigurationError: If the access token or user id is missing
        """
        if not credentials.access_token:
            raise ConfigurationError("Access token is required")

        if not credentials.user_id:
            raise ConfigurationError("User ID is required")

        if config is None:
            config = ClientConfig(
                client_id=credentials.client_id or "",
                client_secret=credentials.client_secret or "",
                redirect_uri=credentials.redirect_uri or "",
            )

        client = ThreadsClient(config, **client_kwargs)
        client.set_token(credentials.access_token, user_id=credentials.user_id)
        return client
