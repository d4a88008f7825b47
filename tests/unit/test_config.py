from __future__ import annotations

import json
import stat
from pathlib import Path

import pytest

from threads_client.config import ClientConfig, ConfigManager, ThreadsCredentials, load_client_config
from threads_client.exceptions import ConfigurationError
from threads_client.rate_limit import RetryConfig


def test_load_credentials_prefers_environment(tmp_path: Path) -> None:
    env = {
        "THREADS_CLIENT_ID": "env-id",
        "THREADS_CLIENT_SECRET": "env-secret",
        "THREADS_ACCESS_TOKEN": "env-access",
        "THREADS_USER_ID": "env-user",
    }
    credential_path = tmp_path / "threads.json"
    credential_path.write_text(
        json.dumps({"client_id": "file-id", "access_token": "file-access"}),
        encoding="utf-8",
    )

    manager = ConfigManager(credential_path=credential_path, env=env, dotenv_path=tmp_path / ".env")
    credentials = manager.load_credentials()

    assert credentials.client_id == "env-id"
    assert credentials.access_token == "env-access"
    assert credentials.user_id == "env-user"


def test_load_credentials_from_file_when_env_empty(tmp_path: Path) -> None:
    credential_path = tmp_path / "threads.json"
    credential_path.write_text(
        json.dumps(
            {
                "client_id": "file-id",
                "client_secret": "file-secret",
                "redirect_uri": "https://example.com/callback",
                "access_token": "file-access",
            }
        ),
        encoding="utf-8",
    )

    manager = ConfigManager(credential_path=credential_path, env={}, dotenv_path=tmp_path / ".env")
    credentials = manager.load_credentials(priority=("file",))

    assert credentials.client_id == "file-id"
    assert credentials.redirect_uri == "https://example.com/callback"


def test_load_credentials_from_dotenv(tmp_path: Path) -> None:
    dotenv_file = tmp_path / ".env"
    dotenv_file.write_text(
        """
THREADS_CLIENT_ID=dotenv-id
THREADS_CLIENT_SECRET=dotenv-secret
THREADS_ACCESS_TOKEN=dotenv-access
THREADS_USER_ID=dotenv-user
""".strip()
    )

    manager = ConfigManager(credential_path=tmp_path / "credentials.json", env={}, dotenv_path=dotenv_file)
    credentials = manager.load_credentials(priority=("dotenv",))

    assert credentials.client_id == "dotenv-id"
    assert credentials.user_id == "dotenv-user"


def test_load_credentials_raises_when_missing(tmp_path: Path) -> None:
    manager = ConfigManager(credential_path=tmp_path / "threads.json", env={}, dotenv_path=tmp_path / ".env")

    with pytest.raises(ConfigurationError):
        manager.load_credentials()


def test_load_credentials_rejects_unknown_source(tmp_path: Path) -> None:
    manager = ConfigManager(credential_path=tmp_path / "threads.json", env={}, dotenv_path=tmp_path / ".env")

    with pytest.raises(ValueError):
        manager.load_credentials(priority=("vault",))


def test_credential_file_must_hold_a_mapping(tmp_path: Path) -> None:
    credential_path = tmp_path / "threads.json"
    credential_path.write_text("[]", encoding="utf-8")
    manager = ConfigManager(credential_path=credential_path, env={}, dotenv_path=tmp_path / ".env")

    with pytest.raises(ConfigurationError):
        manager.load_credentials(priority=("file",))


def test_save_credentials_merges_existing_values(tmp_path: Path) -> None:
    credential_path = tmp_path / "nested" / "threads.json"
    credential_path.parent.mkdir()
    credential_path.write_text(
        json.dumps({"client_id": "existing-id", "access_token": "existing-access"}),
        encoding="utf-8",
    )
    manager = ConfigManager(credential_path=credential_path, env={})

    manager.save_credentials(ThreadsCredentials(access_token="new-access", user_id="user-9"))

    data = json.loads(credential_path.read_text(encoding="utf-8"))
    assert data == {"client_id": "existing-id", "access_token": "new-access", "user_id": "user-9"}
    assert stat.S_IMODE(credential_path.stat().st_mode) == 0o600


def test_load_client_config_reads_settings(tmp_path: Path) -> None:
    env = {
        "THREADS_CLIENT_ID": "env-id",
        "THREADS_BASE_URL": "http://localhost:8080",
        "THREADS_HTTP_TIMEOUT": "5",
    }

    config = load_client_config(tmp_path / "threads.json", env=env, dotenv_path=tmp_path / ".env")

    assert config.client_id == "env-id"
    assert config.base_url == "http://localhost:8080"
    assert config.http_timeout == 5.0
    assert config.user_agent.startswith("threads-client/")


def test_load_client_config_applies_overrides(tmp_path: Path) -> None:
    retry = RetryConfig(max_retries=1)

    config = load_client_config(
        tmp_path / "threads.json", env={}, dotenv_path=tmp_path / ".env", retry_config=retry
    )

    assert config.retry_config is retry
    assert config.client_id == ""


def test_load_client_config_rejects_unknown_override(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="Unknown client setting"):
        load_client_config(tmp_path / "threads.json", env={}, dotenv_path=tmp_path / ".env", colour="red")


def test_load_client_config_rejects_bad_timeout(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_client_config(
            tmp_path / "threads.json",
            env={"THREADS_HTTP_TIMEOUT": "soon"},
            dotenv_path=tmp_path / ".env",
        )


@pytest.mark.parametrize(
    "kwargs",
    [
        {"base_url": "graph.threads.net"},
        {"http_timeout": 0},
        {"rate_limit_backoff_multiplier": 0},
        {"retry_config": {"max_retries": 3}},
    ],
)
def test_client_config_validate_rejects_bad_values(kwargs: dict) -> None:
    with pytest.raises(ConfigurationError):
        ClientConfig(**kwargs).validate()


def test_credentials_merge_prefers_other_values() -> None:
    base = ThreadsCredentials(client_id="a", access_token="old")
    merged = base.merge(ThreadsCredentials(access_token="new"))

    assert merged.client_id == "a"
    assert merged.access_token == "new"
    assert ThreadsCredentials().is_empty()
