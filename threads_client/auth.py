"""
Access token state and persistence.

The OAuth redirect/exchange/refresh protocol is not handled here; callers
obtain a token elsewhere and install it with ``TokenStore.set_token``.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Mapping, Protocol

from threads_client.exceptions import AuthenticationError, ConfigurationError
from threads_client.rate_limit import Clock, utc_now
from threads_client.utils import ReadWriteLock

# Long-lived tokens issued by Threads are valid for 60 days.
DEFAULT_TOKEN_LIFETIME = timedelta(days=60)


@dataclass(slots=True, frozen=True)
class TokenInfo:
    access_token: str
    token_type: str = "Bearer"
    expires_at: datetime | None = None
    user_id: str | None = None
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "token_type": self.token_type,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "user_id": self.user_id,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TokenInfo":
        access_token = data.get("access_token")
        if not access_token:
            raise ConfigurationError("Stored token is missing 'access_token'.")
        created_at = _parse_datetime(data.get("created_at"))
        return cls(
            access_token=str(access_token),
            token_type=str(data.get("token_type") or "Bearer"),
            expires_at=_parse_datetime(data.get("expires_at")),
            user_id=str(data["user_id"]) if data.get("user_id") else None,
            created_at=created_at or utc_now(),
        )


def _parse_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class TokenStorage(Protocol):
    """Persistence backend for the current token."""

    def store(self, token: TokenInfo) -> None:
        ...

    def load(self) -> TokenInfo | None:
        ...

    def delete(self) -> None:
        ...


class MemoryTokenStorage:
    """Keeps the token for the lifetime of the process."""

    def __init__(self) -> None:
        self._token: TokenInfo | None = None

    def store(self, token: TokenInfo) -> None:
        self._token = token

    def load(self) -> TokenInfo | None:
        return self._token

    def delete(self) -> None:
        self._token = None


class FileTokenStorage:
    """JSON file storage readable only by the owner."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def store(self, token: TokenInfo) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("w", encoding="utf-8") as fp:
            json.dump(token.to_dict(), fp, indent=2, sort_keys=True)
        os.chmod(self._path, 0o600)

    def load(self) -> TokenInfo | None:
        if not self._path.exists():
            return None
        with self._path.open("r", encoding="utf-8") as fp:
            data = json.load(fp)
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Token file {self._path} did not contain a mapping.")
        return TokenInfo.from_mapping(data)

    def delete(self) -> None:
        self._path.unlink(missing_ok=True)


class TokenStore:
    """Current access token guarded by a reader/writer lock."""

    def __init__(
        self,
        storage: TokenStorage | None = None,
        *,
        clock: Clock = utc_now,
        logger: logging.Logger | None = None,
    ) -> None:
        self._storage: TokenStorage = storage or MemoryTokenStorage()
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)
        self._lock = ReadWriteLock()
        self._token: TokenInfo | None = None

        try:
            self._token = self._storage.load()
        except (OSError, ValueError, ConfigurationError) as exc:
            self._logger.warning("Failed to load token from storage error=%s", exc)
        if self._token is not None:
            self._logger.debug("Loaded token from storage user_id=%s", self._token.user_id)

    @property
    def storage(self) -> TokenStorage:
        return self._storage

    def set_token(
        self,
        access_token: str,
        *,
        user_id: str | None = None,
        expires_at: datetime | None = None,
        expires_in: timedelta | None = None,
        token_type: str = "Bearer",
    ) -> TokenInfo:
        """Install a token; without an explicit expiry the 60-day default applies."""

        if not access_token:
            raise AuthenticationError(401, "Access token cannot be empty")

        now = self._clock()
        if expires_at is None:
            expires_at = now + (expires_in or DEFAULT_TOKEN_LIFETIME)
        token = TokenInfo(
            access_token=access_token,
            token_type=token_type,
            expires_at=expires_at,
            user_id=user_id,
            created_at=now,
        )
        with self._lock.write():
            self._token = token
            self._storage.store(token)
        self._logger.info("Access token set user_id=%s expires_at=%s", user_id, expires_at.isoformat())
        return token

    def set_user_id(self, user_id: str) -> None:
        with self._lock.write():
            if self._token is None:
                raise AuthenticationError(401, "No access token available")
            self._token = replace(self._token, user_id=user_id)
            self._storage.store(self._token)

    def get_token(self) -> TokenInfo | None:
        with self._lock.read():
            return self._token

    def clear(self) -> None:
        with self._lock.write():
            self._token = None
            self._storage.delete()

    @property
    def access_token(self) -> str | None:
        token = self.get_token()
        return token.access_token if token else None

    @property
    def user_id(self) -> str | None:
        token = self.get_token()
        return token.user_id if token else None

    def is_authenticated(self) -> bool:
        token = self.get_token()
        return token is not None and bool(token.access_token) and not self._expired(token)

    def is_expired(self) -> bool:
        token = self.get_token()
        return token is None or self._expired(token)

    def is_expiring_soon(self, within: timedelta) -> bool:
        token = self.get_token()
        if token is None:
            return True
        if token.expires_at is None:
            return False
        return self._clock() + within >= token.expires_at

    def ensure_valid_token(self) -> str:
        """Return the bearer string or raise ``AuthenticationError``."""

        token = self.get_token()
        if token is None or not token.access_token:
            raise AuthenticationError(401, "No access token available", "Set a token before calling the API")
        if self._expired(token):
            raise AuthenticationError(
                401,
                "Access token has expired",
                f"Token expired at {token.expires_at.isoformat() if token.expires_at else 'unknown'}",
            )
        return token.access_token

    def _expired(self, token: TokenInfo) -> bool:
        return token.expires_at is not None and self._clock() >= token.expires_at
