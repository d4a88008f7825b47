"""
Token introspection through the ``debug_token`` endpoint.
"""

from __future__ import annotations

from dataclasses import dataclass

from threads_client.auth import TokenInfo
from threads_client.cancellation import CancellationToken
from threads_client.exceptions import AuthenticationError
from threads_client.models import DebugTokenResponse, TokenDebugInfo
from threads_client.services.base import ApiService


@dataclass(slots=True)
class TokenService(ApiService):
    def debug_token(
        self, input_token: str | None = None, *, cancel: CancellationToken | None = None
    ) -> TokenDebugInfo:
        """Inspect ``input_token``, or the current token when omitted."""

        access_token = self._token()
        response = self._request(
            "GET",
            "/debug_token",
            params={"input_token": input_token or access_token},
            cancel=cancel,
        )
        info = self._decode(response, DebugTokenResponse, "debug token response").data
        self.logger.debug(
            "Debug token response received is_valid=%s user_id=%s expires_at=%s scopes=%s",
            info.is_valid,
            info.user_id,
            info.expires_at,
            ",".join(info.scopes),
        )
        return info

    def set_token_from_debug_info(self, access_token: str, info: TokenDebugInfo) -> TokenInfo:
        """Install ``access_token`` with the owner and expiry reported by ``debug_token``.

        A token reported as never expiring gets the default 60-day lifetime.
        """

        if not info.is_valid:
            raise AuthenticationError(401, "Token is not valid", "Debug token endpoint reports token as invalid")
        return self.tokens.set_token(access_token, user_id=info.user_id, expires_at=info.expires_at_datetime())
