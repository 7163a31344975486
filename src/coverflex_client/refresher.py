from __future__ import annotations

import logging

import requests

from .exceptions import CoverflexError, PersistenceError
from .models import RenewResponse
from .tokens import TokenPair, TokenRepository
from .transport import ACCEPT_JSON, decode, send

logger = logging.getLogger("coverflex-refresher")

RENEW_PATH = "/sessions/renew"


class TokenRefresher:
    """Exchanges a refresh token for a new pair and stores it.

    ``refresh_tokens`` never raises: every failure is logged and reported as
    ``TokenPair.empty()``, so callers only check the truthiness of the result.
    """

    def __init__(
        self,
        http: requests.Session,
        repository: TokenRepository,
        *,
        base_url: str,
        timeout: float = 15.0,
    ) -> None:
        self._http = http
        self._repository = repository
        self._renew_url = f"{base_url.rstrip('/')}{RENEW_PATH}"
        self._timeout = timeout

    def _request_refresh(self, refresh_token: str) -> TokenPair:
        response = send(
            self._http,
            "POST",
            self._renew_url,
            timeout=self._timeout,
            headers={
                "accept": ACCEPT_JSON,
                "Content-Type": "application/json",
                "Authorization": f"Bearer {refresh_token}",
            },
        )
        if response.status_code not in (200, 201):
            logger.error("Refresh request failed: HTTP %s %s", response.status_code, response.text)
            return TokenPair.empty()

        renewed = decode(response, RenewResponse).data
        return TokenPair(access_token=renewed.access_token, refresh_token=renewed.refresh_token)

    def refresh_tokens(self, refresh_token: str) -> TokenPair:
        if not refresh_token:
            logger.error("No refresh token stored; cannot refresh")
            return TokenPair.empty()

        logger.info("Refreshing tokens...")
        try:
            tokens = self._request_refresh(refresh_token)
        except CoverflexError as exc:
            logger.error("Token refresh failed: %s", exc)
            return TokenPair.empty()

        if not tokens:
            logger.error("Refresh response did not contain a full token pair")
            return TokenPair.empty()

        try:
            self._repository.save_tokens(tokens.access_token, tokens.refresh_token)
        except PersistenceError as exc:
            # the caller still gets working tokens for this run
            logger.warning("Refreshed tokens could not be saved: %s", exc)
        else:
            logger.info("Tokens refreshed and saved")
        return tokens
