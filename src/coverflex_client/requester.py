"""Authenticated GETs with a single refresh-and-retry on expiry.

Every resource read goes through ``AuthenticatedRequester.get``:

* no stored pair: ``Unauthenticated`` without touching the network;
* 200: the body is decoded;
* 401: the pair is refreshed once (shared between concurrent callers by
  ``RefreshCoordinator``) and the request is sent one more time;
* anything else, including a 401 after a successful refresh: ``UpstreamError``.

A logical request therefore costs at most two GETs.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional, Tuple, Type

import requests
from pydantic import BaseModel

from .exceptions import PersistenceError, TokenNotFoundError, Unauthenticated, UpstreamError
from .refresher import TokenRefresher
from .tokens import TokenPair, TokenRepository
from .transport import bearer, decode, send

logger = logging.getLogger("coverflex-requester")


class RefreshCoordinator:
    """Lets many callers that hit the same expired token share one refresh.

    The renew endpoint invalidates the refresh token it is given, so a second
    concurrent refresh with the same token would fail. Refreshes are serialized
    behind a lock and the outcome for the last stale access token is kept;
    callers arriving with that same stale token get the recorded outcome
    instead of refreshing again, unless the store already holds another pair.

    A failed refresh deletes the stored pair, but only while the store still
    holds the stale pair that was refreshed.
    """

    def __init__(self, refresher: TokenRefresher, repository: TokenRepository) -> None:
        self._refresher = refresher
        self._repository = repository
        self._lock = threading.Lock()
        self._last: Optional[Tuple[str, TokenPair]] = None

    def refresh(self, stale: TokenPair) -> TokenPair:
        with self._lock:
            current = self._stored_pair()
            if current.access_token and current.access_token != stale.access_token:
                # someone else (another process, a new login) already replaced it
                return current

            if self._last is not None and self._last[0] == stale.access_token:
                logger.debug("Reusing refresh outcome from a concurrent caller")
                return self._last[1]

            tokens = self._refresher.refresh_tokens(stale.refresh_token)
            self._last = (stale.access_token, tokens)
            if not tokens:
                self._discard(stale)
            return tokens

    def _discard(self, stale: TokenPair) -> None:
        if self._stored_pair().access_token != stale.access_token:
            return
        try:
            self._repository.delete_tokens()
        except PersistenceError as exc:
            logger.warning("Failed to remove stored tokens: %s", exc)

    def _stored_pair(self) -> TokenPair:
        try:
            return self._repository.get_tokens()
        except PersistenceError:
            return TokenPair.empty()


class AuthenticatedRequester:
    def __init__(
        self,
        http: requests.Session,
        repository: TokenRepository,
        coordinator: RefreshCoordinator,
        *,
        timeout: float = 15.0,
    ) -> None:
        self._http = http
        self._repository = repository
        self._coordinator = coordinator
        self._timeout = timeout

    def get(
        self,
        url: str,
        decode_target: Optional[Type[BaseModel]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            tokens = self._repository.get_tokens()
        except TokenNotFoundError as exc:
            raise Unauthenticated("Not logged in. Please log in first.") from exc

        response = self._send(url, tokens, params)
        if response.status_code == 401:
            logger.info("Token expired. Refreshing...")
            tokens = self._refresh(tokens)
            logger.info("Retrying request with new token...")
            response = self._send(url, tokens, params)

        if response.status_code != 200:
            raise UpstreamError(f"GET {url} failed", status_code=response.status_code, body=response.text)
        return decode(response, decode_target)

    def _send(self, url: str, tokens: TokenPair, params: Optional[Dict[str, Any]]) -> requests.Response:
        return send(
            self._http,
            "GET",
            url,
            timeout=self._timeout,
            headers=bearer(tokens.access_token),
            params=params,
        )

    def _refresh(self, stale: TokenPair) -> TokenPair:
        tokens = self._coordinator.refresh(stale)
        if not tokens:
            raise Unauthenticated("Token refresh failed. Please log in again.")
        return tokens
