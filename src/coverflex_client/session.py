"""Password + OTP login against the Coverflex session endpoint.

The flow is split in two calls so the caller can collect the SMS code between
them:

1. ``request_otp(email, password)`` asks the service to text an OTP.
2. ``login(email, password, otp)`` exchanges the OTP for tokens, tries to
   upgrade them by trusting this device, and stores the result.

Each call is a complete exchange; nothing is kept between them except what the
caller passes in again. Two logins for the same user must not run at once.
"""

from __future__ import annotations

import logging

import requests

from .exceptions import CoverflexError, InvalidCredentials, ProtocolError, UpstreamError
from .models import OtpChallenge, SessionTokens
from .tokens import TokenPair, TokenRepository
from .transport import ACCEPT_JSON, decode, send

logger = logging.getLogger("coverflex-session")

SESSIONS_PATH = "/sessions"
TRUST_PATH = "/sessions/trust-user-agent"


class AuthSession:
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
        base_url = base_url.rstrip("/")
        self._session_url = f"{base_url}{SESSIONS_PATH}"
        self._trust_url = f"{base_url}{TRUST_PATH}"
        self._timeout = timeout

    def _post_session(self, payload: dict) -> requests.Response:
        return send(
            self._http,
            "POST",
            self._session_url,
            timeout=self._timeout,
            json=payload,
            headers={"accept": ACCEPT_JSON, "Content-Type": "application/json"},
        )

    @staticmethod
    def _reject(response: requests.Response, step: str) -> CoverflexError:
        if 400 <= response.status_code < 500:
            return InvalidCredentials(f"{step} rejected: HTTP {response.status_code}")
        return UpstreamError(f"Unexpected response during {step}", status_code=response.status_code, body=response.text)

    def request_otp(self, email: str, password: str) -> OtpChallenge:
        """Ask the service to send an OTP to the phone linked to the account."""

        logger.info("Requesting OTP...")
        response = self._post_session({"email": email, "password": password})
        if response.status_code != 202:
            raise self._reject(response, "OTP request")

        challenge = decode(response, OtpChallenge)
        logger.info("OTP sent to phone ending in ...%s", challenge.phone_last_digits)
        return challenge

    def login(self, email: str, password: str, otp: str) -> TokenPair:
        """Submit the OTP, trust this device and persist the resulting pair.

        Raises ``InvalidCredentials`` when the OTP (or password) is refused,
        in which case the flow has to start again from ``request_otp``.
        ``PersistenceError`` means the tokens were obtained but could not be
        stored; they are lost.
        """

        logger.info("Submitting OTP...")
        response = self._post_session({"email": email, "password": password, "otp": otp})
        if response.status_code != 201:
            raise self._reject(response, "OTP submission")

        issued = decode(response, SessionTokens)
        if not issued.token:
            raise ProtocolError("Session response did not include an access token")
        logger.info("Successfully authenticated")

        tokens = self._trust_device(TokenPair(access_token=issued.token, refresh_token=issued.refresh_token))
        self._repository.save_tokens(tokens.access_token, tokens.refresh_token)
        return tokens

    def _trust_device(self, tokens: TokenPair) -> TokenPair:
        """Trade the fresh pair for a longer-lived one; keep it on any failure."""

        logger.info("Trusting this device...")
        try:
            response = send(
                self._http,
                "POST",
                self._trust_url,
                timeout=self._timeout,
                headers={
                    "accept": ACCEPT_JSON,
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {tokens.access_token}",
                },
            )
            if response.status_code != 201:
                logger.warning("Device trust refused: HTTP %s", response.status_code)
                return tokens
            trusted = decode(response, SessionTokens)
        except CoverflexError as exc:
            logger.warning("Error trusting device: %s", exc)
            return tokens

        if not trusted.token:
            logger.warning("Device trust response carried no token; keeping current pair")
            return tokens

        logger.info("Device trusted successfully")
        if trusted.user_agent_token:
            logger.info("Received user agent token for long-term session")
        return TokenPair(access_token=trusted.token, refresh_token=trusted.refresh_token)
