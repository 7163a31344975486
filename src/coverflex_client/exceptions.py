"""Errors raised by the Coverflex client.

Callers mostly need to tell two cases apart: ``Unauthenticated`` means the
stored session is gone and a new login is needed, ``InvalidCredentials`` means
the email, password or OTP that was just supplied was rejected.
"""

from __future__ import annotations

from typing import Optional


class CoverflexError(RuntimeError):
    """Base class for every error raised by this package."""


class Unauthenticated(CoverflexError):
    """No token pair is stored, or the stored one could not be refreshed."""


class InvalidCredentials(CoverflexError):
    """The session endpoint rejected the email/password or the OTP."""


class TransportError(CoverflexError):
    """The request never produced an HTTP response (DNS, TCP, TLS, timeout)."""


class ProtocolError(CoverflexError):
    """The remote service answered with something we cannot use."""


class UpstreamError(ProtocolError):
    def __init__(self, message: str, *, status_code: int, body: str = "") -> None:
        super().__init__(f"{message}: HTTP {status_code}")
        self.status_code = status_code
        self.body = body


class PersistenceError(CoverflexError):
    """The token store could not be read or written."""

    def __init__(self, message: str, *, location: Optional[str] = None) -> None:
        super().__init__(message if not location else f"{message} ({location})")
        self.location = location


class TokenNotFoundError(PersistenceError):
    """No token pair has been saved, or it was deleted."""
