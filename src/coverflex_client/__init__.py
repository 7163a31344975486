"""Coverflex employee API client with OTP login and token refresh."""

from .client import CoverflexClient
from .exceptions import (
    CoverflexError,
    InvalidCredentials,
    PersistenceError,
    ProtocolError,
    TokenNotFoundError,
    TransportError,
    Unauthenticated,
    UpstreamError,
)
from .factory import Coverflex, build
from .refresher import TokenRefresher
from .requester import AuthenticatedRequester, RefreshCoordinator
from .session import AuthSession
from .tokens import FileTokenRepository, TokenPair, TokenRepository

__all__ = [
    "AuthSession",
    "AuthenticatedRequester",
    "Coverflex",
    "CoverflexClient",
    "CoverflexError",
    "FileTokenRepository",
    "InvalidCredentials",
    "PersistenceError",
    "ProtocolError",
    "RefreshCoordinator",
    "TokenNotFoundError",
    "TokenPair",
    "TokenRefresher",
    "TokenRepository",
    "TransportError",
    "Unauthenticated",
    "UpstreamError",
    "build",
]
