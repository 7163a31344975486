"""Builds the client components from Settings.

Collaborators are created once here and injected; nothing in the package keeps
module-level HTTP sessions or token stores.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import requests

from .client import CoverflexClient
from .config_loader import Settings, load_config
from .refresher import TokenRefresher
from .requester import AuthenticatedRequester, RefreshCoordinator
from .session import AuthSession
from .tokens import FileTokenRepository, TokenRepository


@dataclass
class Coverflex:
    settings: Settings
    repository: TokenRepository
    refresher: TokenRefresher
    auth: AuthSession
    client: CoverflexClient


def build_repository(settings: Settings) -> TokenRepository:
    if settings.TOKEN_STORE == "gcp":
        # only needed for this backend
        from .gcp_secret_storage import GCPSecretStorage, GCPSecretTokenRepository

        if not settings.GCP_PROJECT_ID:
            raise ValueError("GCP_PROJECT_ID is required when TOKEN_STORE=gcp")
        return GCPSecretTokenRepository(
            GCPSecretStorage(settings.GCP_PROJECT_ID),
            settings.COVERFLEX_TOKENS_SECRET_NAME,
        )
    return FileTokenRepository(settings.COVERFLEX_TOKEN_FILE)


def build(
    settings: Optional[Settings] = None,
    *,
    http: Optional[requests.Session] = None,
    repository: Optional[TokenRepository] = None,
) -> Coverflex:
    settings = settings or load_config()
    http = http or requests.Session()
    repository = repository or build_repository(settings)
    timeout = settings.HTTP_TIMEOUT_SEC

    refresher = TokenRefresher(http, repository, base_url=settings.base_url, timeout=timeout)
    requester = AuthenticatedRequester(
        http, repository, RefreshCoordinator(refresher, repository), timeout=timeout
    )
    return Coverflex(
        settings=settings,
        repository=repository,
        refresher=refresher,
        auth=AuthSession(http, repository, base_url=settings.base_url, timeout=timeout),
        client=CoverflexClient(requester, repository, base_url=settings.base_url),
    )
