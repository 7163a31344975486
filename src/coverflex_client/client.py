from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .exceptions import PersistenceError
from .models import (
    Benefit,
    BenefitsResponse,
    Card,
    CardsResponse,
    CompanyResponse,
    CompensationResponse,
    CompensationSummary,
    FamilyMember,
    FamilyResponse,
)
from .requester import AuthenticatedRequester
from .tokens import TokenRepository

logger = logging.getLogger("coverflex-client")


class CoverflexClient:
    """Employee resources of the Coverflex API.

    Token handling and retries live in ``AuthenticatedRequester``; each method
    here only builds a URL and picks the payload shape.
    """

    def __init__(self, requester: AuthenticatedRequester, repository: TokenRepository, *, base_url: str) -> None:
        self._requester = requester
        self._repository = repository
        self._base_url = base_url.rstrip("/")

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    def is_logged_in(self) -> bool:
        try:
            self._repository.get_tokens()
        except PersistenceError:
            return False
        return True

    def get_benefits(self) -> List[Benefit]:
        logger.info("Fetching employee benefits...")
        return self._requester.get(self._url("/benefits"), BenefitsResponse).benefits

    def get_cards(self) -> List[Card]:
        logger.info("Fetching employee cards...")
        return self._requester.get(self._url("/cards"), CardsResponse).cards

    def get_company(self) -> CompanyResponse:
        logger.info("Fetching employee company information...")
        return self._requester.get(self._url("/company"), CompanyResponse)

    def get_compensation(self) -> CompensationSummary:
        logger.info("Fetching employee compensation...")
        return self._requester.get(self._url("/compensation"), CompensationResponse).summary

    def get_family(self) -> List[FamilyMember]:
        logger.info("Fetching employee family information...")
        return self._requester.get(self._url("/family"), FamilyResponse).members

    def get_operations(
        self,
        *,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
        filter_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Fetch one page of operations; the payload is returned as decoded JSON."""

        params: Dict[str, Any] = {}
        if page and page > 0:
            params["page"] = page
        if per_page and per_page > 0:
            params["per_page"] = per_page
        if filter_type:
            params["filters[type]"] = filter_type

        logger.info("Fetching operations...")
        return self._requester.get(self._url("/operations"), params=params or None)
