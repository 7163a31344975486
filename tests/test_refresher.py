from __future__ import annotations

import pytest
import requests

from conftest import BASE_URL, FakeResponse, MemoryTokenRepository
from coverflex_client.exceptions import PersistenceError
from coverflex_client.refresher import TokenRefresher
from coverflex_client.tokens import TokenPair

RENEWED = {"data": {"access_token": "A2", "refresh_token": "R2"}}


def _refresher(http, repo) -> TokenRefresher:
    return TokenRefresher(http, repo, base_url=BASE_URL, timeout=1.0)


@pytest.mark.parametrize("status", [200, 201])
def test_refresh_success_saves_and_returns_pair(http, repo, status) -> None:
    http.route("POST", "/sessions/renew", FakeResponse(status, RENEWED))

    tokens = _refresher(http, repo).refresh_tokens("R1")

    assert tokens == TokenPair("A2", "R2")
    assert repo.get_tokens() == TokenPair("A2", "R2")
    (call,) = http.calls
    assert call.bearer == "R1"
    assert call.json is None


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(401, {"error": "expired"}),
        FakeResponse(500, text="boom"),
        FakeResponse(200, text="<html>"),
        FakeResponse(200, {"data": {"access_token": "A2", "refresh_token": ""}}),
        FakeResponse(201, {"unexpected": True}),
        requests.ConnectionError("down"),
    ],
)
def test_refresh_failures_return_empty_pair(http, repo, response) -> None:
    http.route("POST", "/sessions/renew", response)

    tokens = _refresher(http, repo).refresh_tokens("R1")

    assert not tokens
    assert tokens == TokenPair.empty()
    assert repo.saves == []


def test_refresh_without_refresh_token_makes_no_call(http, repo) -> None:
    assert not _refresher(http, repo).refresh_tokens("")
    assert http.calls == []


def test_write_back_failure_keeps_in_memory_pair(http, monkeypatch) -> None:
    repo = MemoryTokenRepository(TokenPair("stale", "R1"))

    def broken_save(access_token: str, refresh_token: str = "") -> None:
        raise PersistenceError("disk full")

    monkeypatch.setattr(repo, "save_tokens", broken_save)
    http.route("POST", "/sessions/renew", FakeResponse(201, RENEWED))

    assert _refresher(http, repo).refresh_tokens("R1") == TokenPair("A2", "R2")
