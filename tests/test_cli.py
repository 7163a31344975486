from __future__ import annotations

import json

import pytest
from google.auth import exceptions as google_auth_exceptions

from conftest import BASE_URL, FakeHttp, FakeResponse, MemoryTokenRepository
from coverflex_client import cli, gcp_secret_storage
from coverflex_client.factory import build
from coverflex_client.tokens import TokenPair


@pytest.fixture
def wire(monkeypatch: pytest.MonkeyPatch, tmp_path):
    monkeypatch.setenv("COVERFLEX_BASE_URL", BASE_URL)
    monkeypatch.delenv("COVERFLEX_USERNAME", raising=False)
    monkeypatch.delenv("COVERFLEX_PASSWORD", raising=False)
    http = FakeHttp()

    def install(repo: MemoryTokenRepository) -> FakeHttp:
        monkeypatch.setattr(cli, "build", lambda settings: build(settings, http=http, repository=repo))
        return http

    return install


def test_status(wire, capsys) -> None:
    wire(MemoryTokenRepository(TokenPair("A", "R")))
    cli.main(["status"])
    assert json.loads(capsys.readouterr().out) == {"logged_in": True}


def test_login_requests_otp(wire, capsys) -> None:
    http = wire(MemoryTokenRepository())
    http.route("POST", "/sessions", FakeResponse(202, {"phone_last_digits": "1234"}))

    cli.main(["login", "--user", "a@b.com", "--pass", "pw"])

    assert "...1234" in capsys.readouterr().out


def test_login_with_otp_stores_tokens(wire) -> None:
    repo = MemoryTokenRepository()
    http = wire(repo)
    http.route("POST", "/sessions", FakeResponse(201, {"token": "T", "refresh_token": "R"}))
    http.route("POST", "/sessions/trust-user-agent", FakeResponse(201, {"token": "T2", "refresh_token": "R2"}))

    cli.main(["login", "--user", "a@b.com", "--pass", "pw", "--otp", "000000"])

    assert repo.get_tokens() == TokenPair("T2", "R2")


def test_login_when_already_logged_in_is_noop(wire) -> None:
    http = wire(MemoryTokenRepository(TokenPair("A", "R")))
    cli.main(["login", "--user", "a@b.com", "--pass", "pw"])
    assert http.calls == []


def test_login_without_credentials_exits(wire) -> None:
    wire(MemoryTokenRepository())
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["login"])
    assert exc_info.value.code == 1


def test_fetch_single_resource(wire, capsys) -> None:
    http = wire(MemoryTokenRepository(TokenPair("A", "R")))
    http.route("GET", "/family", FakeResponse(200, {"members": [{"id": "f1", "full_name": "Ana"}]}))

    cli.main(["fetch", "family"])

    out = json.loads(capsys.readouterr().out)
    assert out["family"][0]["full_name"] == "Ana"


def test_fetch_logged_out_exits(wire) -> None:
    http = wire(MemoryTokenRepository())
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["fetch", "cards"])
    assert exc_info.value.code == 1
    assert http.calls == []


def test_force_refresh_fetches_operations(wire, capsys) -> None:
    repo = MemoryTokenRepository(TokenPair("A", "R"))
    http = wire(repo)
    http.route("POST", "/sessions/renew", FakeResponse(200, {"data": {"access_token": "A2", "refresh_token": "R2"}}))
    http.route("GET", "/operations", FakeResponse(200, {"operations": []}))

    cli.main(["login", "--force-refresh"])

    assert repo.get_tokens() == TokenPair("A2", "R2")
    assert http.calls_to("GET", "/operations")[0].bearer == "A2"
    assert json.loads(capsys.readouterr().out) == {"operations": {"operations": []}}


def test_gcp_store_without_project_exits(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GCP_PROJECT_ID", raising=False)
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["status", "--token-store", "gcp"])
    assert exc_info.value.code == 1


def test_gcp_store_without_credentials_exits(monkeypatch: pytest.MonkeyPatch) -> None:
    def no_credentials():
        raise google_auth_exceptions.DefaultCredentialsError("no ADC")

    monkeypatch.setattr(gcp_secret_storage.secretmanager, "SecretManagerServiceClient", no_credentials)
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["fetch", "--token-store", "gcp", "--gcp-project-id", "proj"])
    assert exc_info.value.code == 1
