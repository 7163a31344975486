"""Token pair value object and the persistence contract used by the client."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Protocol, Union

from .exceptions import PersistenceError, TokenNotFoundError

logger = logging.getLogger("coverflex-tokens")

DEFAULT_TOKEN_FILE = Path(tempfile.gettempdir()) / "coverflex_tokens.json"


@dataclass(frozen=True, repr=False)
class TokenPair:
    access_token: str
    refresh_token: str = ""

    @classmethod
    def empty(cls) -> "TokenPair":
        return cls(access_token="", refresh_token="")

    def __bool__(self) -> bool:
        return bool(self.access_token and self.refresh_token)

    def __repr__(self) -> str:
        # token values stay out of logs and tracebacks
        access = "***" if self.access_token else ""
        refresh = "***" if self.refresh_token else ""
        return f"TokenPair(access_token={access!r}, refresh_token={refresh!r})"

    def to_payload(self) -> Dict[str, str]:
        return {"access_token": self.access_token, "refresh_token": self.refresh_token}

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "TokenPair":
        return cls(
            access_token=str(payload.get("access_token") or ""),
            refresh_token=str(payload.get("refresh_token") or ""),
        )


class TokenRepository(Protocol):
    """Durable storage for exactly one token pair.

    ``get_tokens`` raises ``TokenNotFoundError`` when nothing is stored.
    ``save_tokens`` replaces the whole pair at once and ``delete_tokens`` does
    not complain when there is nothing to delete. Any other storage failure is
    reported as ``PersistenceError``.
    """

    def get_tokens(self) -> TokenPair: ...

    def save_tokens(self, access_token: str, refresh_token: str = "") -> None: ...

    def delete_tokens(self) -> None: ...


class FileTokenRepository:
    """Keeps the token pair as a single JSON document on local disk.

    Writes go to a temporary file in the same directory and are moved into
    place with ``os.replace``, so a reader sees either the old pair or the new
    one.
    """

    def __init__(self, token_file: Union[str, Path] = DEFAULT_TOKEN_FILE) -> None:
        self._token_file = Path(token_file).expanduser().resolve()
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._token_file

    def get_tokens(self) -> TokenPair:
        with self._lock:
            try:
                raw = self._token_file.read_text()
            except FileNotFoundError as exc:
                raise TokenNotFoundError("No stored tokens", location=str(self._token_file)) from exc
            except OSError as exc:
                raise PersistenceError(f"Could not read tokens: {exc}", location=str(self._token_file)) from exc

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise PersistenceError("Token file is not valid JSON", location=str(self._token_file)) from exc

        if not isinstance(payload, dict) or not payload.get("access_token"):
            raise PersistenceError("Token file has no access_token", location=str(self._token_file))
        return TokenPair.from_payload(payload)

    def save_tokens(self, access_token: str, refresh_token: str = "") -> None:
        if not access_token:
            raise ValueError("access_token must not be empty")

        pair = TokenPair(access_token=access_token, refresh_token=refresh_token or "")
        with self._lock:
            try:
                self._write_tokens_file(pair.to_payload())
            except OSError as exc:
                raise PersistenceError(f"Could not save tokens: {exc}", location=str(self._token_file)) from exc
        logger.info("Tokens saved to %s", self._token_file)

    def delete_tokens(self) -> None:
        with self._lock:
            try:
                self._token_file.unlink()
            except FileNotFoundError:
                return
            except OSError as exc:
                raise PersistenceError(f"Could not delete tokens: {exc}", location=str(self._token_file)) from exc
        logger.info("Tokens removed from %s", self._token_file)

    def _write_tokens_file(self, token_data: Dict[str, str]) -> None:
        self._token_file.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=str(self._token_file.parent), prefix=f".{self._token_file.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as handle:
                handle.write(json.dumps(token_data, indent=2))
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self._token_file)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
