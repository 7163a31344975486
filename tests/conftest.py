from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import pytest

from coverflex_client.exceptions import TokenNotFoundError
from coverflex_client.tokens import TokenPair

BASE_URL = "https://api.test/api/employee"

_NO_JSON = object()


class FakeResponse:
    def __init__(self, status_code: int, payload: Any = _NO_JSON, text: Optional[str] = None, url: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.url = url
        if text is not None:
            self.text = text
        elif payload is _NO_JSON:
            self.text = ""
        else:
            self.text = json.dumps(payload)

    def json(self) -> Any:
        if self._payload is _NO_JSON:
            raise ValueError("no JSON body")
        return self._payload


@dataclass
class Call:
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    params: Optional[Dict[str, Any]] = None
    json: Any = None

    @property
    def path(self) -> str:
        return self.url[len(BASE_URL):]

    @property
    def bearer(self) -> str:
        return self.headers.get("Authorization", "").replace("Bearer ", "", 1)


class FakeHttp:
    """Stands in for requests.Session; routes (method, path) to scripted handlers.

    A route registered with a list of responses returns them in order and
    keeps repeating the last one.
    """

    def __init__(self) -> None:
        self.calls: List[Call] = []
        self._routes: Dict[tuple, Callable[[Call], Any]] = {}
        self._lock = threading.Lock()

    def route(self, method: str, path: str, *responses: Any, handler: Optional[Callable[[Call], Any]] = None) -> None:
        if handler is None:
            queue = list(responses)

            def handler(call: Call) -> Any:
                with self._lock:
                    return queue.pop(0) if len(queue) > 1 else queue[0]

        self._routes[(method, path)] = handler

    def request(self, method: str, url: str, *, timeout: float = None, headers=None, params=None, json=None):
        call = Call(method=method, url=url, headers=dict(headers or {}), params=params, json=json)
        with self._lock:
            self.calls.append(call)
        result = self._routes[(method, call.path)](call)
        if isinstance(result, BaseException):
            raise result
        result.url = url
        return result

    def calls_to(self, method: str, path: str) -> List[Call]:
        return [c for c in self.calls if c.method == method and c.path == path]


class MemoryTokenRepository:
    def __init__(self, pair: Optional[TokenPair] = None) -> None:
        self._pair = pair
        self._lock = threading.Lock()
        self.saves: List[TokenPair] = []
        self.deletes = 0

    def get_tokens(self) -> TokenPair:
        with self._lock:
            if self._pair is None:
                raise TokenNotFoundError("No stored tokens")
            return self._pair

    def save_tokens(self, access_token: str, refresh_token: str = "") -> None:
        if not access_token:
            raise ValueError("access_token must not be empty")
        with self._lock:
            self._pair = TokenPair(access_token, refresh_token)
            self.saves.append(self._pair)

    def delete_tokens(self) -> None:
        with self._lock:
            self._pair = None
            self.deletes += 1


@pytest.fixture
def http() -> FakeHttp:
    return FakeHttp()


@pytest.fixture
def repo() -> MemoryTokenRepository:
    return MemoryTokenRepository(TokenPair("stale", "R1"))


@pytest.fixture
def empty_repo() -> MemoryTokenRepository:
    return MemoryTokenRepository()
