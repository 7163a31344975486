from __future__ import annotations

from typing import Any, Dict, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from .exceptions import ProtocolError, TransportError

ACCEPT_JSON = "application/json, text/plain, */*"

ModelT = TypeVar("ModelT", bound=BaseModel)


def bearer(token: str) -> Dict[str, str]:
    return {"accept": ACCEPT_JSON, "Authorization": f"Bearer {token}"}


def send(http: requests.Session, method: str, url: str, *, timeout: float, **kwargs: Any) -> requests.Response:
    """Issue one request; anything that is not an HTTP response becomes TransportError."""

    try:
        return http.request(method, url, timeout=timeout, **kwargs)
    except requests.RequestException as exc:
        raise TransportError(f"{method} {url} failed: {exc}") from exc


def decode(response: requests.Response, target: Optional[Type[ModelT]] = None) -> Any:
    try:
        payload = response.json()
    except ValueError as exc:
        raise ProtocolError(f"Response from {response.url} is not valid JSON") from exc
    if target is None:
        return payload
    try:
        return target.model_validate(payload)
    except ValidationError as exc:
        raise ProtocolError(f"Unexpected payload from {response.url}: {exc}") from exc
