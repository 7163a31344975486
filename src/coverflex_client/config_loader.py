"""Settings for the Coverflex client.

``load_config`` always builds a fresh ``Settings`` so that edits to the
environment or the ``.env`` file are picked up on each call.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .tokens import DEFAULT_TOKEN_FILE

DEFAULT_BASE_URL = "https://menhir-api.coverflex.com/api/employee"


def _find_env_file() -> Optional[str]:
    cur = Path(__file__).resolve()
    for parent in [cur.parent, *cur.parents]:
        candidate = parent / ".env"
        if candidate.exists():
            return str(candidate)
    return None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_find_env_file() or ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # remote API
    COVERFLEX_BASE_URL: str = DEFAULT_BASE_URL
    HTTP_TIMEOUT_SEC: float = 15.0

    # token store
    TOKEN_STORE: Literal["local", "gcp"] = "local"
    COVERFLEX_TOKEN_FILE: Path = DEFAULT_TOKEN_FILE
    GCP_PROJECT_ID: Optional[str] = None
    COVERFLEX_TOKENS_SECRET_NAME: str = "coverflex-tokens"

    # credentials, only read by the CLI
    COVERFLEX_USERNAME: Optional[str] = None
    COVERFLEX_PASSWORD: Optional[str] = None

    @property
    def base_url(self) -> str:
        return self.COVERFLEX_BASE_URL.rstrip("/")


def load_config(
    *,
    env_file: Optional[str] = None,
    token_store: Optional[str] = None,
    gcp_project_id: Optional[str] = None,
) -> Settings:
    """Build a new Settings instance, applying explicit overrides last."""

    overrides = {}
    if token_store:
        overrides["TOKEN_STORE"] = token_store
    if gcp_project_id:
        overrides["GCP_PROJECT_ID"] = gcp_project_id

    if env_file:
        return Settings(_env_file=env_file, **overrides)
    return Settings(**overrides)
