"""Google Secret Manager backed token store.

The whole token pair lives in one secret as a JSON document; each save adds a
new version and disables the older ones so only the latest pair is served.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from google.api_core import exceptions as gcp_exceptions
from google.auth import exceptions as google_auth_exceptions
from google.cloud import secretmanager

from .exceptions import PersistenceError, TokenNotFoundError
from .tokens import TokenPair

logger = logging.getLogger("coverflex-gcp-storage")


class GCPSecretStorage:
    """Create/update, read and delete a secret in GCP Secret Manager."""

    def __init__(self, project_id: str, client: Optional[secretmanager.SecretManagerServiceClient] = None) -> None:
        if not project_id:
            raise ValueError("project_id is required to talk to Secret Manager")
        self._project_id = project_id
        try:
            self._client = client or secretmanager.SecretManagerServiceClient()
        except google_auth_exceptions.GoogleAuthError as exc:
            raise PersistenceError(f"No usable GCP credentials: {exc}", location=project_id) from exc

    def _secret_path(self, secret_name: str) -> str:
        return self._client.secret_path(self._project_id, secret_name)

    def _ensure_secret(self, secret_name: str) -> None:
        try:
            self._client.get_secret(name=self._secret_path(secret_name))
        except gcp_exceptions.NotFound:
            self._client.create_secret(
                parent=f"projects/{self._project_id}",
                secret_id=secret_name,
                secret=secretmanager.Secret(
                    replication=secretmanager.Replication(
                        automatic=secretmanager.Replication.Automatic()
                    )
                ),
            )

    def write_secret(self, secret_name: str, payload: bytes) -> str:
        self._ensure_secret(secret_name)
        version = self._client.add_secret_version(
            parent=self._secret_path(secret_name),
            payload=secretmanager.SecretPayload(data=payload),
        )
        self._disable_prior_versions(secret_name, keep_version=version.name)
        return version.name

    def _disable_prior_versions(self, secret_name: str, keep_version: str) -> None:
        try:
            versions = self._client.list_secret_versions(request={"parent": self._secret_path(secret_name)})
        except gcp_exceptions.GoogleAPICallError as exc:
            logger.warning("Could not list versions of %s: %s", secret_name, exc)
            return

        for version in versions:
            if version.name == keep_version or version.state != secretmanager.SecretVersion.State.ENABLED:
                continue
            try:
                self._client.disable_secret_version(name=version.name)
            except gcp_exceptions.GoogleAPICallError as exc:
                logger.warning("Could not disable %s: %s", version.name, exc)

    def read_secret(self, secret_name: str) -> Optional[str]:
        """Return the latest version of a secret, or None if it does not exist."""

        try:
            response = self._client.access_secret_version(
                name=f"{self._secret_path(secret_name)}/versions/latest"
            )
        except (gcp_exceptions.NotFound, gcp_exceptions.FailedPrecondition):
            # FailedPrecondition: the secret exists but every version is disabled
            return None
        return response.payload.data.decode("utf-8")

    def delete_secret(self, secret_name: str) -> None:
        try:
            self._client.delete_secret(name=self._secret_path(secret_name))
        except gcp_exceptions.NotFound:
            return


class GCPSecretTokenRepository:
    """TokenRepository storing the pair in a single Secret Manager secret."""

    def __init__(self, storage: GCPSecretStorage, secret_name: str) -> None:
        if not secret_name:
            raise ValueError("secret_name is required")
        self._storage = storage
        self._secret_name = secret_name

    def get_tokens(self) -> TokenPair:
        try:
            payload = self._storage.read_secret(self._secret_name)
        except gcp_exceptions.GoogleAPICallError as exc:
            raise PersistenceError(f"Could not read tokens: {exc}", location=self._secret_name) from exc
        if not payload:
            raise TokenNotFoundError("No stored tokens", location=self._secret_name)

        try:
            data = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise PersistenceError("Secret is not valid JSON", location=self._secret_name) from exc
        if not isinstance(data, dict) or not data.get("access_token"):
            raise PersistenceError("Secret has no access_token", location=self._secret_name)
        return TokenPair.from_payload(data)

    def save_tokens(self, access_token: str, refresh_token: str = "") -> None:
        if not access_token:
            raise ValueError("access_token must not be empty")
        pair = TokenPair(access_token=access_token, refresh_token=refresh_token or "")
        try:
            self._storage.write_secret(
                self._secret_name, json.dumps(pair.to_payload(), indent=2).encode("utf-8")
            )
        except gcp_exceptions.GoogleAPICallError as exc:
            raise PersistenceError(f"Could not save tokens: {exc}", location=self._secret_name) from exc
        logger.info("Tokens saved in secret %s", self._secret_name)

    def delete_tokens(self) -> None:
        try:
            self._storage.delete_secret(self._secret_name)
        except gcp_exceptions.GoogleAPICallError as exc:
            raise PersistenceError(f"Could not delete tokens: {exc}", location=self._secret_name) from exc
        logger.info("Secret %s deleted", self._secret_name)
