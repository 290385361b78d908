"""Helpers for loading configuration secrets from Google Secret Manager."""

from __future__ import annotations

from functools import lru_cache
from typing import Mapping, Optional

from google.api_core.exceptions import GoogleAPIError
from google.cloud import secretmanager

from ..logging_config import get_logger
from ..utils.logging import safe_log_kv

LOGGER = get_logger(__name__)


@lru_cache(maxsize=None)
def _client() -> secretmanager.SecretManagerServiceClient:  # pragma: no cover - exercised via get_secret
    return secretmanager.SecretManagerServiceClient()


def _version_name(name: str) -> str:
    if "/versions/" in name:
        return name
    return f"{name.rstrip('/')}/versions/latest"


@lru_cache(maxsize=None)
def get_secret(name: str) -> Optional[str]:
    """Return the decoded payload for the secret resource ``name``.

    ``name`` is either a full version resource
    (``projects/p/secrets/s/versions/3``) or a secret resource, in which case
    the ``latest`` version is read. ``None`` is returned when the secret cannot
    be resolved.
    """

    if not name:
        raise ValueError("Secret name must be provided")

    try:
        client = _client()
    except Exception as exc:
        LOGGER.error("Secret Manager client unavailable", extra={"error": str(exc)})
        return None

    version = _version_name(name)
    try:
        response = client.access_secret_version(request={"name": version})
    except GoogleAPIError as exc:
        LOGGER.error(
            "Failed to resolve secret",
            extra=safe_log_kv(secret_resource=version, error=str(exc)),
        )
        return None

    data = response.payload.data
    if not data:
        return None
    return data.decode("utf-8").strip() or None


def resolve_secret(env: Mapping[str, str], env_var: str) -> Optional[str]:
    """Return ``env[env_var]`` or the Secret Manager value named by ``<env_var>_NAME``."""

    direct = (env.get(env_var) or "").strip()
    if direct:
        return direct
    resource = (env.get(f"{env_var}_NAME") or "").strip()
    if not resource:
        return None
    return get_secret(resource)


__all__ = ["get_secret", "resolve_secret"]
