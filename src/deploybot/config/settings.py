"""Process-wide settings resolved from environment variables."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Mapping

from ..errors import ConfigurationError
from .catalog import Catalog, load_catalog
from .secrets import resolve_secret

RESPONSE_MODES = ("sync", "deferred")
DEFAULT_REGION = "us-central1"
DEFAULT_BRANCH = "main"
DEFAULT_TIMESTAMP_TOLERANCE = 300


def parse_allowed_users(value: str | None) -> tuple[str, ...]:
    """Split a comma-separated allowlist, dropping blanks and surrounding spaces."""

    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    signing_secret: str
    allowed_users: tuple[str, ...]
    catalog: Catalog
    function_region: str = DEFAULT_REGION
    deploy_branch: str = DEFAULT_BRANCH
    response_mode: str = "sync"
    timestamp_tolerance: int = DEFAULT_TIMESTAMP_TOLERANCE

    @property
    def deferred(self) -> bool:
        return self.response_mode == "deferred"


@dataclass(frozen=True)
class ConfigValidation:
    valid: bool
    errors: tuple[str, ...]


def _int_setting(env: Mapping[str, str], key: str, default: int) -> int:
    raw = (env.get(key) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be an integer", context={key: raw}) from exc
    if value <= 0:
        raise ConfigurationError(f"{key} must be positive", context={key: raw})
    return value


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from ``env`` (defaults to ``os.environ``).

    Missing required values do not raise here; :func:`validate_settings`
    reports them so the webhook can answer with a configuration error.
    Malformed values (bad catalog file, non-numeric tolerance) raise
    :class:`ConfigurationError`.
    """

    source = os.environ if env is None else env
    response_mode = (source.get("DEPLOYBOT_RESPONSE_MODE") or "sync").strip().lower()
    if response_mode not in RESPONSE_MODES:
        raise ConfigurationError(
            f"DEPLOYBOT_RESPONSE_MODE must be one of {', '.join(RESPONSE_MODES)}",
            context={"DEPLOYBOT_RESPONSE_MODE": response_mode},
        )

    return Settings(
        signing_secret=resolve_secret(source, "SLACK_SIGNING_SECRET") or "",
        allowed_users=parse_allowed_users(source.get("ALLOWED_USERS")),
        catalog=load_catalog(source.get("DEPLOYBOT_CATALOG"), source),
        function_region=(source.get("FUNCTION_REGION") or DEFAULT_REGION).strip(),
        deploy_branch=(source.get("DEPLOY_BRANCH") or DEFAULT_BRANCH).strip(),
        response_mode=response_mode,
        timestamp_tolerance=_int_setting(
            source, "DEPLOYBOT_TIMESTAMP_TOLERANCE", DEFAULT_TIMESTAMP_TOLERANCE
        ),
    )


def validate_settings(settings: Settings) -> ConfigValidation:
    errors: list[str] = []

    if not settings.signing_secret:
        errors.append("SLACK_SIGNING_SECRET environment variable is required")

    if not settings.allowed_users:
        errors.append(
            "ALLOWED_USERS environment variable is required (comma-separated Slack user IDs)"
        )

    for alias in settings.catalog.missing_project_ids():
        errors.append(f"Project ID for environment '{alias}' is required")

    return ConfigValidation(valid=not errors, errors=tuple(errors))


__all__ = [
    "ConfigValidation",
    "RESPONSE_MODES",
    "Settings",
    "load_settings",
    "parse_allowed_users",
    "validate_settings",
]
