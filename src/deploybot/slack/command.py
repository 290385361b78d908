"""Parse Slack slash command payloads into deterministic models."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Union
from urllib.parse import parse_qs

from ..config.catalog import Catalog, EnvironmentDescriptor, ServiceDescriptor
from ..errors import CommandParseError

BytesLike = Union[bytes, bytearray, memoryview]

MISSING_SERVICE = "MISSING_SERVICE"
MISSING_ENV = "MISSING_ENV"
INVALID_SERVICE = "INVALID_SERVICE"
INVALID_ENV = "INVALID_ENV"


@dataclass(frozen=True)
class SlashCommand:
    """Form fields Slack posts for a slash command invocation."""

    token: str = ""
    team_id: str = ""
    team_domain: str = ""
    channel_id: str = ""
    channel_name: str = ""
    user_id: str = ""
    user_name: str = ""
    command: str = ""
    text: str = ""
    response_url: str = ""
    trigger_id: str = ""


@dataclass(frozen=True)
class DeployRequest:
    service: ServiceDescriptor
    environment: EnvironmentDescriptor


_FIELD_NAMES = tuple(field.name for field in fields(SlashCommand))


def parse_slash_command(body: str | BytesLike) -> SlashCommand:
    """Return a :class:`SlashCommand` from a form-encoded body.

    Unknown keys are ignored, missing keys become empty strings and the first
    value wins when a key repeats.
    """

    if isinstance(body, (bytes, bytearray, memoryview)):
        text = bytes(body).decode("utf-8", errors="replace")
    else:
        text = body
    parsed = parse_qs(text, keep_blank_values=True)
    values = {name: parsed[name][0] for name in _FIELD_NAMES if parsed.get(name)}
    return SlashCommand(**values)


def parse_deploy_command(text: str, catalog: Catalog) -> DeployRequest:
    """Resolve ``<service> <environment>`` against ``catalog``.

    Tokens after the environment are ignored. Raises
    :class:`CommandParseError` with one of ``MISSING_SERVICE``,
    ``MISSING_ENV``, ``INVALID_SERVICE`` or ``INVALID_ENV``.
    """

    parts = (text or "").split()
    service_alias = parts[0] if parts else ""
    environment_alias = parts[1] if len(parts) > 1 else ""

    if not service_alias:
        raise CommandParseError(MISSING_SERVICE, "Service is required")
    if not environment_alias:
        raise CommandParseError(MISSING_ENV, "Environment is required")

    service = catalog.service(service_alias)
    if service is None:
        raise CommandParseError(INVALID_SERVICE, f"Unknown service: {service_alias}")

    environment = catalog.environment(environment_alias)
    if environment is None:
        raise CommandParseError(INVALID_ENV, f"Unknown environment: {environment_alias}")

    return DeployRequest(service=service, environment=environment)


__all__ = [
    "DeployRequest",
    "INVALID_ENV",
    "INVALID_SERVICE",
    "MISSING_ENV",
    "MISSING_SERVICE",
    "SlashCommand",
    "parse_deploy_command",
    "parse_slash_command",
]
