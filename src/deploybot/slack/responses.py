"""Slack reply payloads and delivery to ``response_url`` callbacks."""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, Iterable

import requests

from ..errors import ResponseDeliveryError
from ..logging_config import get_logger

LOGGER = get_logger(__name__)

SlackResponse = Dict[str, Any]

_RETRYABLE_STATUS = {429, 500, 502, 503, 504}
DEFAULT_TIMEOUT = 10.0
DEFAULT_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 0.5


def ephemeral(text: str) -> SlackResponse:
    """Reply visible only to the invoking user."""

    return {"response_type": "ephemeral", "text": text}


def in_channel(text: str) -> SlackResponse:
    """Reply visible to everyone in the channel."""

    return {"response_type": "in_channel", "text": text}


def usage_message(
    services: Iterable[str], environments: Iterable[str], error: str | None = None
) -> str:
    lines = [
        ":information_source: *Usage:* `/deploy <service> <environment>`",
        "",
        f"*Available services:* {', '.join(services)}",
        f"*Available environments:* {', '.join(environments)}",
        "",
        "*Example:* `/deploy backend-api staging`",
    ]
    if error:
        lines.extend(["", f"*Error:* {error}"])
    return "\n".join(lines)


def unauthorized_message(user_id: str) -> str:
    return (
        ":x: You are not authorized to trigger deployments.\n\n"
        f"Your user ID: `{user_id}`\n\n"
        "Please contact an administrator to be added to the allowlist."
    )


def build_failed_message(error: str) -> str:
    return (
        ":x: *Failed to trigger deployment*\n\n"
        f"Error: {error}\n\n"
        "Please check that the trigger exists and you have the correct permissions."
    )


def deployment_started_message(
    *,
    service_alias: str,
    service_name: str,
    environment_alias: str,
    environment_name: str,
    build_id: str,
    user_id: str,
    log_url: str,
) -> str:
    return (
        ":rocket: *Deployment triggered!*\n\n"
        f"*Service:* {service_name} (`{service_alias}`)\n"
        f"*Environment:* {environment_name} (`{environment_alias}`)\n"
        f"*Build ID:* {build_id}\n"
        f"*Triggered by:* <@{user_id}>\n\n"
        f"<{log_url}|View build logs>"
    )


def acknowledgement_message(service_name: str, environment_name: str) -> str:
    return f":hourglass_flowing_sand: Triggering deployment of *{service_name}* to *{environment_name}*..."


def _post_with_retries(
    http: requests.Session,
    url: str,
    payload: SlackResponse,
    *,
    attempts: int,
    base_delay: float,
    timeout: float,
    sleep: Callable[[float], None],
) -> None:
    attempt = 1
    while True:
        try:
            response = http.post(url, json=payload, timeout=timeout)
        except (requests.ConnectionError, requests.Timeout) as exc:
            failure: str = str(exc)
            retryable = True
        else:
            if response.status_code < 400:
                return
            failure = f"HTTP {response.status_code}: {response.text[:200]}"
            retryable = response.status_code in _RETRYABLE_STATUS

        if not retryable or attempt >= attempts:
            raise ResponseDeliveryError(
                "Failed to deliver Slack response",
                context={"attempts": attempt, "error": failure},
            )
        delay = base_delay * (2 ** (attempt - 1))
        LOGGER.warning(
            "Retrying Slack response delivery",
            extra={"attempt": attempt, "delay": round(delay, 2), "error": failure},
        )
        sleep(delay)
        attempt += 1


def post_to_response_url(
    url: str,
    payload: SlackResponse,
    *,
    session: requests.Session | None = None,
    attempts: int = DEFAULT_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
    timeout: float = DEFAULT_TIMEOUT,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """POST ``payload`` to a Slack ``response_url``.

    Connection errors and throttling or server errors are retried with
    exponential backoff. Raises :class:`ResponseDeliveryError` once attempts
    are exhausted or Slack rejects the payload. A session is opened and closed
    per call unless ``session`` is supplied.
    """

    if not url:
        raise ResponseDeliveryError("response_url is required for deferred replies")

    options = {"attempts": attempts, "base_delay": base_delay, "timeout": timeout, "sleep": sleep}
    if session is not None:
        _post_with_retries(session, url, payload, **options)
        return
    with requests.Session() as http:
        _post_with_retries(http, url, payload, **options)


__all__ = [
    "SlackResponse",
    "acknowledgement_message",
    "build_failed_message",
    "deployment_started_message",
    "ephemeral",
    "in_channel",
    "post_to_response_url",
    "unauthorized_message",
    "usage_message",
]
