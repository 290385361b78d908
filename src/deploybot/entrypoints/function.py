"""Cloud Functions (gen2) HTTP entry point for the Slack deploy bot."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from ..handler import SlashCommandHandler
from ..logging_config import configure_logging, get_logger
from ..webhooks import run_in_background

configure_logging()
LOGGER = get_logger(__name__)


@lru_cache(maxsize=1)
def get_handler() -> SlashCommandHandler:
    """Return the process-wide handler, built once per instance."""

    return SlashCommandHandler.from_env()


def deploy_bot(request: Any) -> tuple[dict[str, Any], int]:
    """Entrypoint for ``gcloud functions deploy --entry-point=deploy_bot``.

    ``request`` is the ``flask.Request`` supplied by the Functions runtime.
    The raw body is read uncached so the signature is checked against exactly
    what Slack sent.
    """

    raw_body = request.get_data(cache=False)
    result = get_handler().handle(request.method, request.headers, raw_body)
    run_in_background(result)
    return result.body, result.status


__all__ = ["deploy_bot", "get_handler"]
