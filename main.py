"""Cloud Functions source entry point (``--entry-point=deploy_bot``)."""

from __future__ import annotations

import deploybot_bootstrap  # noqa: F401

from deploybot.entrypoints.function import deploy_bot

__all__ = ["deploy_bot"]
