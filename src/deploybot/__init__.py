"""Slack slash command bot that triggers Google Cloud Build deployments."""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
