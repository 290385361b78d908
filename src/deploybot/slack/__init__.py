"""Slack request verification, parsing and reply helpers."""

from __future__ import annotations

from .command import DeployRequest, SlashCommand, parse_deploy_command, parse_slash_command
from .responses import ephemeral, in_channel, post_to_response_url
from .signature import VerificationResult, compute_signature, verify_slack_request

__all__ = [
    "DeployRequest",
    "SlashCommand",
    "VerificationResult",
    "compute_signature",
    "ephemeral",
    "in_channel",
    "parse_deploy_command",
    "parse_slash_command",
    "post_to_response_url",
    "verify_slack_request",
]
