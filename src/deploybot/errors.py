"""Application specific exception hierarchy."""

from __future__ import annotations

from typing import Any


class DeployBotError(RuntimeError):
    """Base exception that carries structured context."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}


class ConfigurationError(DeployBotError):
    """Raised when settings or the deploy catalog cannot be loaded."""


class CommandParseError(DeployBotError):
    """Raised when slash command text does not name a known service and environment."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message, context={"code": code})
        self.code = code


class BuildTriggerError(DeployBotError):
    """Raised when Cloud Build refuses or fails to start a trigger."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        original_error: BaseException | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context={"code": code, **(context or {})})
        self.code = code
        self.original_error = original_error


class ResponseDeliveryError(DeployBotError):
    """Raised when a deferred reply cannot be posted to Slack."""


__all__ = [
    "DeployBotError",
    "ConfigurationError",
    "CommandParseError",
    "BuildTriggerError",
    "ResponseDeliveryError",
]
