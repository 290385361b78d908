"""Framework-agnostic processing of ``/deploy`` slash commands."""

from __future__ import annotations

from dataclasses import dataclass
import time
from typing import Any, Callable, Mapping, Optional, Union

from .audit import (
    AuditLogger,
    AuditRecord,
    create_denied_record,
    create_error_record,
    create_success_record,
)
from .auth import authorization_error_message, is_user_authorized
from .cloudbuild import CloudBuildTrigger
from .config.settings import Settings, load_settings, validate_settings
from .errors import BuildTriggerError, CommandParseError, ConfigurationError, ResponseDeliveryError
from .logging_config import get_correlation_id, get_logger, reset_correlation_id, set_correlation_id
from .slack.command import DeployRequest, SlashCommand, parse_deploy_command, parse_slash_command
from .slack.responses import (
    SlackResponse,
    acknowledgement_message,
    build_failed_message,
    deployment_started_message,
    ephemeral,
    in_channel,
    post_to_response_url,
    usage_message,
)
from .slack.signature import SIGNATURE_HEADER, TIMESTAMP_HEADER, verify_slack_request

LOGGER = get_logger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]
DeferredWork = Callable[[], None]


@dataclass(frozen=True)
class HandlerResult:
    """HTTP status and Slack payload, plus optional work to run after replying."""

    status: int
    body: SlackResponse
    deferred: Optional[DeferredWork] = None


def _header(headers: Mapping[str, Any] | None, key: str) -> str | None:
    if not headers:
        return None
    target = key.lower()
    for header, value in headers.items():
        if header.lower() == target and isinstance(value, str):
            return value
    return None


def _ensure_bytes(body: str | BytesLike | None) -> bytes:
    if body is None:
        return b""
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    return body.encode("utf-8")


def _aliases_from_text(text: str) -> tuple[str, str]:
    parts = (text or "").split()
    service = parts[0] if parts else "unknown"
    environment = parts[1] if len(parts) > 1 else "unknown"
    return service, environment


class SlashCommandHandler:
    """Verify, authorize and execute a ``/deploy <service> <environment>`` command.

    Every request that reaches the authorization step produces exactly one
    audit record, whether it is denied, rejected as malformed, fails to
    trigger, or succeeds.
    """

    def __init__(
        self,
        settings: Settings | None,
        *,
        builder: CloudBuildTrigger | None = None,
        audit_logger: AuditLogger | None = None,
        deliver: Callable[[str, SlackResponse], None] = post_to_response_url,
        clock: Callable[[], float] = time.time,
        monotonic: Callable[[], float] = time.monotonic,
        config_error: str | None = None,
    ) -> None:
        self.settings = settings
        self.builder = builder or CloudBuildTrigger()
        region = settings.function_region if settings else "us-central1"
        self.audit_logger = audit_logger or AuditLogger(region=region)
        self._deliver = deliver
        self._clock = clock
        self._monotonic = monotonic
        self._config_error = config_error

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None, **kwargs: Any) -> "SlashCommandHandler":
        try:
            settings = load_settings(env)
        except ConfigurationError as exc:
            LOGGER.error("Failed to load configuration", extra={"error": str(exc), **exc.context})
            return cls(None, config_error=str(exc), **kwargs)
        return cls(settings, **kwargs)

    def _configuration_errors(self) -> tuple[str, ...]:
        if self.settings is None:
            return (self._config_error or "Configuration could not be loaded",)
        return validate_settings(self.settings).errors

    def _elapsed_ms(self, started: float) -> int:
        return int((self._monotonic() - started) * 1000)

    def _audit(self, record: AuditRecord) -> None:
        self.audit_logger.write(record)

    def handle(
        self,
        method: str,
        headers: Mapping[str, Any] | None,
        body: str | BytesLike | None,
    ) -> HandlerResult:
        started = self._monotonic()

        if (method or "").upper() != "POST":
            return HandlerResult(405, ephemeral("Method not allowed"))

        settings = self.settings
        errors = self._configuration_errors()
        if settings is None or errors:
            LOGGER.error("Configuration errors", extra={"errors": list(errors)})
            return HandlerResult(500, ephemeral(":x: Bot configuration error. Please check logs."))

        raw_body = _ensure_bytes(body)
        signature = _header(headers, SIGNATURE_HEADER)
        timestamp = _header(headers, TIMESTAMP_HEADER)
        if not signature or not timestamp:
            LOGGER.warning("Slack request missing security headers")
            return HandlerResult(401, ephemeral("Missing security headers"))

        verification = verify_slack_request(
            signing_secret=settings.signing_secret,
            signature=signature,
            timestamp=timestamp,
            body=raw_body,
            now=self._clock(),
            max_age=settings.timestamp_tolerance,
        )
        if not verification.valid:
            LOGGER.warning("Signature verification failed", extra={"reason": verification.reason})
            return HandlerResult(401, ephemeral("Request verification failed"))

        command = parse_slash_command(raw_body)
        token = set_correlation_id(command.trigger_id or None)
        try:
            return self._handle_command(command, settings, started)
        finally:
            reset_correlation_id(token)

    def _handle_command(
        self, command: SlashCommand, settings: Settings, started: float
    ) -> HandlerResult:
        if not is_user_authorized(command.user_id, settings.allowed_users):
            LOGGER.warning(
                "Unauthorized deploy attempt",
                extra={"slack_user_id": command.user_id, "slack_user_name": command.user_name},
            )
            self._audit(
                create_denied_record(
                    user_id=command.user_id,
                    user_name=command.user_name,
                    reason="User not authorized",
                    duration_ms=self._elapsed_ms(started),
                )
            )
            return HandlerResult(200, ephemeral(authorization_error_message(command.user_id)))

        catalog = settings.catalog
        try:
            request = parse_deploy_command(command.text, catalog)
        except CommandParseError as exc:
            service, environment = _aliases_from_text(command.text)
            LOGGER.info(
                "Rejected deploy command",
                extra={"code": exc.code, "command_text": command.text},
            )
            self._audit(
                create_error_record(
                    user_id=command.user_id,
                    user_name=command.user_name,
                    service=service,
                    environment=environment,
                    error_message=f"Invalid command: {exc.message}",
                    duration_ms=self._elapsed_ms(started),
                )
            )
            return HandlerResult(
                200,
                ephemeral(
                    usage_message(
                        catalog.service_aliases, catalog.environment_aliases, exc.message
                    )
                ),
            )

        LOGGER.info(
            "Deploy requested",
            extra={
                "slack_user_id": command.user_id,
                "service": request.service.alias,
                "environment": request.environment.alias,
                "mode": settings.response_mode,
            },
        )

        if settings.deferred and command.response_url:
            ack = ephemeral(
                acknowledgement_message(
                    request.service.display_name, request.environment.display_name
                )
            )
            return HandlerResult(200, ack, self._deferred_work(command, request, started))

        return HandlerResult(200, self._deploy(command, request, started))

    def _deploy(
        self, command: SlashCommand, request: DeployRequest, started: float
    ) -> SlackResponse:
        service = request.service
        environment = request.environment
        branch = service.branch or (self.settings.deploy_branch if self.settings else "main")

        try:
            outcome = self.builder.trigger(environment.project_id, service.trigger_id, branch)
        except BuildTriggerError as exc:
            self._audit(
                create_error_record(
                    user_id=command.user_id,
                    user_name=command.user_name,
                    service=service.alias,
                    environment=environment.alias,
                    error_message=exc.message,
                    duration_ms=self._elapsed_ms(started),
                    project_id=environment.project_id,
                    trigger_id=service.trigger_id,
                )
            )
            return ephemeral(build_failed_message(exc.message))

        self._audit(
            create_success_record(
                user_id=command.user_id,
                user_name=command.user_name,
                service=service.alias,
                environment=environment.alias,
                project_id=environment.project_id,
                trigger_id=service.trigger_id,
                build_id=outcome.build_id,
                duration_ms=self._elapsed_ms(started),
            )
        )
        return in_channel(
            deployment_started_message(
                service_alias=service.alias,
                service_name=service.display_name,
                environment_alias=environment.alias,
                environment_name=environment.display_name,
                build_id=outcome.build_id,
                user_id=command.user_id,
                log_url=outcome.log_url,
            )
        )

    def _deferred_work(
        self, command: SlashCommand, request: DeployRequest, started: float
    ) -> DeferredWork:
        correlation_id = get_correlation_id()

        def run() -> None:
            token = set_correlation_id(correlation_id)
            try:
                try:
                    payload = self._deploy(command, request, started)
                except Exception as exc:  # background boundary, nothing awaits this task
                    LOGGER.exception("Deferred deploy failed")
                    self._audit(
                        create_error_record(
                            user_id=command.user_id,
                            user_name=command.user_name,
                            service=request.service.alias,
                            environment=request.environment.alias,
                            error_message=str(exc) or exc.__class__.__name__,
                            duration_ms=self._elapsed_ms(started),
                            project_id=request.environment.project_id,
                            trigger_id=request.service.trigger_id,
                        )
                    )
                    payload = ephemeral(build_failed_message(str(exc) or "Unexpected error"))
                try:
                    self._deliver(command.response_url, payload)
                except ResponseDeliveryError as exc:
                    LOGGER.error(
                        "Failed to deliver deferred Slack response",
                        extra={"error": exc.message, **exc.context},
                    )
            finally:
                reset_correlation_id(token)

        return run


__all__ = ["DeferredWork", "HandlerResult", "SlashCommandHandler"]
