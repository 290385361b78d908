"""Audit records for deploy attempts, written to Google Cloud Logging."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

from google.cloud import logging as gcp_logging
from google.cloud.logging_v2.resource import Resource

from .logging_config import get_logger

LOGGER = get_logger(__name__)

AUDIT_LOG_NAME = "slack-deploy-bot-audit"
FUNCTION_NAME = "slack-deploy-bot"

STATUS_SUCCESS = "SUCCESS"
STATUS_DENIED = "DENIED"
STATUS_ERROR = "ERROR"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class AuditRecord:
    timestamp: str
    user_id: str
    user_name: str
    service: str
    environment: str
    duration_ms: int
    status: str

    def to_dict(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}

    @property
    def severity(self) -> str:
        return "INFO" if self.status == STATUS_SUCCESS else "WARNING"


@dataclass(frozen=True)
class SuccessRecord(AuditRecord):
    project_id: str = ""
    trigger_id: str = ""
    build_id: str = ""


@dataclass(frozen=True)
class DeniedRecord(AuditRecord):
    reason: str = ""


@dataclass(frozen=True)
class ErrorRecord(AuditRecord):
    error_message: str = ""
    project_id: Optional[str] = None
    trigger_id: Optional[str] = None


def create_success_record(
    *,
    user_id: str,
    user_name: str,
    service: str,
    environment: str,
    project_id: str,
    trigger_id: str,
    build_id: str,
    duration_ms: int,
) -> SuccessRecord:
    return SuccessRecord(
        timestamp=_utc_now(),
        user_id=user_id,
        user_name=user_name,
        service=service,
        environment=environment,
        duration_ms=duration_ms,
        status=STATUS_SUCCESS,
        project_id=project_id,
        trigger_id=trigger_id,
        build_id=build_id,
    )


def create_denied_record(
    *,
    user_id: str,
    user_name: str,
    reason: str,
    duration_ms: int,
    service: str = "unknown",
    environment: str = "unknown",
) -> DeniedRecord:
    return DeniedRecord(
        timestamp=_utc_now(),
        user_id=user_id,
        user_name=user_name,
        service=service,
        environment=environment,
        duration_ms=duration_ms,
        status=STATUS_DENIED,
        reason=reason,
    )


def create_error_record(
    *,
    user_id: str,
    user_name: str,
    service: str,
    environment: str,
    error_message: str,
    duration_ms: int,
    project_id: str | None = None,
    trigger_id: str | None = None,
) -> ErrorRecord:
    return ErrorRecord(
        timestamp=_utc_now(),
        user_id=user_id,
        user_name=user_name,
        service=service,
        environment=environment,
        duration_ms=duration_ms,
        status=STATUS_ERROR,
        error_message=error_message,
        project_id=project_id,
        trigger_id=trigger_id,
    )


@lru_cache(maxsize=None)
def _default_logger() -> Any:  # pragma: no cover - needs credentials
    return gcp_logging.Client().logger(AUDIT_LOG_NAME)


class AuditLogger:
    """Write one structured Cloud Logging entry per audit record.

    Sink failures are reported through the application logger together with
    the record so the request itself never fails on audit delivery.
    """

    def __init__(self, *, region: str = "us-central1", cloud_logger: Any | None = None) -> None:
        self.region = region
        self._cloud_logger = cloud_logger

    def _resource(self) -> Resource:
        return Resource(
            type="cloud_function",
            labels={"function_name": FUNCTION_NAME, "region": self.region},
        )

    def write(self, record: AuditRecord) -> bool:
        payload = record.to_dict()
        labels = {
            "service": record.service,
            "environment": record.environment,
            "status": record.status,
            "user_id": record.user_id,
        }
        try:
            cloud_logger = self._cloud_logger or _default_logger()
            cloud_logger.log_struct(
                payload,
                severity=record.severity,
                labels=labels,
                resource=self._resource(),
            )
        except Exception as exc:  # any sink failure falls back to the application log
            LOGGER.error(
                "Failed to write audit log",
                extra={"error": str(exc), "audit_event": payload},
            )
            return False
        LOGGER.info(
            "Audit record written",
            extra={"status": record.status, "audit_user_id": record.user_id},
        )
        return True


__all__ = [
    "AUDIT_LOG_NAME",
    "AuditLogger",
    "AuditRecord",
    "DeniedRecord",
    "ErrorRecord",
    "STATUS_DENIED",
    "STATUS_ERROR",
    "STATUS_SUCCESS",
    "SuccessRecord",
    "create_denied_record",
    "create_error_record",
    "create_success_record",
]
