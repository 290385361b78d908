"""Google Cloud Build trigger client."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from google.api_core import exceptions as core_exceptions
from google.cloud.devtools import cloudbuild_v1

from .errors import BuildTriggerError
from .logging_config import get_logger

LOGGER = get_logger(__name__)

INVALID_RESPONSE = "INVALID_RESPONSE"
TRIGGER_NOT_FOUND = "TRIGGER_NOT_FOUND"
PERMISSION_DENIED = "PERMISSION_DENIED"
UNKNOWN_ERROR = "UNKNOWN_ERROR"

LOG_URL_TEMPLATE = "https://console.cloud.google.com/cloud-build/builds/{build_id}?project={project_id}"


@dataclass(frozen=True)
class BuildOutcome:
    build_id: str
    log_url: str
    project_id: str


def build_log_url(build_id: str, project_id: str) -> str:
    return LOG_URL_TEMPLATE.format(build_id=build_id, project_id=project_id)


def _extract_build_id(operation: Any) -> str | None:
    metadata = getattr(operation, "metadata", None)
    build = getattr(metadata, "build", None) if metadata is not None else None
    build_id = getattr(build, "id", None) if build is not None else None
    if isinstance(build_id, str) and build_id:
        return build_id
    return None


def to_build_error(error: BaseException) -> BuildTriggerError:
    """Map a Cloud Build client failure onto a typed :class:`BuildTriggerError`."""

    text = str(error)
    if isinstance(error, core_exceptions.NotFound) or "NOT_FOUND" in text or "404" in text:
        return BuildTriggerError(
            TRIGGER_NOT_FOUND, "Cloud Build trigger not found", original_error=error
        )
    if (
        isinstance(error, (core_exceptions.PermissionDenied, core_exceptions.Forbidden))
        or "PERMISSION_DENIED" in text
        or "403" in text
    ):
        return BuildTriggerError(
            PERMISSION_DENIED, "Permission denied to trigger build", original_error=error
        )
    return BuildTriggerError(UNKNOWN_ERROR, text or error.__class__.__name__, original_error=error)


@lru_cache(maxsize=None)
def _default_client() -> cloudbuild_v1.CloudBuildClient:  # pragma: no cover - needs credentials
    return cloudbuild_v1.CloudBuildClient()


class CloudBuildTrigger:
    """Start Cloud Build triggers without waiting for the build to finish."""

    def __init__(self, client: Any | None = None) -> None:
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = _default_client()
        return self._client

    def trigger(self, project_id: str, trigger_id: str, branch: str = "main") -> BuildOutcome:
        try:
            operation = self.client.run_build_trigger(
                project_id=project_id,
                trigger_id=trigger_id,
                source=cloudbuild_v1.RepoSource(branch_name=branch),
            )
        except Exception as exc:
            error = to_build_error(exc)
            LOGGER.error(
                "Cloud Build trigger failed",
                extra={
                    "project_id": project_id,
                    "trigger_id": trigger_id,
                    "code": error.code,
                    "error": str(exc),
                },
            )
            raise error from exc

        build_id = _extract_build_id(operation)
        if build_id is None:
            LOGGER.error(
                "Cloud Build returned operation without build metadata",
                extra={"project_id": project_id, "trigger_id": trigger_id},
            )
            raise BuildTriggerError(
                INVALID_RESPONSE,
                "Invalid operation metadata from Cloud Build API",
                context={"project_id": project_id, "trigger_id": trigger_id},
            )

        LOGGER.info(
            "Cloud Build trigger started",
            extra={"project_id": project_id, "trigger_id": trigger_id, "build_id": build_id},
        )
        return BuildOutcome(
            build_id=build_id,
            log_url=build_log_url(build_id, project_id),
            project_id=project_id,
        )


def trigger_build(project_id: str, trigger_id: str, branch: str = "main") -> BuildOutcome:
    """Run ``trigger_id`` in ``project_id`` with the process-wide client."""

    return CloudBuildTrigger().trigger(project_id, trigger_id, branch)


__all__ = [
    "BuildOutcome",
    "CloudBuildTrigger",
    "INVALID_RESPONSE",
    "PERMISSION_DENIED",
    "TRIGGER_NOT_FOUND",
    "UNKNOWN_ERROR",
    "build_log_url",
    "to_build_error",
    "trigger_build",
]
