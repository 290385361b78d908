"""Shared pytest fixtures for deploy bot tests."""

from __future__ import annotations

import socket
from typing import Any, Callable, Dict, List

import pytest

from deploybot.audit import AuditLogger
from deploybot.cloudbuild import CloudBuildTrigger
from deploybot.config.settings import Settings, load_settings
from deploybot.handler import SlashCommandHandler
from tests.helpers.fakes import FakeCloudBuildClient, FakeCloudLogger
from tests.helpers.slack_payloads import NOW, SIGNING_SECRET

_ENV_KEYS = (
    "SLACK_SIGNING_SECRET",
    "SLACK_SIGNING_SECRET_NAME",
    "ALLOWED_USERS",
    "STAGING_PROJECT_ID",
    "PROD_PROJECT_ID",
    "FUNCTION_REGION",
    "DEPLOY_BRANCH",
    "DEPLOYBOT_CATALOG",
    "DEPLOYBOT_RESPONSE_MODE",
    "DEPLOYBOT_TIMESTAMP_TOLERANCE",
    "DEPLOYBOT_LOG_JSON",
    "DEPLOYBOT_LOG_LEVEL",
)


@pytest.fixture(scope="session", autouse=True)
def block_network() -> None:
    """Prevent outbound connections during the entire test session."""

    original_connect = socket.socket.connect
    original_connect_ex = socket.socket.connect_ex
    original_create_connection = socket.create_connection

    def _guard(*args: object, **kwargs: object) -> Any:
        raise RuntimeError("Network access is disabled during tests.")

    socket.socket.connect = _guard  # type: ignore[assignment]
    socket.socket.connect_ex = _guard  # type: ignore[assignment]
    socket.create_connection = _guard  # type: ignore[assignment]

    try:
        yield
    finally:
        socket.socket.connect = original_connect  # type: ignore[assignment]
        socket.socket.connect_ex = original_connect_ex  # type: ignore[assignment]
        socket.create_connection = original_create_connection


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's shell configuration out of the tests."""

    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def base_env() -> Dict[str, str]:
    return {
        "SLACK_SIGNING_SECRET": SIGNING_SECRET,
        "ALLOWED_USERS": "U0ALLOWED, U0OTHER",
        "STAGING_PROJECT_ID": "acme-staging",
        "PROD_PROJECT_ID": "acme-prod",
        "FUNCTION_REGION": "europe-north1",
    }


@pytest.fixture
def settings(base_env: Dict[str, str]) -> Settings:
    return load_settings(base_env)


@pytest.fixture
def build_client() -> FakeCloudBuildClient:
    return FakeCloudBuildClient()


@pytest.fixture
def cloud_logger() -> FakeCloudLogger:
    return FakeCloudLogger()


@pytest.fixture
def delivered() -> List[tuple[str, Dict[str, Any]]]:
    return []


@pytest.fixture
def make_handler(
    build_client: FakeCloudBuildClient,
    cloud_logger: FakeCloudLogger,
    delivered: List[tuple[str, Dict[str, Any]]],
) -> Callable[..., SlashCommandHandler]:
    """Return a factory building handlers wired to in-memory fakes."""

    def _factory(settings: Settings | None, **overrides: Any) -> SlashCommandHandler:
        kwargs: Dict[str, Any] = {
            "builder": CloudBuildTrigger(client=build_client),
            "audit_logger": AuditLogger(region="europe-north1", cloud_logger=cloud_logger),
            "deliver": lambda url, payload: delivered.append((url, payload)),
            "clock": lambda: float(NOW),
        }
        kwargs.update(overrides)
        return SlashCommandHandler(settings, **kwargs)

    return _factory
