from __future__ import annotations

import importlib
import json
import logging
from types import ModuleType
from typing import Iterator

import pytest


@pytest.fixture(autouse=True)
def _restore_root_handlers() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _reload_logging(monkeypatch: pytest.MonkeyPatch, **env: str) -> ModuleType:
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    module = importlib.import_module("deploybot.logging_config")
    return importlib.reload(module)


def test_text_logging_includes_correlation_id(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("DEPLOYBOT_CORR_ID", "test-corr-id")
    logging_module = _reload_logging(monkeypatch)
    logging_module.configure_logging("INFO")
    logger = logging_module.get_logger("test.logger")

    logger.info("hello world", extra={"service": "backend-api"})

    output = capsys.readouterr().out.strip()
    assert "hello world" in output
    assert "[test-corr-id]" in output
    assert 'service="backend-api"' in output
    assert output.startswith("20")


def test_json_logging_mode(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    logging_module = _reload_logging(monkeypatch, DEPLOYBOT_LOG_JSON="true")
    logging_module.configure_logging("INFO")
    logger = logging_module.get_logger("json.logger")

    logger.warning("structured message", extra={"slack_user_id": "U1"})

    payload = json.loads(capsys.readouterr().out.strip())
    assert payload["message"] == "structured message"
    assert payload["severity"] == "WARNING"
    assert payload["logger"] == "json.logger"
    assert payload["slack_user_id"] == "U1"
    assert payload["correlation_id"] == logging_module.get_correlation_id()
    assert payload["timestamp"].endswith("Z")


def test_request_correlation_id_overrides_default(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    logging_module = _reload_logging(monkeypatch, DEPLOYBOT_LOG_JSON="1")
    logging_module.configure_logging("INFO")
    logger = logging_module.get_logger("corr.logger")

    token = logging_module.set_correlation_id("trigger-42")
    try:
        logger.info("inside request")
    finally:
        logging_module.reset_correlation_id(token)
    logger.info("outside request")

    inside, outside = (json.loads(line) for line in capsys.readouterr().out.strip().splitlines())
    assert inside["correlation_id"] == "trigger-42"
    assert outside["correlation_id"] != "trigger-42"


def test_configure_logging_replaces_its_handler(monkeypatch: pytest.MonkeyPatch) -> None:
    logging_module = _reload_logging(monkeypatch)
    logging_module.configure_logging("INFO")
    logging_module.configure_logging("DEBUG")

    named = [h for h in logging.getLogger().handlers if h.get_name() == "deploybot-stdout"]
    assert len(named) == 1
    assert logging.getLogger().level == logging.DEBUG


def test_secret_redaction(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    logging_module = _reload_logging(monkeypatch)
    logging_module.configure_logging("DEBUG")
    logger = logging_module.get_logger("redact.logger")

    logger.debug(
        "token value",
        extra={
            "signing_secret": "abc123",
            "response_url": "https://hooks.slack.com/commands/T/1/2",
            "nested": {"secret": "shhh"},
        },
    )

    output = capsys.readouterr().out
    assert "***REDACTED***" in output
    assert "abc123" not in output
    assert "hooks.slack.com" not in output
    assert "shhh" not in output
