from __future__ import annotations

import io
import json
import logging
import sys
import warnings

import structlog

from ilios_api_client.config.settings import ObservabilitySettings
from ilios_api_client.observability.logger import (
    configure_logging,
    configure_logging_from_settings,
)


def test_configure_logging_writes_to_stderr_and_quiets_httpx() -> None:
    configure_logging(log_level="INFO", json_logs=False)

    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert getattr(handlers[0], "stream", None) is sys.stderr
    assert logging.getLogger("httpx").getEffectiveLevel() >= logging.WARNING
    assert logging.getLogger("httpcore").getEffectiveLevel() >= logging.WARNING


def test_human_logging_does_not_emit_format_exc_info_warning() -> None:
    with warnings.catch_warnings(record=True) as captured:
        warnings.simplefilter("always")
        configure_logging(log_level="INFO", json_logs=False, log_format="human")
        logger = structlog.get_logger("test.logger")
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            logger.exception("expected_exception")

    assert not any(
        "Remove `format_exc_info` from your processor chain" in str(warning.message)
        for warning in captured
    )


def test_json_logging_redacts_token_fields(access_token: str) -> None:
    stream = io.StringIO()
    configure_logging(log_level="INFO", log_format="json", stream=stream)

    structlog.get_logger("test.logger").info(
        "ilios.request", access_token=access_token, url="https://ilios.example/api/v3/courses"
    )

    payload = json.loads(stream.getvalue())
    assert payload["event"] == "ilios.request"
    assert payload["access_token"] == "[redacted]"
    assert payload["url"] == "https://ilios.example/api/v3/courses"


def test_json_logging_redacts_secrets_in_exception_traceback(access_token: str) -> None:
    stream = io.StringIO()
    configure_logging(log_level="INFO", log_format="json", stream=stream)

    logger = structlog.get_logger("test.logger")
    try:
        raise RuntimeError(f"X-JWT-Authorization: Token {access_token}")
    except RuntimeError:
        logger.exception("expected_exception")

    rendered = json.dumps(json.loads(stream.getvalue()))
    assert access_token not in rendered


def test_settings_choose_level_and_format(monkeypatch) -> None:
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_FORMAT", raising=False)

    configure_logging_from_settings(ObservabilitySettings(log_level="warning", json_logs=True))

    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert isinstance(root.handlers[0].formatter.processors[-1], structlog.processors.JSONRenderer)


def test_log_format_env_overrides_json_switch(monkeypatch) -> None:
    monkeypatch.setenv("LOG_FORMAT", "json")
    stream = io.StringIO()
    configure_logging(log_level="INFO", json_logs=False, stream=stream)

    structlog.get_logger("test.logger").info("ilios.page", records=3)

    assert json.loads(stream.getvalue())["records"] == 3
