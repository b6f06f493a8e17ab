"""structlog over stdlib logging, always on stderr.

stdout is reserved for command output (JSON records), so every handler
installed here writes to stderr unless a stream is passed explicitly.
"""
from __future__ import annotations

import logging
import os
import sys
from typing import IO, Any

import structlog
from structlog.stdlib import ProcessorFormatter

from ilios_api_client.config.redact import redact_settings_dict
from ilios_api_client.config.settings import ObservabilitySettings

_FORMATS = ("json", "human")

# httpx logs full request lines, query strings included, at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore")


def _redact_event(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    return redact_settings_dict(event_dict)


def _pick_format(log_format: str | None, json_logs: bool) -> str:
    # Explicit argument, then LOG_FORMAT, then the json_logs switch.
    for candidate in (log_format, os.environ.get("LOG_FORMAT")):
        normalized = (candidate or "").strip().lower()
        if normalized in _FORMATS:
            return normalized
    return "json" if json_logs else "human"


def configure_logging(
    *,
    log_level: str = "INFO",
    json_logs: bool = False,
    log_format: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Install one stderr handler on the root logger and route structlog through it.

    `LOG_LEVEL` in the environment wins over `log_level`.
    """
    level = ((os.environ.get("LOG_LEVEL") or "").strip() or log_level).upper()

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _redact_event,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    renderer: Any = (
        structlog.processors.JSONRenderer()
        if _pick_format(log_format, json_logs) == "json"
        else structlog.dev.ConsoleRenderer()
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(
        ProcessorFormatter(processor=renderer, foreign_pre_chain=shared_processors)
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[*shared_processors, ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_logging_from_settings(observability: ObservabilitySettings) -> None:
    configure_logging(
        log_level=observability.log_level,
        json_logs=observability.json_logs,
        log_format=observability.log_format,
    )
