from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from urllib.parse import urlsplit

from pydantic import ValidationError

from ilios_api_client.config.settings import Settings

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class ConfigValidationIssue:
    path: str
    message: str


class ConfigValidationError(ValueError):
    def __init__(self, issues: Iterable[ConfigValidationIssue]):
        self.issues = list(issues)
        super().__init__(
            "\n".join(
                ["Configuration is invalid:"]
                + [f"- {issue.path}: {issue.message}" for issue in self.issues]
            )
        )


def issues_from_pydantic_error(error: ValidationError) -> list[ConfigValidationIssue]:
    return [
        ConfigValidationIssue(
            path=".".join(str(part) for part in item.get("loc", ())) or "<root>",
            message=item.get("msg", "Invalid value"),
        )
        for item in error.errors(include_url=False)
    ]


def _check_log_level(settings: Settings) -> Iterator[ConfigValidationIssue]:
    if settings.observability.log_level.upper() not in _LOG_LEVELS:
        yield ConfigValidationIssue(
            "observability.log_level",
            f"Unsupported log level {settings.observability.log_level!r} "
            f"(allowed: {', '.join(_LOG_LEVELS)})",
        )


def _check_base_url(settings: Settings) -> Iterator[ConfigValidationIssue]:
    ilios = settings.ilios
    parts = urlsplit(str(ilios.base_url))

    # The access token travels in a request header on every call.
    if parts.scheme == "http" and not settings.hardening.transport.allow_insecure_http:
        yield ConfigValidationIssue(
            "ilios.base_url",
            "Plain HTTP would send the API token unencrypted. "
            "Use https:// or set hardening.transport.allow_insecure_http=true.",
        )

    if parts.query or parts.fragment:
        yield ConfigValidationIssue(
            "ilios.base_url",
            "Must not contain a query string or fragment; entity paths and "
            "filters are appended to it.",
        )

    if ilios.api_path and parts.path.rstrip("/").endswith(ilios.api_path):
        yield ConfigValidationIssue(
            "ilios.base_url",
            f"Already ends with the API path {ilios.api_path!r}; "
            "set only the site root (the API path is appended).",
        )


def _check_tls(settings: Settings) -> Iterator[ConfigValidationIssue]:
    if not settings.ilios.verify_tls and not settings.hardening.transport.allow_insecure_tls:
        yield ConfigValidationIssue(
            "ilios.verify_tls",
            "Disabling TLS verification requires "
            "hardening.transport.allow_insecure_tls=true (not recommended).",
        )


_CHECKS: tuple[Callable[[Settings], Iterator[ConfigValidationIssue]], ...] = (
    _check_log_level,
    _check_base_url,
    _check_tls,
)


def validate_settings(settings: Settings) -> None:
    """Cross-field checks that pydantic field validation cannot express."""
    issues = [issue for check in _CHECKS for issue in check(settings)]
    if issues:
        raise ConfigValidationError(issues)
