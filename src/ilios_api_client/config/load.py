"""Settings loading: `.env`, an optional YAML file, then the environment.

Precedence, highest first: nested env vars (``ILIOS__BASE_URL``), flat env
vars (``ILIOS_BASE_URL``, including lines from ``.env``), the YAML file.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError

from ilios_api_client.config.env_aliases import _CANONICAL_MAPPINGS
from ilios_api_client.config.settings import Settings
from ilios_api_client.config.validate import (
    ConfigValidationError,
    ConfigValidationIssue,
    issues_from_pydantic_error,
    validate_settings,
)

DEFAULT_CONFIG_PATH = Path("config/config.yaml")

# "ilios.base_url" -> "ILIOS_BASE_URL"
_ENV_NAME_BY_PATH: dict[str, str] = {
    ".".join(path): env_name for env_name, path in _CANONICAL_MAPPINGS
}


def _fail(path: str, message: str) -> ConfigValidationError:
    return ConfigValidationError([ConfigValidationIssue(path, message)])


def _config_file(config_path: str | Path | None) -> Path | None:
    """Pick the YAML file to read; a path the caller asked for must exist."""
    requested = config_path if config_path is not None else os.environ.get("CONFIG_PATH")
    if requested:
        path = Path(requested)
        if not path.exists():
            raise _fail("CONFIG_PATH", f"Config file not found: {path}")
        return path
    return DEFAULT_CONFIG_PATH if DEFAULT_CONFIG_PATH.exists() else None


def _read_yaml(path: Path | None) -> dict[str, Any]:
    if path is None:
        return {}
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise _fail(str(path), f"Unable to read config file: {exc}") from exc
    except yaml.YAMLError as exc:
        raise _fail(str(path), f"Invalid YAML: {exc}") from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise _fail(str(path), "YAML root must be a mapping/object")
    return raw


def _required_fields(section: str) -> list[str]:
    field = Settings.model_fields.get(section)
    model = field.annotation if field is not None else None
    if not (isinstance(model, type) and issubclass(model, BaseModel)):
        return []
    return [f"{section}.{name}" for name, info in model.model_fields.items() if info.is_required()]


def _explain(issues: list[ConfigValidationIssue]) -> list[ConfigValidationIssue]:
    """Point a missing section at its required fields and name their env vars."""
    explained: list[ConfigValidationIssue] = []
    for issue in issues:
        paths = [issue.path]
        if issue.message == "Field required":
            paths = _required_fields(issue.path) or paths
        for path in paths:
            env_name = _ENV_NAME_BY_PATH.get(path)
            message = issue.message
            if env_name:
                message = f"{message}. Set `{env_name}` (or YAML `{path}`)."
            explained.append(ConfigValidationIssue(path, message))
    return explained


def load_settings(*, config_path: str | Path | None = None) -> Settings:
    dotenv_path = Path(".env")
    if dotenv_path.is_file():
        load_dotenv(dotenv_path=dotenv_path, override=False)

    yaml_data = _read_yaml(_config_file(config_path))

    try:
        settings = Settings(**yaml_data)
    except ValidationError as exc:
        raise ConfigValidationError(_explain(issues_from_pydantic_error(exc))) from exc

    validate_settings(settings)
    return settings
