from __future__ import annotations

import warnings
from pathlib import Path

import pytest

from ilios_api_client import cli
from ilios_api_client.config.env_aliases import (
    _CANONICAL_MAPPINGS,
    _DEPRECATED_ALIASES,
    get_flat_env_settings_source,
)
from ilios_api_client.config.load import load_settings

_KEYS = (
    "CONFIG_PATH",
    *(name for name, _ in _CANONICAL_MAPPINGS),
    *_DEPRECATED_ALIASES,
)


def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # setenv first so values loaded from .env are undone on teardown.
    for key in _KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)


def test_flat_env_maps_onto_nested_sections(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("ILIOS_BASE_URL", "https://ilios.example.edu")
    monkeypatch.setenv("ILIOS_BATCH_SIZE", "25")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("HARDENING_TRANSPORT_ALLOW_INSECURE_HTTP", "true")

    assert get_flat_env_settings_source() == {
        "ilios": {"base_url": "https://ilios.example.edu", "batch_size": "25"},
        "observability": {"log_level": "DEBUG"},
        "hardening": {"transport": {"allow_insecure_http": "true"}},
    }


def test_canonical_name_wins_over_deprecated_alias(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("ILIOS_API_TOKEN", "canonical")
    monkeypatch.setenv("ILIOS_ACCESS_TOKEN", "legacy")

    with warnings.catch_warnings(record=True) as captured:
        warnings.simplefilter("always")
        data = get_flat_env_settings_source()

    assert data["ilios"]["api_token"] == "canonical"
    assert not any(issubclass(w.category, DeprecationWarning) for w in captured)


def test_dotenv_file_is_loaded(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    (tmp_path / ".env").write_text(
        "\n".join(
            [
                "ILIOS_BASE_URL=https://ilios.example.local",
                "ILIOS_API_TOKEN=test-token",
                "",
            ]
        ),
        encoding="utf-8",
    )

    settings = load_settings()
    assert str(settings.ilios.base_url).rstrip("/") == "https://ilios.example.local"
    assert settings.ilios.api_token is not None
    assert settings.ilios.api_token.get_secret_value() == "test-token"


def test_show_deprecated_lists_legacy_names(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("ILIOS_URL", "https://ilios.legacy.edu")

    assert cli.cmd_show_deprecated(None) == 0
    out = capsys.readouterr().out
    assert "ILIOS_URL → ILIOS_BASE_URL" in out
    assert "NEEDS MIGRATION" in out
