from __future__ import annotations

import argparse
import json

import pytest

from ilios_api_client import cli
from ilios_api_client.config.settings import Settings
from ilios_api_client.core.fetcher import IliosClient


def _settings(token: str | None = None) -> Settings:
    ilios: dict[str, object] = {"base_url": "https://ilios.example", "batch_size": 2}
    if token is not None:
        ilios["api_token"] = token
    return Settings.from_mapping({"ilios": ilios})


class _ClosingTransport:
    def __init__(self, inner) -> None:
        self.inner = inner

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        return None


def _stub_client(monkeypatch, transport) -> None:
    def _build(settings, **_kwargs):
        client = IliosClient(str(settings.ilios.base_url), transport)
        return client, _ClosingTransport(transport)

    monkeypatch.setattr(cli, "build_client", _build)


def test_parse_pairs_collects_repeated_keys() -> None:
    assert cli._parse_pairs(["school=1", "title=x", "school=2", "school=3"], option="--filter") == {
        "school": ["1", "2", "3"],
        "title": "x",
    }
    assert cli._parse_pairs(None, option="--filter") == {}


def test_parse_pairs_rejects_missing_separator() -> None:
    with pytest.raises(ValueError, match="--sort expects key=value"):
        cli._parse_pairs(["title"], option="--sort")


def test_inspect_token_reports_valid_token(capsys, access_token: str) -> None:
    rc = cli.cmd_inspect_token(argparse.Namespace(token=access_token))
    assert rc == 0
    parsed = json.loads(capsys.readouterr().out)
    assert parsed["valid"] is True
    assert parsed["expires_at"]
    assert parsed["expires_in_seconds"] > 0


def test_inspect_token_reports_expired_token(capsys, expired_token: str) -> None:
    rc = cli.cmd_inspect_token(argparse.Namespace(token=expired_token))
    assert rc == 1
    parsed = json.loads(capsys.readouterr().out)
    assert parsed["valid"] is False
    assert parsed["kind"] == "expired_token"
    assert parsed["expires_at"]


def test_inspect_token_uses_configured_token(monkeypatch, capsys) -> None:
    monkeypatch.setattr(cli, "load_settings", lambda: _settings(token="not-a-jwt"))
    rc = cli.cmd_inspect_token(argparse.Namespace(token=None))
    assert rc == 1
    parsed = json.loads(capsys.readouterr().out)
    assert parsed["kind"] == "malformed_token"
    assert parsed["expires_at"] is None


def test_cmd_get_prints_records_as_json(monkeypatch, capsys, transport, access_token) -> None:
    monkeypatch.setattr(cli, "load_settings", lambda: _settings(token=access_token))
    _stub_client(monkeypatch, transport)
    transport.queue_json({"courses": [{"id": 1}, {"id": 2}]}, {"courses": []})

    args = argparse.Namespace(
        entity_type="courses",
        filter=["school=1", "school=2"],
        sort=["title=DESC"],
        batch_size=None,
        token=None,
    )
    rc = cli.cmd_get(args)

    assert rc == 0
    assert json.loads(capsys.readouterr().out) == [{"id": 1}, {"id": 2}]
    assert transport.urls[0] == (
        "https://ilios.example/api/v3/courses?limit=2&offset=0"
        "&filters[school][]=1&filters[school][]=2&order_by[title]=DESC"
    )


def test_cmd_get_reports_client_errors(monkeypatch, capsys, transport) -> None:
    monkeypatch.setattr(cli, "load_settings", lambda: _settings())
    _stub_client(monkeypatch, transport)

    args = argparse.Namespace(
        entity_type="courses", filter=None, sort=None, batch_size=None, token=None
    )
    rc = cli.cmd_get(args)

    assert rc == 1
    assert "API token is empty." in capsys.readouterr().err
    assert transport.calls == []


def test_cmd_get_by_ids_prints_records(monkeypatch, capsys, transport, access_token) -> None:
    monkeypatch.setattr(cli, "load_settings", lambda: _settings())
    _stub_client(monkeypatch, transport)
    transport.queue_json({"courses": [{"id": 5}]})

    args = argparse.Namespace(
        entity_type="courses", ids=[5], batch_size=None, token=access_token
    )
    rc = cli.cmd_get_by_ids(args)

    assert rc == 0
    assert json.loads(capsys.readouterr().out) == [{"id": 5}]
    assert transport.urls == ["https://ilios.example/api/v3/courses?limit=2&filters[id][]=5"]


def test_cmd_get_keeps_logs_off_stdout(monkeypatch, capsys, transport, access_token) -> None:
    monkeypatch.setattr(cli, "load_settings", lambda: _settings(token=access_token))
    _stub_client(monkeypatch, transport)
    transport.queue_json({"courses": [{"id": 1}]})

    args = argparse.Namespace(
        entity_type="courses", filter=None, sort=None, batch_size=None, token=None
    )
    rc = cli.cmd_get(args)

    captured = capsys.readouterr()
    assert rc == 0
    assert json.loads(captured.out) == [{"id": 1}]
    assert "ilios.fetched" in captured.err


@pytest.mark.parametrize("command", [cli.cmd_get, cli.cmd_get_by_ids])
def test_zero_batch_size_is_rejected(monkeypatch, capsys, transport, access_token, command) -> None:
    monkeypatch.setattr(cli, "load_settings", lambda: _settings(token=access_token))
    _stub_client(monkeypatch, transport)

    args = argparse.Namespace(
        entity_type="courses", filter=None, sort=None, ids=[1, 2], batch_size=0, token=None
    )
    rc = command(args)

    assert rc == 1
    assert "batch_size must be > 0" in capsys.readouterr().err
    assert transport.urls == []


def test_main_without_command_prints_help(capsys) -> None:
    assert cli.main([]) == 0
    assert "ilios-api-client" in capsys.readouterr().out
