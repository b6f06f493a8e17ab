"""CLI commands for ilios-api-client.

This module provides command-line utilities for:
- Validating and dumping configuration (with secrets redacted)
- Inspecting the configured access token
- Fetching entities from the Ilios API as JSON
"""
from __future__ import annotations

import argparse
import json
import os
import sys
import time
from typing import Any

import structlog

from ilios_api_client.config.env_aliases import _DEPRECATED_ALIASES
from ilios_api_client.config.load import load_settings
from ilios_api_client.config.redact import redact_settings_dict
from ilios_api_client.config.settings import Settings
from ilios_api_client.core.token import decode_token_payload, validate_access_token
from ilios_api_client.domain.errors import IliosClientError
from ilios_api_client.observability.logger import (
    configure_logging,
    configure_logging_from_settings,
)
from ilios_api_client.runtime import build_client

log = structlog.get_logger(__name__)


def cmd_validate_config(args: argparse.Namespace) -> int:
    """Validate configuration and exit with appropriate code.

    Exit codes:
        0: Configuration is valid
        1: Configuration is invalid
    """
    try:
        settings = load_settings()
        print("✓ Configuration is valid")
        print(f"  - Ilios URL: {settings.ilios.base_url}")
        print(f"  - API path: {settings.ilios.api_path}")
        print(f"  - Batch size: {settings.ilios.batch_size}")
        print(f"  - API token configured: {settings.ilios.api_token is not None}")
        return 0
    except Exception as e:
        print(f"✗ Configuration is invalid: {e}", file=sys.stderr)
        return 1


def cmd_dump_config(args: argparse.Namespace) -> int:
    """Dump current configuration as JSON (with secrets redacted)."""
    try:
        settings = load_settings()
        data = settings.model_dump(mode="json")
        redacted = redact_settings_dict(data)
        print(json.dumps(redacted, indent=2, default=str))
        return 0
    except Exception as e:
        print(f"✗ Failed to load configuration: {e}", file=sys.stderr)
        return 1


def cmd_show_deprecated(args: argparse.Namespace) -> int:
    """Show deprecated environment variables that are in use."""
    found = []
    for old_name, new_name in _DEPRECATED_ALIASES.items():
        if old_name in os.environ:
            found.append((old_name, new_name, os.environ.get(new_name) is None))

    if not found:
        print("No deprecated environment variables in use.")
        return 0

    print("Deprecated environment variables detected:")
    print()
    for old_name, new_name, needs_migration in found:
        status = "⚠️  NEEDS MIGRATION" if needs_migration else "ℹ️  Has canonical override"
        print(f"  {old_name} → {new_name} {status}")

    print()
    print("These variables will be removed in a future version.")
    print("Please migrate to the canonical names.")
    return 0


def _resolve_token(args: argparse.Namespace, settings: Settings | None) -> str:
    explicit = getattr(args, "token", None)
    if explicit:
        return str(explicit)
    if settings is not None and settings.ilios.api_token is not None:
        return settings.ilios.api_token.get_secret_value()
    return ""


def _batch_size(args: argparse.Namespace, settings: Settings) -> int:
    if args.batch_size is not None:
        return int(args.batch_size)
    return settings.ilios.batch_size


def _parse_pairs(values: list[str] | None, *, option: str) -> dict[str, Any]:
    """Parse repeated ``key=value`` options; a key given twice becomes a list."""
    parsed: dict[str, Any] = {}
    for raw in values or []:
        key, sep, value = raw.partition("=")
        if not sep or not key:
            raise ValueError(f"{option} expects key=value, got {raw!r}")
        if key in parsed:
            current = parsed[key]
            parsed[key] = [*current, value] if isinstance(current, list) else [current, value]
        else:
            parsed[key] = value
    return parsed


def cmd_inspect_token(args: argparse.Namespace) -> int:
    """Decode the access token (without verifying it) and report its expiry."""
    try:
        settings = None if getattr(args, "token", None) else load_settings()
    except ValueError as e:
        print(f"✗ Failed to load configuration: {e}", file=sys.stderr)
        return 1
    token = _resolve_token(args, settings)
    try:
        validate_access_token(token)
    except IliosClientError as e:
        payload = {"valid": False, "kind": e.kind.value, "error": str(e)}
        try:
            expires_at = decode_token_payload(token).expires_at
        except IliosClientError:
            expires_at = None
        payload["expires_at"] = expires_at.isoformat() if expires_at else None
        print(json.dumps(payload, indent=2))
        return 1

    expires_at = decode_token_payload(token).expires_at
    print(
        json.dumps(
            {
                "valid": True,
                "expires_at": expires_at.isoformat() if expires_at else None,
                "expires_in_seconds": int(expires_at.timestamp() - time.time())
                if expires_at
                else None,
            },
            indent=2,
        )
    )
    return 0


def cmd_get(args: argparse.Namespace) -> int:
    """Fetch all entities of a type (paginated) and print them as JSON."""
    try:
        settings = load_settings()
        configure_logging_from_settings(settings.observability)
        filters = _parse_pairs(args.filter, option="--filter")
        sort = _parse_pairs(args.sort, option="--sort")
        client, transport = build_client(settings)
        with transport:
            records = client.get(
                _resolve_token(args, settings),
                args.entity_type,
                filters,
                sort,
                batch_size=_batch_size(args, settings),
            )
    except (IliosClientError, ValueError) as e:
        print(f"✗ Request failed: {e}", file=sys.stderr)
        return 1

    log.info("ilios.fetched", entity_type=args.entity_type, records=len(records))
    print(json.dumps(records, indent=2, default=str))
    return 0


def cmd_get_by_ids(args: argparse.Namespace) -> int:
    """Fetch entities by id (batched) and print them as JSON."""
    try:
        settings = load_settings()
        configure_logging_from_settings(settings.observability)
        client, transport = build_client(settings)
        with transport:
            records = client.get_by_ids(
                _resolve_token(args, settings),
                args.entity_type,
                list(args.ids),
                batch_size=_batch_size(args, settings),
            )
    except (IliosClientError, ValueError) as e:
        print(f"✗ Request failed: {e}", file=sys.stderr)
        return 1

    log.info("ilios.fetched", entity_type=args.entity_type, records=len(records))
    print(json.dumps(records, indent=2, default=str))
    return 0


def _configure_logging_from_env() -> None:
    configure_logging(
        log_level=os.environ.get("LOG_LEVEL") or "WARNING",
        json_logs=(os.environ.get("LOG_JSON") or "").strip().lower() in {"1", "true", "yes"},
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ilios-api-client",
        description="Ilios API client CLI utilities",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # validate-config
    validate_parser = subparsers.add_parser(
        "validate-config",
        help="Validate configuration and exit",
    )
    validate_parser.set_defaults(func=cmd_validate_config)

    # dump-config
    dump_parser = subparsers.add_parser(
        "dump-config",
        help="Dump configuration as JSON (secrets redacted)",
    )
    dump_parser.set_defaults(func=cmd_dump_config)

    # show-deprecated
    deprecated_parser = subparsers.add_parser(
        "show-deprecated",
        help="Show deprecated environment variables in use",
    )
    deprecated_parser.set_defaults(func=cmd_show_deprecated)

    token_parser = subparsers.add_parser(
        "inspect-token",
        help="Check the access token's format and expiry (signature is not verified)",
    )
    token_parser.add_argument("--token", default=None, help="Token to inspect (default: config)")
    token_parser.set_defaults(func=cmd_inspect_token)

    get_parser = subparsers.add_parser(
        "get",
        help="Fetch all entities of a type, following pagination",
    )
    get_parser.add_argument("entity_type", help="Entity type, e.g. courses")
    get_parser.add_argument(
        "--filter",
        action="append",
        metavar="KEY=VALUE",
        help="Filter (repeat a key to filter on several values)",
    )
    get_parser.add_argument(
        "--sort",
        action="append",
        metavar="KEY=DIR",
        help="Sort order, e.g. title=DESC (repeatable)",
    )
    get_parser.add_argument("--batch-size", type=int, default=None)
    get_parser.add_argument("--token", default=None)
    get_parser.set_defaults(func=cmd_get)

    ids_parser = subparsers.add_parser(
        "get-by-ids",
        help="Fetch entities by id, batching large id lists",
    )
    ids_parser.add_argument("entity_type", help="Entity type, e.g. courses")
    ids_parser.add_argument("ids", nargs="+", type=int)
    ids_parser.add_argument("--batch-size", type=int, default=None)
    ids_parser.add_argument("--token", default=None)
    ids_parser.set_defaults(func=cmd_get_by_ids)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    _configure_logging_from_env()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
