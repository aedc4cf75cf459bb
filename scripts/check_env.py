"""Validate gateway configuration and detect drift in its ``.env`` file.

Every settings group (Redis, database, OAuth, downstream API, webhooks, ...) is
loaded on its own so a failure names the group and the variables at fault. A
SHA-256 baseline of the env file can be recorded and verified later, e.g. from
a deploy hook, to catch unreviewed edits.

Example usages::

    python -m scripts.check_env check --env-file /srv/gateway/.env
    python -m scripts.check_env record --env-file /srv/gateway/.env \
        --hash-file /srv/gateway/.env.sha256
    python -m scripts.check_env verify --env-file /srv/gateway/.env \
        --hash-file /srv/gateway/.env.sha256

Exit codes: 0 ok, 2 invalid settings, 3 checksum mismatch, 5 runtime error.
"""

from __future__ import annotations

import argparse
import hashlib
import sys
from pathlib import Path
from typing import Dict, List, Type

from pydantic import ValidationError
from pydantic_settings import BaseSettings

from app.core.config import (
    CacheSettings,
    CircuitBreakerSettings,
    DatabaseSettings,
    ExternalApiSettings,
    OAuthSettings,
    RateLimitSettings,
    RedisSettings,
    SecuritySettings,
    WebhookSettings,
    _load_env_file,
)

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_RUNTIME_ERROR = 5

SETTINGS_GROUPS: Dict[str, Type[BaseSettings]] = {
    "redis": RedisSettings,
    "database": DatabaseSettings,
    "oauth": OAuthSettings,
    "external_api": ExternalApiSettings,
    "circuit_breaker": CircuitBreakerSettings,
    "webhooks": WebhookSettings,
    "cache": CacheSettings,
    "rate_limit": RateLimitSettings,
    "security": SecuritySettings,
}


def _checksum(env_file: Path) -> str:
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def _invalid_groups(env_file: Path) -> Dict[str, List[str]]:
    """Return ``{group: [problem, ...]}`` for every group that fails to load."""
    _load_env_file(str(env_file))
    problems: Dict[str, List[str]] = {}
    for name, group in SETTINGS_GROUPS.items():
        try:
            group()
        except ValidationError as exc:
            problems[name] = [
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in exc.errors()
            ]
    return problems


def _report_problems(problems: Dict[str, List[str]]) -> None:
    print("Settings validation failed:", file=sys.stderr)
    for group, messages in problems.items():
        print(f"  [{group}]", file=sys.stderr)
        for message in messages:
            print(f"    - {message}", file=sys.stderr)


def _record(env_file: Path, hash_file: Path) -> int:
    checksum = _checksum(env_file)
    hash_file.write_text(f"{checksum}\n", encoding="utf-8")
    print(f"Recorded checksum {checksum} to {hash_file}")
    return EXIT_OK


def _verify(env_file: Path, hash_file: Path) -> int:
    if not hash_file.exists():
        print(
            f"No checksum baseline at {hash_file}; run 'record' first.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    expected = hash_file.read_text(encoding="utf-8").strip()
    actual = _checksum(env_file)
    if expected != actual:
        print(
            f"Environment file {env_file} changed since the baseline was recorded.\n"
            f"  expected: {expected}\n"
            f"  actual:   {actual}",
            file=sys.stderr,
        )
        return EXIT_CHECKSUM_ERROR
    print("Environment checksum OK.")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Validate gateway settings and detect .env drift.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for command, help_text, needs_hash in (
        ("check", "Validate settings only.", False),
        ("record", "Validate settings and write the checksum baseline.", True),
        ("verify", "Validate settings and compare against the checksum baseline.", True),
    ):
        subparser = subparsers.add_parser(command, help=help_text)
        subparser.add_argument("--env-file", default=Path(".env"), type=Path, help="Environment file to check.")
        if needs_hash:
            subparser.add_argument("--hash-file", required=True, type=Path, help="Checksum baseline location.")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    env_file: Path = args.env_file

    if not env_file.is_file():
        print(f"Environment file {env_file} does not exist.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        problems = _invalid_groups(env_file)
    except OSError as exc:
        print(f"Could not read {env_file}: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    if problems:
        _report_problems(problems)
        return EXIT_VALIDATION_ERROR

    if args.command == "record":
        return _record(env_file, args.hash_file)
    if args.command == "verify":
        return _verify(env_file, args.hash_file)
    print("Settings OK.")
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
