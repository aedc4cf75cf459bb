"""Tests for the environment drift detection script."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import pytest

from scripts import check_env

REQUIRED_ENV_KEYS = [
    "OAUTH_TOKEN_URL",
    "OAUTH_CLIENT_ID",
    "OAUTH_CLIENT_SECRET",
    "EXTERNAL_API_BASE_URL",
    "WEBHOOK_SECRET",
    "RATE_LIMIT_REQUESTS_PER_WINDOW",
]

VALID_ENV = {
    "OAUTH_TOKEN_URL": "https://auth.example.com/oauth/token",
    "OAUTH_CLIENT_ID": "gateway",
    "OAUTH_CLIENT_SECRET": "secret",
    "EXTERNAL_API_BASE_URL": "https://api.example.com",
    "WEBHOOK_SECRET": "whsec",
}


def _write_env(env_path: Path, **values: str) -> None:
    contents = "\n".join(f"{key}={value}" for key, value in values.items())
    env_path.write_text(contents + "\n", encoding="utf-8")


def _clear_required_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # setenv first so teardown also undoes values the script loads from the file.
    for key in REQUIRED_ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)


def _run(command: str, env_file: Path, hash_file: Optional[Path] = None) -> int:
    argv = [command, "--env-file", str(env_file)]
    if hash_file is not None:
        argv += ["--hash-file", str(hash_file)]
    return check_env.main(argv)


@pytest.mark.parametrize("command", ["record", "verify", "check"])
def test_main_requires_existing_env_file(tmp_path: Path, command: str) -> None:
    hash_file = None if command == "check" else tmp_path / ".env.sha256"

    assert _run(command, tmp_path / ".missing-env", hash_file) == check_env.EXIT_RUNTIME_ERROR


def test_record_and_verify_detects_mismatched_checksum(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    hash_file = tmp_path / ".env.sha256"

    _clear_required_env(monkeypatch)
    _write_env(env_file, **VALID_ENV)

    assert _run("record", env_file, hash_file) == check_env.EXIT_OK
    assert hash_file.read_text(encoding="utf-8").strip()

    _clear_required_env(monkeypatch)
    assert _run("verify", env_file, hash_file) == check_env.EXIT_OK

    _write_env(env_file, **{**VALID_ENV, "OAUTH_CLIENT_SECRET": "rotated"})
    _clear_required_env(monkeypatch)
    assert _run("verify", env_file, hash_file) == check_env.EXIT_CHECKSUM_ERROR


def test_verify_without_baseline_is_a_runtime_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    _clear_required_env(monkeypatch)
    _write_env(env_file, **VALID_ENV)

    assert _run("verify", env_file, tmp_path / "absent.sha256") == check_env.EXIT_RUNTIME_ERROR


def test_validation_failure_for_missing_required_values(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    env_file = tmp_path / ".env"
    hash_file = tmp_path / ".env.sha256"

    _clear_required_env(monkeypatch)
    values = dict(VALID_ENV)
    values.pop("OAUTH_CLIENT_SECRET")
    _write_env(env_file, **values)

    assert _run("record", env_file, hash_file) == check_env.EXIT_VALIDATION_ERROR
    assert not hash_file.exists()
    assert "[oauth]" in capsys.readouterr().err


def test_invalid_number_names_its_group(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    env_file = tmp_path / ".env"

    _clear_required_env(monkeypatch)
    _write_env(env_file, **VALID_ENV, RATE_LIMIT_REQUESTS_PER_WINDOW="lots")

    assert _run("check", env_file) == check_env.EXIT_VALIDATION_ERROR
    assert "[rate_limit]" in capsys.readouterr().err
