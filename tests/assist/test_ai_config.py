from __future__ import annotations

import json
from pathlib import Path

import pytest
from pytest import MonkeyPatch

from bidboard.assist.config import AIConfig, RetryPolicy


def test_ai_config_prefers_env_then_file(tmp_path: Path, monkeypatch: MonkeyPatch) -> None:
    key_file = tmp_path / "API_KEY.txt"
    key_file.write_text("file-secret\n", encoding="utf-8")

    config_file = tmp_path / "config.json"
    config_file.write_text(
        json.dumps({"ai": {"api_key_path": str(key_file), "model": "test-model"}}),
        encoding="utf-8",
    )

    monkeypatch.setenv("OPENAI_API_KEY", "env-secret")
    config = AIConfig.load(config_file)
    assert config.enabled is True
    assert config.model == "test-model"
    assert config.resolve_api_key() == "env-secret"

    monkeypatch.delenv("OPENAI_API_KEY")
    assert config.resolve_api_key() == "file-secret"


def test_missing_key_file_resolves_to_none(tmp_path: Path, monkeypatch: MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    config = AIConfig(api_key_path=tmp_path / "absent.txt")
    assert config.resolve_api_key() is None


def test_yaml_config_with_retry_block(tmp_path: Path) -> None:
    config_file = tmp_path / "ai.yaml"
    config_file.write_text(
        "enabled: false\n"
        "chat_model: chat-test\n"
        "retry:\n"
        "  retries: 4\n"
        "  backoff_factor: 0.25\n",
        encoding="utf-8",
    )
    config = AIConfig.load(config_file)
    assert config.enabled is False
    assert config.chat_model == "chat-test"
    assert config.retry == RetryPolicy(timeout_seconds=60.0, retries=4, backoff_factor=0.25, circuit_breaker_failures=3)


def test_from_env() -> None:
    config = AIConfig.from_env(
        {
            "OPENAI_MODEL": "mini",
            "OPENAI_RETRIES": "3",
            "OPENAI_TIMEOUT_SECONDS": "12.5",
            "DISABLE_OPENAI": "true",
        }
    )
    assert config.model == "mini"
    assert config.chat_model == "gpt-4o"
    assert config.retry.retries == 3
    assert config.retry.timeout_seconds == 12.5
    assert config.enabled is False


def test_load_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        AIConfig.load(tmp_path / "nope.json")
