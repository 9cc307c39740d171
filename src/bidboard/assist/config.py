"""Configuration for the AI assistant."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

import yaml

LOGGER = logging.getLogger(__name__)


@dataclass
class RetryPolicy:
    """Retry/backoff policy for AI requests."""

    timeout_seconds: float = 60.0
    retries: int = 1
    backoff_factor: float = 0.5
    circuit_breaker_failures: int = 3

    @classmethod
    def from_dict(cls, raw: Mapping[str, object] | None) -> "RetryPolicy":
        data = dict(raw or {})
        default = cls()
        return cls(
            timeout_seconds=float(data.get("timeout_seconds", default.timeout_seconds)),
            retries=int(data.get("retries", default.retries)),
            backoff_factor=float(data.get("backoff_factor", default.backoff_factor)),
            circuit_breaker_failures=int(data.get("circuit_breaker_failures", default.circuit_breaker_failures)),
        )


@dataclass
class AIConfig:
    enabled: bool = True
    provider: str = "openai"
    api_key_path: Path | None = None
    api_key_env: str = "OPENAI_API_KEY"
    model: str = "gpt-4o-mini"
    chat_model: str = "gpt-4o"
    base_url: Optional[str] = None
    max_output_tokens: int = 2048
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    def resolve_api_key(self) -> Optional[str]:
        """Return the API key from the environment or configured file."""
        if self.api_key_env and self.api_key_env in os.environ:
            token = os.environ[self.api_key_env].strip()
            if token:
                return token
        if self.api_key_path:
            try:
                content = Path(self.api_key_path).expanduser().read_text(encoding="utf-8")
            except FileNotFoundError:
                return None
            except OSError:
                LOGGER.debug("Unable to read AI API key from %s", self.api_key_path)
                return None
            token = content.strip()
            return token or None
        return None

    @classmethod
    def load(cls, path: Path) -> "AIConfig":
        """Load configuration from a YAML or JSON file."""
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        with path.open("r", encoding="utf-8") as f:
            if path.suffix.lower() in {".yaml", ".yml"}:
                raw = yaml.safe_load(f)
            else:
                raw = json.load(f)
        # A file may hold the AI block alone or nested under "ai".
        if isinstance(raw, dict) and isinstance(raw.get("ai"), dict):
            raw = raw["ai"]
        return cls.from_dict(raw or {})

    @classmethod
    def from_dict(cls, raw: Mapping[str, object]) -> "AIConfig":
        default = cls()
        api_key_path = Path(str(raw["api_key_path"])).expanduser() if raw.get("api_key_path") else None
        return cls(
            enabled=bool(raw.get("enabled", True)),
            provider=str(raw.get("provider", default.provider)),
            api_key_path=api_key_path,
            api_key_env=str(raw.get("api_key_env", default.api_key_env)),
            model=str(raw.get("model", default.model)),
            chat_model=str(raw.get("chat_model", default.chat_model)),
            base_url=str(raw["base_url"]) if raw.get("base_url") else None,
            max_output_tokens=int(raw.get("max_output_tokens", default.max_output_tokens)),
            retry=RetryPolicy.from_dict(raw.get("retry")),  # type: ignore[arg-type]
        )

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> "AIConfig":
        default = cls()
        retry = RetryPolicy(
            timeout_seconds=float(env.get("OPENAI_TIMEOUT_SECONDS", default.retry.timeout_seconds)),
            retries=int(env.get("OPENAI_RETRIES", default.retry.retries)),
            backoff_factor=float(env.get("OPENAI_BACKOFF_FACTOR", default.retry.backoff_factor)),
            circuit_breaker_failures=int(
                env.get("OPENAI_CIRCUIT_BREAKER_FAILURES", default.retry.circuit_breaker_failures)
            ),
        )
        key_file = env.get("OPENAI_API_KEY_FILE", "").strip()
        return cls(
            enabled=env.get("DISABLE_OPENAI", "").strip().lower() not in {"1", "true", "yes", "on"},
            api_key_path=Path(key_file).expanduser() if key_file else None,
            model=env.get("OPENAI_MODEL", "").strip() or default.model,
            chat_model=env.get("OPENAI_CHAT_MODEL", "").strip() or default.chat_model,
            base_url=env.get("OPENAI_BASE_URL", "").strip() or None,
            retry=retry,
        )


__all__ = ["AIConfig", "RetryPolicy"]
