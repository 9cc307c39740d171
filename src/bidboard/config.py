from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import SimpleNamespace
from typing import Mapping, Optional

from .pricing import ALLOW, NEGATIVE_VALUE_POLICIES


_BOOLEAN_TRUE = {"1", "true", "yes", "on"}
_BOOLEAN_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Config:
    """Runtime configuration assembled from environment variables and CLI options."""

    default_name: str = "New Project Proposal"
    default_location: str = "Tulsa, OK"
    default_margin: float = 15.0
    default_tax: float = 8.5
    due_in_days: int = 7
    negative_values: str = ALLOW
    strict_lookups: bool = False
    discard_stale_responses: bool = True
    disable_ai: bool = False
    ai_config_path: Optional[Path] = None
    verbose: bool = False


def _to_path(value: object | None) -> Optional[Path]:
    if value is None:
        return None
    if isinstance(value, Path):
        return value.expanduser().resolve()
    text = str(value).strip()
    if not text:
        return None
    return Path(text).expanduser().resolve()


def _to_int(value: object | None) -> Optional[int]:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(float(text))
    except ValueError:
        return None


def _to_float(value: object | None) -> Optional[float]:
    if value is None:
        return None
    text = str(value).replace("%", "").strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _flag(value: object | None, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _BOOLEAN_TRUE:
        return True
    if text in _BOOLEAN_FALSE:
        return False
    return default


def _policy(value: object | None) -> str:
    text = str(value or "").strip().lower()
    if text in NEGATIVE_VALUE_POLICIES:
        return text
    return ALLOW


def _namespace(cli_args: object | None) -> SimpleNamespace:
    if cli_args is None:
        return SimpleNamespace()
    if isinstance(cli_args, SimpleNamespace):
        return cli_args
    if hasattr(cli_args, "__dict__"):
        return SimpleNamespace(**{k: v for k, v in vars(cli_args).items()})
    return SimpleNamespace()


def load_config(env: Mapping[str, str], cli_args: object | None = None) -> Config:
    """Build a runtime :class:`Config` from environment variables and CLI options."""

    defaults = Config()
    default_name = env.get("BIDBOARD_DEFAULT_NAME", "").strip() or defaults.default_name
    default_location = env.get("BIDBOARD_DEFAULT_LOCATION", "").strip() or defaults.default_location
    default_margin = _to_float(env.get("BIDBOARD_DEFAULT_MARGIN"))
    default_tax = _to_float(env.get("BIDBOARD_DEFAULT_TAX"))
    due_in_days = _to_int(env.get("BIDBOARD_DUE_IN_DAYS"))
    negative_values = _policy(env.get("BIDBOARD_NEGATIVE_VALUES"))
    strict_lookups = _flag(env.get("BIDBOARD_STRICT_LOOKUPS"))
    discard_stale = _flag(env.get("BIDBOARD_DISCARD_STALE"), default=True)
    disable_ai = _flag(env.get("DISABLE_OPENAI"))
    ai_config_path = _to_path(env.get("BIDBOARD_AI_CONFIG"))
    verbose = False

    cli_ns = _namespace(cli_args)
    if getattr(cli_ns, "disable_ai", False):
        disable_ai = True
    if getattr(cli_ns, "ai_config", None):
        ai_config_path = _to_path(cli_ns.ai_config) or ai_config_path
    if getattr(cli_ns, "strict", False):
        strict_lookups = True
    if getattr(cli_ns, "verbose", False):
        verbose = bool(cli_ns.verbose)

    return Config(
        default_name=default_name,
        default_location=default_location,
        default_margin=defaults.default_margin if default_margin is None else default_margin,
        default_tax=defaults.default_tax if default_tax is None else default_tax,
        due_in_days=defaults.due_in_days if due_in_days is None else max(0, due_in_days),
        negative_values=negative_values,
        strict_lookups=strict_lookups,
        discard_stale_responses=discard_stale,
        disable_ai=disable_ai,
        ai_config_path=ai_config_path,
        verbose=verbose,
    )


__all__ = ["Config", "load_config"]
