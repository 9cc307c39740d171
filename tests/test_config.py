from __future__ import annotations

from types import SimpleNamespace

from bidboard.config import Config, load_config
from bidboard.pricing import ALLOW, CLAMP


def test_defaults_without_environment():
    cfg = load_config({})
    assert cfg == Config()
    assert cfg.default_margin == 15.0
    assert cfg.default_tax == 8.5
    assert cfg.negative_values == ALLOW
    assert cfg.discard_stale_responses is True


def test_environment_overrides(tmp_path):
    cfg = load_config(
        {
            "BIDBOARD_DEFAULT_MARGIN": "12.5%",
            "BIDBOARD_DEFAULT_TAX": "0",
            "BIDBOARD_DUE_IN_DAYS": "10",
            "BIDBOARD_DEFAULT_LOCATION": "Broken Arrow, OK",
            "BIDBOARD_NEGATIVE_VALUES": "Clamp",
            "BIDBOARD_STRICT_LOOKUPS": "yes",
            "BIDBOARD_DISCARD_STALE": "off",
            "DISABLE_OPENAI": "1",
            "BIDBOARD_AI_CONFIG": str(tmp_path / "ai.yaml"),
        }
    )
    assert cfg.default_margin == 12.5
    assert cfg.default_tax == 0.0
    assert cfg.due_in_days == 10
    assert cfg.default_location == "Broken Arrow, OK"
    assert cfg.negative_values == CLAMP
    assert cfg.strict_lookups is True
    assert cfg.discard_stale_responses is False
    assert cfg.disable_ai is True
    assert cfg.ai_config_path == (tmp_path / "ai.yaml").resolve()


def test_garbage_values_fall_back():
    cfg = load_config({"BIDBOARD_DEFAULT_MARGIN": "lots", "BIDBOARD_NEGATIVE_VALUES": "maybe"})
    assert cfg.default_margin == 15.0
    assert cfg.negative_values == ALLOW


def test_cli_options_take_precedence():
    args = SimpleNamespace(disable_ai=True, strict=True, verbose=True, ai_config=None)
    cfg = load_config({"DISABLE_OPENAI": "0"}, args)
    assert cfg.disable_ai is True
    assert cfg.strict_lookups is True
    assert cfg.verbose is True
