"""Tests for settings and provider configuration resolution."""
from __future__ import annotations

import json

import pytest

from snaptext.config import (
    get_settings,
    load_config_file,
    resolve_provider_config,
    save_config_file,
    validate_api_key,
)
from snaptext.errors import ErrorKind, OcrError
from snaptext.providers import GeminiProvider, QwenProvider

ENV_VARS = (
    "SNAPTEXT_PROVIDER",
    "GEMINI_API_KEY",
    "QWEN_API_KEY",
    "DASHSCOPE_API_KEY",
    "SNAPTEXT_MODEL",
    "SNAPTEXT_PROMPT",
    "SNAPTEXT_REQUEST_TIMEOUT",
)


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    path = tmp_path / "config.json"
    monkeypatch.setenv("SNAPTEXT_CONFIG_PATH", str(path))
    get_settings.cache_clear()
    yield path
    get_settings.cache_clear()


def _write(path, data) -> None:
    path.write_text(json.dumps(data), encoding="utf-8")


def test_missing_key_raises_config_missing(config_path) -> None:
    with pytest.raises(OcrError) as excinfo:
        resolve_provider_config()
    assert excinfo.value.kind is ErrorKind.CONFIG_MISSING
    assert "gemini_api_key" in excinfo.value.message


def test_environment_supplies_defaults(config_path, monkeypatch) -> None:
    monkeypatch.setenv("GEMINI_API_KEY", "AIza-env")
    get_settings.cache_clear()

    config = resolve_provider_config()

    assert config.provider == "gemini"
    assert config.api_key == "AIza-env"
    assert config.model == GeminiProvider.default_model
    assert config.prompt == GeminiProvider.default_prompt


def test_config_file_overrides_environment(config_path, monkeypatch) -> None:
    monkeypatch.setenv("SNAPTEXT_PROVIDER", "gemini")
    monkeypatch.setenv("GEMINI_API_KEY", "AIza-env")
    _write(config_path, {"provider": "qwen", "qwen_api_key": "sk-file", "model": "qwen-vl-max"})
    get_settings.cache_clear()

    config = resolve_provider_config()

    assert config.provider == "qwen"
    assert config.api_key == "sk-file"
    assert config.model == "qwen-vl-max"
    assert config.prompt == QwenProvider.default_prompt


def test_dashscope_key_is_accepted_for_qwen(config_path, monkeypatch) -> None:
    monkeypatch.setenv("DASHSCOPE_API_KEY", "sk-dash")
    get_settings.cache_clear()

    config = resolve_provider_config(overrides={"provider": "qwen"})

    assert config.provider == "qwen"
    assert config.api_key == "sk-dash"


def test_legacy_api_key_is_read_as_gemini_key(config_path) -> None:
    _write(config_path, {"api_key": "AIza-legacy"})
    assert resolve_provider_config().api_key == "AIza-legacy"


def test_unknown_provider_falls_back_to_default(config_path) -> None:
    _write(config_path, {"provider": "tesseract", "gemini_api_key": "AIza-file"})
    assert resolve_provider_config().provider == "gemini"


def test_overrides_ignore_empty_values(config_path) -> None:
    _write(config_path, {"provider": "qwen", "qwen_api_key": "sk-file"})
    assert resolve_provider_config(overrides={"provider": None}).provider == "qwen"


def test_config_file_round_trip_creates_parent(tmp_path) -> None:
    path = tmp_path / "nested" / "config.json"
    save_config_file(path, {"provider": "qwen"})
    assert load_config_file(path) == {"provider": "qwen"}


@pytest.mark.parametrize("content", ["not json", "[1, 2]"])
def test_unreadable_config_file_is_ignored(tmp_path, content: str) -> None:
    path = tmp_path / "config.json"
    path.write_text(content, encoding="utf-8")
    assert load_config_file(path) == {}


def test_validate_api_key() -> None:
    assert validate_api_key("gemini", "AIzaSyExample") is None
    assert validate_api_key("gemini", "sk-123") is not None
    assert validate_api_key("qwen", "sk-123") is None
    assert validate_api_key("qwen", "  ") == "API key is empty"
