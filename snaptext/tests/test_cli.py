"""Tests for the command line interface."""
from __future__ import annotations

import io
import json

import pytest
from click.testing import CliRunner
from PIL import Image

from snaptext.cli.commands import ocr
from snaptext.cli.main import cli
from snaptext.config import get_settings
from snaptext.errors import ErrorKind, OcrError, OcrResult
from snaptext.vision.geometry import SelectionRect


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    for name in ("SNAPTEXT_PROVIDER", "GEMINI_API_KEY", "QWEN_API_KEY", "DASHSCOPE_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    path = tmp_path / "config.json"
    monkeypatch.setenv("SNAPTEXT_CONFIG_PATH", str(path))
    get_settings.cache_clear()
    yield path
    get_settings.cache_clear()


@pytest.fixture
def screenshot(tmp_path):
    path = tmp_path / "page.png"
    buffer = io.BytesIO()
    Image.new("RGB", (200, 100), "white").save(buffer, format="PNG")
    path.write_bytes(buffer.getvalue())
    return path


def test_parse_rect() -> None:
    assert ocr.parse_rect("10, 20, 30, 40") == SelectionRect(10, 20, 30, 40)


@pytest.mark.parametrize("value", ["1,2,3", "a,b,c,d", "0,0,0,10"])
def test_parse_rect_rejects_bad_values(value: str) -> None:
    from click import BadParameter

    with pytest.raises(BadParameter):
        ocr.parse_rect(value)


def test_ocr_command_prints_raw_text(screenshot, monkeypatch) -> None:
    seen = {}

    async def _fake(image, rect, scale, provider):
        seen.update(rect=rect, scale=scale, provider=provider)
        return OcrResult.success("Hello World")

    monkeypatch.setattr(ocr, "_recognize", _fake)

    result = CliRunner().invoke(cli, ["ocr", str(screenshot), "--scale", "2", "--raw", "--provider", "qwen"])

    assert result.exit_code == 0, result.output
    assert result.output.strip() == "Hello World"
    assert seen == {"rect": SelectionRect(0, 0, 100, 50), "scale": 2.0, "provider": "qwen"}


def test_ocr_command_exits_nonzero_on_error(screenshot, monkeypatch) -> None:
    async def _fake(image, rect, scale, provider):
        return OcrResult.failure(OcrError(ErrorKind.CONFIG_MISSING, "No key configured"))

    monkeypatch.setattr(ocr, "_recognize", _fake)

    result = CliRunner().invoke(cli, ["ocr", str(screenshot), "--rect", "0,0,50,50"])

    assert result.exit_code == 1
    assert "No key configured" in result.output


def test_config_set_and_get(config_path) -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["config", "set", "provider", "qwen"])
    assert result.exit_code == 0, result.output
    result = runner.invoke(cli, ["config", "set", "qwen_api_key", "sk-1234567890"])
    assert result.exit_code == 0, result.output

    stored = json.loads(config_path.read_text(encoding="utf-8"))
    assert stored == {"provider": "qwen", "qwen_api_key": "sk-1234567890"}

    result = runner.invoke(cli, ["config", "get", "qwen_api_key"])
    assert "sk-1...7890" in result.output
    assert "sk-1234567890" not in result.output


def test_config_set_rejects_unknown_provider(config_path) -> None:
    result = CliRunner().invoke(cli, ["config", "set", "provider", "tesseract"])
    assert result.exit_code != 0
    assert not config_path.exists()


def test_config_set_warns_on_unusual_gemini_key(config_path) -> None:
    result = CliRunner().invoke(cli, ["config", "set", "gemini_api_key", "not-a-google-key"])
    assert result.exit_code == 0
    assert "AIza" in result.output


def test_config_reset(config_path) -> None:
    config_path.write_text(json.dumps({"provider": "qwen"}), encoding="utf-8")
    result = CliRunner().invoke(cli, ["config", "reset", "--yes"])
    assert result.exit_code == 0
    assert json.loads(config_path.read_text(encoding="utf-8")) == {}


def test_version_option() -> None:
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_capture_provider_flag_is_passed_as_override(config_path, monkeypatch) -> None:
    from snaptext.cli.commands import capture

    monkeypatch.delenv("PLAYWRIGHT_HEADLESS", raising=False)
    config_path.write_text(json.dumps({"provider": "gemini", "gemini_api_key": "AIza-file"}), encoding="utf-8")
    seen = {}

    async def _fake(url, keep_open, settings, overrides):
        seen.update(url=url, settings=settings, overrides=overrides)
        return 0

    monkeypatch.setattr(capture, "_run_capture", _fake)

    result = CliRunner().invoke(cli, ["capture", "https://example.com", "--provider", "qwen", "--headless"])

    assert result.exit_code == 0, result.output
    assert seen["overrides"] == {"provider": "qwen"}
    assert seen["settings"].playwright_headless is True
    assert get_settings().playwright_headless is False
    assert get_settings().provider == "gemini"
