"""Configuration helpers: environment settings plus the persisted JSON config file."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import ErrorKind, OcrError
from .providers import DEFAULT_PROVIDER, ProviderConfig, available_providers, get_provider

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "~/.snaptext/config.json"

# Keys accepted in the JSON config file. ``api_key`` is the legacy name of the Gemini key.
CONFIG_KEYS = ("provider", "gemini_api_key", "qwen_api_key", "model", "prompt")
LEGACY_GEMINI_KEY = "api_key"


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env(name: str, *fallbacks: str) -> Optional[str]:
    for key in (name, *fallbacks):
        value = os.getenv(key)
        if value:
            return value
    return None


@dataclass
class Settings:
    """Container for environment-driven settings."""

    provider: str = field(default_factory=lambda: os.getenv("SNAPTEXT_PROVIDER", DEFAULT_PROVIDER))
    gemini_api_key: Optional[str] = field(default_factory=lambda: _env("GEMINI_API_KEY"))
    qwen_api_key: Optional[str] = field(default_factory=lambda: _env("QWEN_API_KEY", "DASHSCOPE_API_KEY"))
    model: Optional[str] = field(default_factory=lambda: _env("SNAPTEXT_MODEL"))
    prompt: Optional[str] = field(default_factory=lambda: _env("SNAPTEXT_PROMPT"))
    request_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("SNAPTEXT_REQUEST_TIMEOUT", "30.0"))
    )
    config_path: str = field(default_factory=lambda: os.getenv("SNAPTEXT_CONFIG_PATH", DEFAULT_CONFIG_PATH))
    playwright_browser: str = field(default_factory=lambda: os.getenv("PLAYWRIGHT_BROWSER", "chromium"))
    # Selecting a region needs a visible window, so headed is the default.
    playwright_headless: bool = field(default_factory=lambda: _env_flag("PLAYWRIGHT_HEADLESS", default=False))
    log_level: str = field(default_factory=lambda: os.getenv("SNAPTEXT_LOG_LEVEL", "INFO"))

    def resolved_config_path(self) -> Path:
        return Path(self.config_path).expanduser()

    def stored(self) -> Dict[str, Any]:
        """Return the values persisted in the JSON config file."""

        return load_config_file(self.resolved_config_path())

    def api_key_for(self, provider: str) -> Optional[str]:
        if provider == "qwen":
            return self.qwen_api_key
        return self.gemini_api_key


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


def load_config_file(path: Path) -> Dict[str, Any]:
    """Load the JSON config file, returning an empty mapping when it is absent."""

    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable config file", extra={"path": str(path), "reason": str(exc)})
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file without a JSON object", extra={"path": str(path)})
        return {}
    return data


def save_config_file(path: Path, config: Mapping[str, Any]) -> None:
    """Persist ``config`` as pretty-printed JSON, creating the parent directory."""

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(dict(config), handle, indent=2, ensure_ascii=False)


def _stored_api_key(stored: Mapping[str, Any], provider: str) -> Optional[str]:
    if provider == "qwen":
        return stored.get("qwen_api_key")
    return stored.get("gemini_api_key") or stored.get(LEGACY_GEMINI_KEY)


def resolve_provider_config(
    settings: Optional[Settings] = None,
    *,
    overrides: Optional[Mapping[str, Any]] = None,
) -> ProviderConfig:
    """Build the read-only :class:`ProviderConfig` for the active provider.

    Values come from, in increasing priority: environment settings, the JSON
    config file, then ``overrides`` (typically CLI flags). Model and prompt fall
    back to the provider's documented defaults. Raises ``ConfigMissing`` when the
    active provider has no API key.
    """

    settings = settings or get_settings()
    merged: Dict[str, Any] = {
        "provider": settings.provider,
        "model": settings.model,
        "prompt": settings.prompt,
    }
    stored = settings.stored()
    merged.update({key: value for key, value in stored.items() if key in ("provider", "model", "prompt") and value})
    if overrides:
        merged.update({key: value for key, value in overrides.items() if value})

    provider_name = str(merged.get("provider") or DEFAULT_PROVIDER).strip().lower()
    if provider_name not in available_providers():
        logger.warning("Unknown provider, using default", extra={"provider": provider_name})
        provider_name = DEFAULT_PROVIDER
    provider = get_provider(provider_name)

    api_key = (overrides or {}).get("api_key") or _stored_api_key(stored, provider_name) or settings.api_key_for(provider_name)
    if not api_key:
        raise OcrError(
            ErrorKind.CONFIG_MISSING,
            f"{provider.key_label} is not configured. Run 'snaptext config set {provider.config_key} <key>' "
            "or set the matching environment variable.",
        )

    return ProviderConfig(
        provider=provider_name,
        api_key=str(api_key).strip(),
        model=str(merged.get("model") or provider.default_model),
        prompt=str(merged.get("prompt") or provider.default_prompt),
    )


def validate_api_key(provider: str, api_key: str) -> Optional[str]:
    """Return a warning when ``api_key`` does not look like a key for ``provider``."""

    if not api_key.strip():
        return "API key is empty"
    if provider == "gemini" and not api_key.startswith("AIza"):
        return "Gemini API keys normally start with 'AIza'"
    return None
