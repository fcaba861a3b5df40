"""Vision providers and their registry."""

from typing import Dict, List, Type

from .base import EMPTY_RESULT, REQUEST_TIMEOUT_SECONDS, ProviderClient, ProviderConfig, WireRequest
from .gemini import GeminiProvider
from .qwen import QwenProvider

DEFAULT_PROVIDER = "gemini"

PROVIDERS: Dict[str, Type[ProviderClient]] = {
    GeminiProvider.name: GeminiProvider,
    QwenProvider.name: QwenProvider,
}


def available_providers() -> List[str]:
    return list(PROVIDERS)


def get_provider(name: str) -> ProviderClient:
    """Instantiate the provider registered under ``name``."""

    try:
        provider_cls = PROVIDERS[name]
    except KeyError as exc:
        raise ValueError(f"Unsupported provider: {name!r}") from exc
    return provider_cls()


__all__ = [
    "DEFAULT_PROVIDER",
    "EMPTY_RESULT",
    "PROVIDERS",
    "REQUEST_TIMEOUT_SECONDS",
    "GeminiProvider",
    "ProviderClient",
    "ProviderConfig",
    "QwenProvider",
    "WireRequest",
    "available_providers",
    "get_provider",
]
