"""LLM provider registry and construction from config."""

from __future__ import annotations

from typing import TYPE_CHECKING

from saaksh.errors import ConfigurationError

if TYPE_CHECKING:
    from saaksh.llm.base import BaseLLMProvider

PROVIDERS: dict[str, type[BaseLLMProvider]] = {}


def register_provider(name: str):
    """Decorator to register an LLM provider."""

    def decorator(cls):
        PROVIDERS[name] = cls
        return cls

    return decorator


def build_provider(provider_cfg: dict) -> BaseLLMProvider:
    """Instantiate a provider from ``get_llm_provider_config`` output."""
    provider_type = provider_cfg["provider_type"]
    if provider_type not in PROVIDERS:
        raise ConfigurationError(f"Unknown LLM provider type: {provider_type}")

    cls = PROVIDERS[provider_type]
    if cls.requires_api_key and not provider_cfg.get("api_key"):
        raise ConfigurationError(
            f"No API key configured for LLM provider "
            f"'{provider_cfg['provider_name']}'"
        )

    return cls(
        api_key=provider_cfg.get("api_key", ""),
        base_url=provider_cfg.get("base_url", ""),
        default_model=provider_cfg["model"],
        max_retries=provider_cfg.get("max_retries", 3),
        initial_backoff=provider_cfg.get("initial_backoff", 1.0),
        max_backoff=provider_cfg.get("max_backoff", 60.0),
        timeout=provider_cfg.get("timeout", 120),
        json_mode=provider_cfg.get("json_mode", False),
    )


# Import implementations to trigger registration
from saaksh.llm.anthropic_provider import AnthropicProvider  # noqa: E402, F401
from saaksh.llm.gemini import GeminiProvider  # noqa: E402, F401
from saaksh.llm.openai_compat import OpenAICompatibleProvider  # noqa: E402, F401
