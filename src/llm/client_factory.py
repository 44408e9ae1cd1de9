# src/llm/client_factory.py — v1
"""Factory: instantiate the oracle's vision client from provider name."""

from __future__ import annotations

import importlib
import logging

from designscout.config.settings import Settings
from designscout.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)

# Registry of provider name → adapter class path (lazy import).
_PROVIDER_REGISTRY: dict[str, str] = {
    "anthropic": "designscout.llm.adapters.anthropic_adapter.AnthropicAdapter",
    "openai": "designscout.llm.adapters.openai_adapter.OpenAIAdapter",
}


class UnsupportedProviderError(ValueError):
    """Raised when a provider is not registered."""


def parse_assignment(value: str) -> tuple[str, str] | None:
    """Parse a 'provider:model' string. Returns None if malformed."""
    if not value or ":" not in value:
        return None
    provider, model = value.split(":", 1)
    return provider.strip(), model.strip()


def create_llm_client(
    provider: str,
    model: str,
    settings: Settings | None = None,
    **kwargs: object,
) -> BaseLLMClient:
    """Instantiate the adapter registered for ``provider``.

    Raises:
        UnsupportedProviderError: If provider is not registered.
    """
    if provider not in _PROVIDER_REGISTRY:
        raise UnsupportedProviderError(
            f"Unsupported LLM provider: {provider!r}. "
            f"Available: {', '.join(sorted(_PROVIDER_REGISTRY))}"
        )

    adapter_cls = _import_class(_PROVIDER_REGISTRY[provider])

    init_kwargs = dict(kwargs)
    init_kwargs["model"] = model
    if settings is not None:
        if provider == "anthropic":
            init_kwargs.setdefault("api_key", settings.anthropic_api_key)
        elif provider == "openai":
            init_kwargs.setdefault("api_key", settings.openai_api_key)

    logger.debug("Creating LLM client: provider=%s, model=%s", provider, model)
    return adapter_cls(**init_kwargs)


def create_oracle_client(settings: Settings) -> BaseLLMClient:
    """Client for the ranking oracle, from ORACLE_PROVIDER / ORACLE_MODEL.

    ORACLE_MODEL may also carry the provider as 'provider:model'.
    """
    parsed = parse_assignment(settings.oracle_model)
    if parsed and parsed[0] in _PROVIDER_REGISTRY:
        provider, model = parsed
    else:
        provider, model = settings.oracle_provider, settings.oracle_model
    return create_llm_client(provider, model, settings=settings)


def register_provider(name: str, class_path: str) -> None:
    """Register a custom provider adapter (fully qualified class path)."""
    _PROVIDER_REGISTRY[name] = class_path
    logger.info("Registered LLM provider: %s -> %s", name, class_path)


def _import_class(class_path: str) -> type:
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
