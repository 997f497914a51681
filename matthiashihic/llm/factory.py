"""Factory for creating LLM instances."""

from typing import Any, Dict, Optional, Type

from .base import BaseLLM, LLMError

# Provider class registry - populated when provider modules are imported
_PROVIDER_CLASSES: Dict[str, Type[BaseLLM]] = {}


def register_provider(name: str, provider_class: Type[BaseLLM]) -> None:
    """
    Register a provider class.

    Args:
        name: Provider name (e.g., 'openai')
        provider_class: The provider class to register
    """
    _PROVIDER_CLASSES[name.lower()] = provider_class


def _load_providers() -> None:
    """Import provider modules so they register themselves."""
    from . import openai_llm  # noqa: F401


def get_provider_class(provider: str) -> Type[BaseLLM]:
    """
    Get a provider class by name.

    Raises:
        LLMError: If the provider is not registered
    """
    provider_key = provider.lower()
    if provider_key not in _PROVIDER_CLASSES:
        _load_providers()
    if provider_key not in _PROVIDER_CLASSES:
        available = ", ".join(sorted(_PROVIDER_CLASSES.keys()))
        raise LLMError(
            f"Unknown LLM provider '{provider}'. "
            f"Available providers: {available or 'none'}"
        )
    return _PROVIDER_CLASSES[provider_key]


def create_llm(
    name: str,
    provider: str,
    model: str,
    config: Optional[Dict[str, Any]] = None,
) -> BaseLLM:
    """
    Create an LLM instance.

    Args:
        name: Logical name for the LLM instance
        provider: Provider name (e.g., 'openai')
        model: Model identifier
        config: Provider-specific configuration

    Example:
        >>> llm = create_llm('program', 'openai', 'gpt-4', {'api_key': 'sk-...'})
    """
    provider_class = get_provider_class(provider)
    return provider_class(name, model, config)
