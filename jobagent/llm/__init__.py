"""Provider registry with lazy loading.

Usage:
    from jobagent.llm import get_provider

    provider = get_provider("anthropic")
    text = provider.complete(prompt, model=provider.cleanup_model)
"""

import importlib

from jobagent.core.errors import ConfigurationError
from jobagent.llm.base import LLMProvider

__all__ = ["LLMProvider", "available_providers", "get_provider"]

# Lazy registry: maps provider name → (module_path, class_name)
_REGISTRY: dict[str, tuple[str, str]] = {
    "anthropic": ("jobagent.llm.anthropic", "AnthropicProvider"),
    "openai": ("jobagent.llm.openai", "OpenAIProvider"),
}


def get_provider(name: str) -> LLMProvider:
    """Instantiate and return a provider by name.

    Raises:
        ConfigurationError: If the provider name is unknown.
    """
    if name not in _REGISTRY:
        valid = ", ".join(sorted(_REGISTRY))
        msg = f"Unknown LLM provider '{name}'. Available: {valid}"
        raise ConfigurationError(msg)

    module_path, class_name = _REGISTRY[name]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    return cls()  # type: ignore[no-any-return]


def available_providers() -> list[str]:
    """Return sorted list of registered provider names."""
    return sorted(_REGISTRY)
