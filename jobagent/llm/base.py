"""Abstract base class for language-understanding providers."""

import os
from abc import ABC, abstractmethod

from jobagent.core.errors import ConfigurationError

# Values shipped in example env files; treated as "not configured".
_PLACEHOLDER_KEYS = {"sk-ant-...", "sk-...", "changeme"}


class LLMProvider(ABC):
    """Base class that every provider must implement.

    Providers are synchronous request/response clients; async callers run
    ``complete`` in a worker thread.
    """

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'anthropic')."""

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Model used for structured extraction when no override is given."""

    @property
    @abstractmethod
    def cleanup_model(self) -> str:
        """Cheaper model used for description cleanup when no override is given."""

    @property
    @abstractmethod
    def env_var(self) -> str:
        """Environment variable holding the API key."""

    @abstractmethod
    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        max_tokens: int = 1024,
    ) -> str:
        """Send one user prompt and return the text of the answer.

        Returns "" when the answer holds no text block.
        """

    def api_key(self) -> str:
        """Return the configured API key.

        Raises:
            ConfigurationError: If the key is missing or still a placeholder.
        """
        key = os.environ.get(self.env_var, "").strip()
        if not key or key in _PLACEHOLDER_KEYS:
            msg = f"{self.env_var} is not configured. Add your key to the environment."
            raise ConfigurationError(msg)
        return key
