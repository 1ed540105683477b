"""Anthropic Claude provider."""

import logging

from jobagent.llm.base import LLMProvider

logger = logging.getLogger(__name__)


class AnthropicProvider(LLMProvider):
    """Provider using the Anthropic Messages API."""

    @property
    def provider_id(self) -> str:
        return "anthropic"

    @property
    def default_model(self) -> str:
        return "claude-sonnet-4-5-20250929"

    @property
    def cleanup_model(self) -> str:
        return "claude-haiku-4-5-20251001"

    @property
    def env_var(self) -> str:
        return "ANTHROPIC_API_KEY"

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        max_tokens: int = 1024,
    ) -> str:
        api_key = self.api_key()

        try:
            import anthropic
        except ImportError:
            msg = "anthropic is required. Install with: pip install anthropic"
            raise ImportError(msg) from None

        client = anthropic.Anthropic(api_key=api_key)
        use_model = model or self.default_model

        logger.info("Sending %d chars to Anthropic API (%s)...", len(prompt), use_model)
        kwargs = {"system": system} if system is not None else {}
        message = client.messages.create(
            model=use_model,
            max_tokens=max_tokens,
            messages=[{"role": "user", "content": prompt}],
            **kwargs,
        )

        for block in message.content:
            if getattr(block, "type", None) == "text":
                return block.text  # type: ignore[no-any-return]
        logger.warning("Anthropic response has no text block")
        return ""
