"""OpenAI provider."""

import logging

from jobagent.llm.base import LLMProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """Provider using the OpenAI Chat Completions API."""

    @property
    def provider_id(self) -> str:
        return "openai"

    @property
    def default_model(self) -> str:
        return "gpt-4o"

    @property
    def cleanup_model(self) -> str:
        return "gpt-4o-mini"

    @property
    def env_var(self) -> str:
        return "OPENAI_API_KEY"

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
            import openai
        except ImportError:
            msg = "openai is required. Install with: pip install 'jobagent[openai]'"
            raise ImportError(msg) from None

        client = openai.OpenAI(api_key=api_key)
        use_model = model or self.default_model

        messages = []
        if system is not None:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        logger.info("Sending %d chars to OpenAI API (%s)...", len(prompt), use_model)
        response = client.chat.completions.create(
            model=use_model,
            max_tokens=max_tokens,
            messages=messages,
        )

        return response.choices[0].message.content or ""
