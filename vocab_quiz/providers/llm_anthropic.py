from __future__ import annotations

import os

import httpx

from vocab_quiz.errors import UpstreamError
from vocab_quiz.providers.base import DEFAULT_TIMEOUT, LLMProvider


class AnthropicProvider(LLMProvider):
    def __init__(
        self,
        model: str = "claude-sonnet-4-20250514",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        import anthropic
        self._errors = anthropic.APIError
        self.client = anthropic.AsyncAnthropic(
            api_key=os.environ.get("ANTHROPIC_API_KEY", ""),
            http_client=httpx.AsyncClient(transport=transport) if transport else None,
        )
        self.model = model

    async def generate(
        self, prompt: str, timeout: float = DEFAULT_TIMEOUT, temperature: float = 0.7
    ) -> str:
        try:
            message = await self.client.messages.create(
                model=self.model,
                max_tokens=1024,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
                timeout=timeout,
            )
        except self._errors as e:
            raise UpstreamError(f"Anthropic API error: {e}") from e

        content = getattr(message, "content", None)
        if not content:
            return ""
        text = getattr(content[0], "text", None)
        if not isinstance(text, str):
            raise UpstreamError(
                f"Anthropic returned a non-text block: {getattr(content[0], 'type', '?')}"
            )
        return text

    def name(self) -> str:
        return f"anthropic/{self.model}"
