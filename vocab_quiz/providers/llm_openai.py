from __future__ import annotations

import os

import httpx

from vocab_quiz.errors import UpstreamError
from vocab_quiz.providers.base import DEFAULT_TIMEOUT, LLMProvider


class OpenAIProvider(LLMProvider):
    def __init__(
        self,
        model: str = "gpt-4o-mini",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        import openai
        self._errors = openai.OpenAIError
        self.client = openai.AsyncOpenAI(
            api_key=os.environ.get("OPENAI_API_KEY", ""),
            http_client=httpx.AsyncClient(transport=transport) if transport else None,
        )
        self.model = model

    async def generate(
        self, prompt: str, timeout: float = DEFAULT_TIMEOUT, temperature: float = 0.7
    ) -> str:
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
                timeout=timeout,
            )
        except self._errors as e:
            raise UpstreamError(f"OpenAI API error: {e}") from e

        choices = getattr(resp, "choices", None)
        if not choices:
            raise UpstreamError("OpenAI returned no choices")
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        if content is not None and not isinstance(content, str):
            raise UpstreamError("OpenAI returned an unexpected message payload")
        return content or ""

    def name(self) -> str:
        return f"openai/{self.model}"
