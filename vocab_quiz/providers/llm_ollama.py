from __future__ import annotations

import logging
import re
import time

import httpx

from vocab_quiz.errors import UpstreamError
from vocab_quiz.providers.base import DEFAULT_TIMEOUT, LLMProvider

log = logging.getLogger("vocab_quiz.llm")


def strip_think(text: str) -> str:
    """Drop ``<think>…</think>`` reasoning blocks emitted by Qwen3/DeepSeek models."""
    return re.sub(r"<think>.*?</think>", "", text, flags=re.DOTALL).strip()


class OllamaProvider(LLMProvider):
    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "gemma3:4b",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self._transport = transport

    async def generate(
        self, prompt: str, timeout: float = DEFAULT_TIMEOUT, temperature: float = 0.7
    ) -> str:
        log.debug("── PROMPT (%s) ──\n%s", self.model, prompt)
        t0 = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                resp = await client.post(
                    f"{self.base_url}/api/generate",
                    json={
                        "model": self.model,
                        "prompt": prompt,
                        "stream": False,
                        "options": {"temperature": temperature, "top_p": 0.9},
                    },
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(
                f"Ollama API error: {e.response.status_code}, {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"Ollama unreachable: {e}") from e
        except ValueError as e:
            raise UpstreamError(f"Ollama returned a non-JSON body: {e}") from e

        if not isinstance(data, dict):
            raise UpstreamError("Ollama returned an unexpected payload")
        response = strip_think(data.get("response") or "")
        elapsed = time.monotonic() - t0
        log.debug("── RESPONSE (%.1fs, %s tokens) ──\n%s",
                  elapsed, data.get("eval_count", "?"), response)
        return response

    def name(self) -> str:
        return f"ollama/{self.model}"
