from __future__ import annotations

from abc import ABC, abstractmethod

DEFAULT_TIMEOUT = 60.0


class LLMProvider(ABC):
    """Text-generation backend.

    Implementations return the raw generated text and raise
    :class:`~vocab_quiz.errors.UpstreamError` when the backend cannot be
    reached or answers with an error status.  Output is untrusted: callers
    sanitize and validate everything they get back.
    """

    @abstractmethod
    async def generate(
        self, prompt: str, timeout: float = DEFAULT_TIMEOUT, temperature: float = 0.7
    ) -> str:
        ...

    @abstractmethod
    def name(self) -> str:
        ...
