from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from vocab_quiz.providers.base import LLMProvider

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULTS = {
    "llm_provider": "ollama",
    "llm_model": "gemma3:4b",
    "ollama_url": "http://localhost:11434",
    "db_path": "vocab_quiz.db",
    "generation_timeout": 60.0,
    "max_concurrency": 10,
    "default_question_count": 5,
    "min_quiz_words": 5,
    "min_word_length": 3,
    "mastery_threshold": 3,
}


@dataclass
class Settings:
    llm_provider: str = DEFAULTS["llm_provider"]
    llm_model: str = DEFAULTS["llm_model"]
    ollama_url: str = DEFAULTS["ollama_url"]
    db_path: str = DEFAULTS["db_path"]
    generation_timeout: float = DEFAULTS["generation_timeout"]
    max_concurrency: int = DEFAULTS["max_concurrency"]
    default_question_count: int = DEFAULTS["default_question_count"]
    min_quiz_words: int = DEFAULTS["min_quiz_words"]
    min_word_length: int = DEFAULTS["min_word_length"]
    mastery_threshold: int = DEFAULTS["mastery_threshold"]

    @property
    def project_root(self) -> Path:
        return Path(__file__).resolve().parent.parent

    @property
    def db_full_path(self) -> Path:
        return self.project_root / self.db_path

    def to_dict(self) -> dict:
        return {
            "llm_provider": self.llm_provider,
            "llm_model": self.llm_model,
            "ollama_url": self.ollama_url,
            "db_path": self.db_path,
            "generation_timeout": self.generation_timeout,
            "max_concurrency": self.max_concurrency,
            "default_question_count": self.default_question_count,
            "min_quiz_words": self.min_quiz_words,
            "min_word_length": self.min_word_length,
            "mastery_threshold": self.mastery_threshold,
        }


def load_settings() -> Settings:
    if CONFIG_PATH.exists():
        raw = json.loads(CONFIG_PATH.read_text())
        known = {f.name for f in Settings.__dataclass_fields__.values()}
        filtered = {k: v for k, v in raw.items() if k in known}
        return Settings(**filtered)
    return Settings()


def save_settings(settings: Settings) -> None:
    CONFIG_PATH.write_text(json.dumps(settings.to_dict(), indent=4) + "\n")


def make_llm(settings: Settings) -> LLMProvider:
    if settings.llm_provider == "ollama":
        from vocab_quiz.providers.llm_ollama import OllamaProvider
        return OllamaProvider(base_url=settings.ollama_url, model=settings.llm_model)
    elif settings.llm_provider == "anthropic":
        from vocab_quiz.providers.llm_anthropic import AnthropicProvider
        return AnthropicProvider(model=settings.llm_model)
    elif settings.llm_provider == "openai":
        from vocab_quiz.providers.llm_openai import OpenAIProvider
        return OpenAIProvider(model=settings.llm_model)
    raise ValueError(f"Unknown LLM provider: {settings.llm_provider}")
