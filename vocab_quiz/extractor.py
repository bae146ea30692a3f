"""Pull vocabulary, CEFR levels and error reports out of learner text via the LLM.

Every function here fails soft: a broken backend or an unparsable reply
yields an empty result (or the default level), never an exception, so a
hiccup in extraction cannot abort the surrounding conversation.
"""
from __future__ import annotations

import asyncio
import logging
import re
from typing import TYPE_CHECKING

from vocab_quiz.errors import UpstreamError
from vocab_quiz.models import CEFR_LEVELS, DEFAULT_LEVEL, ErrorSpan
from vocab_quiz.prompts import (
    CLASSIFY_LEVEL_PROMPT,
    ERROR_ANALYSIS_PROMPT,
    EXTRACT_VOCABULARY_PROMPT,
)
from vocab_quiz.providers.base import DEFAULT_TIMEOUT
from vocab_quiz.sanitize import parse_json_array, parse_json_object

if TYPE_CHECKING:
    from vocab_quiz.providers.base import LLMProvider

_log = logging.getLogger("vocab_quiz.vocab")

_LEVEL_RE = re.compile(r"\b([ABC][12])\b", re.IGNORECASE)


async def _ask(llm: LLMProvider, prompt: str, timeout: float, temperature: float) -> str | None:
    """One generation call; ``None`` on transport error or timeout."""
    try:
        return await asyncio.wait_for(
            llm.generate(prompt, timeout=timeout, temperature=temperature),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        _log.warning("LLM call timed out after %.1fs", timeout)
    except UpstreamError as e:
        _log.warning("LLM call failed: %s", e)
    return None


def _clean_words(items: list) -> set[str]:
    seen: dict[str, str] = {}
    for item in items:
        if not isinstance(item, str):
            continue
        word = item.strip()
        if word and word.lower() not in seen:
            seen[word.lower()] = word
    return set(seen.values())


async def extract_vocabulary(
    llm: LLMProvider, text: str, timeout: float = DEFAULT_TIMEOUT
) -> set[str]:
    """Return the distinct candidate words the LLM finds in *text*.

    The reply is expected to be a JSON array of strings.  If it does not
    parse directly, the array span is cut out of the reply and parsed once
    more; after that the result is empty.  An object reply of the form
    ``{"words": [...]}`` is accepted too.
    """
    if not text or not text.strip():
        return set()
    response = await _ask(llm, EXTRACT_VOCABULARY_PROMPT.format(text=text), timeout, 0.3)
    if response is None:
        return set()

    items = parse_json_array(response)
    if items is None:
        obj = parse_json_object(response)
        if obj is not None and isinstance(obj.get("words"), list):
            items = obj["words"]
    if items is None:
        _log.info("Vocabulary extraction: unparsable response, returning nothing")
        return set()

    words = _clean_words(items)
    _log.info("Extracted %d words", len(words))
    return words


def parse_level(response: str) -> str:
    """Map a free-text classification reply to a CEFR code (first one found)."""
    m = _LEVEL_RE.search(response or "")
    if m:
        code = m.group(1).upper()
        if code in CEFR_LEVELS:
            return code
    return DEFAULT_LEVEL


async def classify_level(
    llm: LLMProvider, word: str, timeout: float = DEFAULT_TIMEOUT
) -> str:
    response = await _ask(llm, CLASSIFY_LEVEL_PROMPT.format(word=word), timeout, 0.0)
    if response is None:
        return DEFAULT_LEVEL
    level = parse_level(response)
    _log.info("Level for '%s': %s", word, level)
    return level


async def analyze_errors(
    llm: LLMProvider, text: str, timeout: float = DEFAULT_TIMEOUT
) -> list[ErrorSpan]:
    """Ask the LLM for the grammar/spelling/vocabulary errors in *text*."""
    response = await _ask(llm, ERROR_ANALYSIS_PROMPT.format(text=text), timeout, 0.3)
    if response is None:
        return []
    data = parse_json_object(response)
    if data is None or not isinstance(data.get("errors"), list):
        _log.info("Error analysis: unparsable response, assuming no errors")
        return []

    spans = []
    for item in data["errors"]:
        if not isinstance(item, dict):
            continue
        error_text = str(item.get("errorText") or item.get("error_text") or "").strip()
        if not error_text:
            continue
        spans.append(ErrorSpan(
            error_text=error_text,
            correction=str(item.get("correction") or ""),
            explanation=str(item.get("explanation") or ""),
        ))
    return spans
