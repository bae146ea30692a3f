"""Orchestrate the LLM to turn tracked words into multiple-choice quizzes."""
from __future__ import annotations

import asyncio
import logging
import random
import zlib
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from vocab_quiz.errors import (
    GenerationError,
    InsufficientDataError,
    InvalidInputError,
    UpstreamError,
    ValidationError,
)
from vocab_quiz.models import CEFR_LEVELS, Quiz, QuizQuestion
from vocab_quiz.prompts import QUIZ_QUESTION_PROMPT, format_level_guidance
from vocab_quiz.providers.base import DEFAULT_TIMEOUT
from vocab_quiz.sanitize import parse_json_object
from vocab_quiz.tracker import eligible_entries

if TYPE_CHECKING:
    from vocab_quiz.db import Database
    from vocab_quiz.providers.base import LLMProvider

_log = logging.getLogger("vocab_quiz.qgen")

OPTION_COUNT = 4
MIN_QUIZ_WORDS = 5
MAX_CONCURRENCY = 10

# Padding for short option lists and distractors for the fallback template.
GENERIC_DISTRACTORS = (
    "A kind of fruit",
    "A piece of furniture",
    "A musical instrument",
    "A type of weather",
    "A unit of time",
    "A part of the body",
    "A means of transport",
    "A colour",
)


def _clean_options(raw_options: list) -> list[str]:
    """Trimmed, non-empty options with case-insensitive duplicates removed, in order."""
    options: list[str] = []
    seen: set[str] = set()
    for opt in raw_options:
        if isinstance(opt, bool) or not isinstance(opt, (str, int, float)):
            continue
        text = str(opt).strip()
        if text and text.lower() not in seen:
            seen.add(text.lower())
            options.append(text)
    return options


def _pad_options(options: list[str]) -> list[str]:
    padded = list(options)
    taken = {o.lower() for o in padded}
    for filler in GENERIC_DISTRACTORS:
        if len(padded) >= OPTION_COUNT:
            break
        if filler.lower() not in taken:
            padded.append(filler)
            taken.add(filler.lower())
    return padded


def _validate_question(data: dict) -> str | None:
    """Validate a generated question and normalise it in place.

    Returns ``None`` on success (``data`` then holds exactly 4 distinct
    options and a ``correctAnswer`` that is one of them verbatim), or a
    human-readable reason string on failure.
    """
    question = data.get("question")
    if not isinstance(question, str) or not question.strip():
        return "question is empty"

    raw_options = data.get("options")
    if not isinstance(raw_options, list):
        return f"options must be a list (got {type(raw_options).__name__})"
    options = _clean_options(raw_options)
    if len(options) < 2:
        return f"need at least 2 distinct options (got {len(options)})"
    options = options[:OPTION_COUNT]

    correct = data.get("correctAnswer", data.get("correct_answer"))
    if not isinstance(correct, str) or not correct.strip():
        return "correctAnswer is empty"
    correct = correct.strip()
    match = next((o for o in options if o == correct), None)
    if match is None:
        match = next((o for o in options if o.lower() == correct.lower()), None)
    if match is None:
        return f"correctAnswer {correct!r} is not one of the options {options}"

    data["question"] = question.strip()
    data["options"] = _pad_options(options)
    data["correctAnswer"] = match
    explanation = data.get("explanation")
    data["explanation"] = explanation.strip() if isinstance(explanation, str) else ""
    return None


def parse_question(response: str) -> QuizQuestion:
    """Build a question from a raw LLM reply; raises ValidationError if unusable."""
    data = parse_json_object(response)
    if data is None:
        raise ValidationError("response did not contain a JSON object")
    reason = _validate_question(data)
    if reason:
        raise ValidationError(reason)
    return QuizQuestion(
        question=data["question"],
        options=data["options"],
        correct_answer=data["correctAnswer"],
        explanation=data["explanation"],
        source="llm",
    )


def fallback_question(word: str, level: str) -> QuizQuestion:
    """Deterministic, network-free question for *word* at *level*."""
    level = level.upper()
    seed = zlib.crc32(f"{word.strip().lower()}|{level}".encode())
    start = seed % len(GENERIC_DISTRACTORS)
    distractors = [
        GENERIC_DISTRACTORS[(start + i) % len(GENERIC_DISTRACTORS)] for i in range(3)
    ]
    correct = f"An English word from your {level} vocabulary"
    return QuizQuestion(
        question=f"Which of these best describes the word '{word}'?",
        options=[correct, *distractors],
        correct_answer=correct,
        explanation=f"'{word}' is a {level} word you have used in your conversations.",
        source="fallback",
    )


def _shuffle_options(question: QuizQuestion, rng) -> None:
    correct = question.correct_answer
    options = list(question.options)
    rng.shuffle(options)
    question.options = options
    question.correct_answer = options[options.index(correct)]


async def synthesize_question(
    llm: LLMProvider,
    word: str,
    level: str,
    timeout: float = DEFAULT_TIMEOUT,
    rng: random.Random | None = None,
) -> QuizQuestion:
    """Produce one validated question for *word*; never raises for backend trouble.

    The LLM gets one attempt.  Transport errors, timeouts and replies that
    fail validation all fall back to :func:`fallback_question`.  Options are
    shuffled afterwards either way.
    """
    rng = rng or random
    prompt = QUIZ_QUESTION_PROMPT.format(
        word=word,
        level=level,
        level_guidance=format_level_guidance(level),
    )

    question: QuizQuestion | None = None
    try:
        _log.info("Generate question for '%s' (%s)", word, level)
        response = await asyncio.wait_for(
            llm.generate(prompt, timeout=timeout, temperature=0.7),
            timeout=timeout,
        )
        question = parse_question(response)
        _log.info("  '%s': question generated", word)
    except asyncio.TimeoutError:
        _log.warning("  '%s': timed out after %.1fs, using fallback", word, timeout)
    except UpstreamError as e:
        _log.warning("  '%s': backend error (%s), using fallback", word, e)
    except ValidationError as e:
        _log.info("  '%s': rejected (%s), using fallback", word, e)

    if question is None:
        question = fallback_question(word, level)
    _shuffle_options(question, rng)
    return question


async def assemble_quiz(
    llm: LLMProvider,
    db: Database,
    user_id: int,
    level: str,
    count: int = 5,
    timeout: float = DEFAULT_TIMEOUT,
    max_concurrency: int = MAX_CONCURRENCY,
    min_words: int = MIN_QUIZ_WORDS,
    rng: random.Random | None = None,
) -> Quiz:
    """Build and persist a vocabulary quiz from the user's tracked words.

    Words at or below *level* are eligible; at least *min_words* of them are
    required.  ``min(count, eligible)`` words are drawn at random and one
    question is synthesized per word, concurrently but at most
    *max_concurrency* at a time.  Questions keep the order in which their
    words were drawn, and a seeded *rng* fixes their option order too.
    If the caller cancels, in-flight synthesis is cancelled as well and
    nothing is saved.
    """
    level = (level or "").strip().upper()
    if level not in CEFR_LEVELS:
        raise InvalidInputError(f"Unknown level: {level!r}")
    if count < 1:
        raise InvalidInputError("Question count must be at least 1")
    rng = rng or random

    entries = eligible_entries(db.list_vocabulary(user_id), level)
    if len(entries) < min_words:
        raise InsufficientDataError(
            f"Not enough vocabulary words to generate a quiz ({len(entries)} at or "
            f"below {level}, need {min_words}). Learn more words first!"
        )

    selected = rng.sample(entries, min(count, len(entries)))
    _log.info("Selected %d words for a %s quiz (user %d)", len(selected), level, user_id)

    # Per-slot generators drawn up front: option order is independent of
    # the order in which backend calls complete.
    slot_rngs = [random.Random(rng.getrandbits(64)) for _ in selected]
    slots: list[QuizQuestion | None] = [None] * len(selected)
    sem = asyncio.Semaphore(max(1, min(len(selected), max_concurrency)))

    async def _fill(idx: int, word: str) -> None:
        async with sem:
            try:
                slots[idx] = await synthesize_question(
                    llm, word, level, timeout=timeout, rng=slot_rngs[idx],
                )
            except Exception as e:
                _log.warning("[%d/%d] Dropped '%s': %s", idx + 1, len(selected), word, e)

    await asyncio.gather(*(_fill(i, e.word) for i, e in enumerate(selected)))

    questions = [q for q in slots if q is not None]
    if not questions:
        raise GenerationError(f"No questions could be generated for user {user_id}")

    quiz = Quiz(
        title=f"{level} Vocabulary Quiz",
        level=level,
        quiz_type="Vocabulary",
        created_at=datetime.now(timezone.utc),
        questions=questions,
    )
    db.save_quiz(quiz)
    _log.info("Quiz saved with ID %d (%d questions)", quiz.id, len(questions))
    return quiz
