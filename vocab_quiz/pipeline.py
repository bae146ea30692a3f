"""Entry points used by the conversation/quiz layers.

* :func:`process_user_text`: learner text in, tracked vocabulary out.
* :func:`generate_quiz`: tracked vocabulary in, persisted quiz out.
* :func:`submit_answers`: answers in, persisted result out.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from vocab_quiz.config import Settings
from vocab_quiz.errors import InvalidInputError
from vocab_quiz.extractor import extract_vocabulary
from vocab_quiz.grading import grade_answers
from vocab_quiz.models import ErrorSpan, Quiz, QuizResult, SubmittedAnswer, VocabularyEntry
from vocab_quiz.question_generator import assemble_quiz
from vocab_quiz.tracker import apply_usage_feedback, record_encounter

if TYPE_CHECKING:
    import random

    from vocab_quiz.db import Database
    from vocab_quiz.providers.base import LLMProvider

_log = logging.getLogger("vocab_quiz.pipeline")


async def process_user_text(
    llm: LLMProvider,
    db: Database,
    user_id: int,
    text: str,
    errors: list[ErrorSpan] | None = None,
    settings: Settings | None = None,
) -> list[VocabularyEntry]:
    """Track the vocabulary in one learner message.

    When an error report for the message is given, words the learner already
    knows and used without error are credited first.  Then every extracted
    word of at least ``min_word_length`` characters is recorded as an
    encounter.  Returns the touched entries, one per word.
    """
    settings = settings or Settings()
    if errors is not None:
        credited = apply_usage_feedback(
            db, user_id, text, errors, mastery_threshold=settings.mastery_threshold,
        )
        if credited:
            _log.info("Credited correct usage of %d words", len(credited))

    words = await extract_vocabulary(llm, text, timeout=settings.generation_timeout)
    if not words:
        _log.info("No words extracted from message")
        return []

    touched: dict[str, VocabularyEntry] = {}
    for word in sorted(words, key=str.lower):
        if len(word) < settings.min_word_length:
            _log.info("Skipping short word: '%s'", word)
            continue
        entry = await record_encounter(
            llm, db, user_id, word, timeout=settings.generation_timeout,
        )
        touched[entry.key] = entry
    return list(touched.values())


async def generate_quiz(
    llm: LLMProvider,
    db: Database,
    user_id: int,
    level: str,
    count: int | None = None,
    settings: Settings | None = None,
    rng: random.Random | None = None,
) -> Quiz:
    settings = settings or Settings()
    return await assemble_quiz(
        llm, db, user_id, level,
        count=count if count is not None else settings.default_question_count,
        timeout=settings.generation_timeout,
        max_concurrency=settings.max_concurrency,
        min_words=settings.min_quiz_words,
        rng=rng,
    )


def submit_answers(
    db: Database,
    user_id: int,
    quiz_id: int,
    answers: list[SubmittedAnswer],
) -> QuizResult:
    return grade_answers(db, user_id, quiz_id, answers)


def parse_answers(payload) -> list[SubmittedAnswer]:
    """Convert ``[{"questionId": 1, "answer": "..."}]`` (or a ``{id: answer}`` map) to answers."""
    if isinstance(payload, dict):
        items = [{"questionId": k, "answer": v} for k, v in payload.items()]
    elif isinstance(payload, list):
        items = payload
    else:
        raise InvalidInputError("Answers must be a list or an object")

    answers = []
    for item in items:
        if not isinstance(item, dict):
            raise InvalidInputError(f"Malformed answer: {item!r}")
        qid = item.get("questionId", item.get("question_id"))
        text = item.get("answer", item.get("answerText", ""))
        try:
            qid = int(qid)
        except (TypeError, ValueError):
            raise InvalidInputError(f"Malformed question id: {qid!r}") from None
        answers.append(SubmittedAnswer(question_id=qid, answer=str(text)))
    return answers
