"""Per-user vocabulary statistics: encounters, correct usage and mastery."""
from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from vocab_quiz.errors import InvalidInputError, NotFoundError
from vocab_quiz.extractor import classify_level
from vocab_quiz.models import ErrorSpan, VocabularyEntry, level_rank
from vocab_quiz.providers.base import DEFAULT_TIMEOUT

if TYPE_CHECKING:
    from vocab_quiz.db import Database
    from vocab_quiz.providers.base import LLMProvider

_log = logging.getLogger("vocab_quiz.vocab")

MASTERY_THRESHOLD = 3


async def record_encounter(
    llm: LLMProvider,
    db: Database,
    user_id: int,
    word: str,
    timeout: float = DEFAULT_TIMEOUT,
) -> VocabularyEntry:
    """Count one sighting of *word* in the user's text.

    A word seen for the first time is classified by the LLM and stored with
    an encounter count of 1; a known word gets its count bumped in place.
    """
    word = (word or "").strip()
    if not word:
        raise InvalidInputError("Cannot record an encounter for a blank word")
    now = datetime.now(timezone.utc)
    entry = db.increment_encounter(user_id, word, seen_at=now)
    if entry is not None:
        _log.info("Updated '%s' for user %d, encounters: %d",
                  word, user_id, entry.times_encountered)
        return entry

    level = await classify_level(llm, word, timeout=timeout)
    entry = db.upsert_vocabulary(VocabularyEntry(
        user_id=user_id,
        word=word,
        level=level,
        times_encountered=1,
        first_seen_at=now,
        last_seen_at=now,
    ))
    _log.info("Added '%s' (%s) to vocabulary of user %d", word, level, user_id)
    return entry


def record_correct_usage(
    db: Database,
    user_id: int,
    word: str,
    mastery_threshold: int = MASTERY_THRESHOLD,
) -> VocabularyEntry:
    entry = db.increment_correct_usage(user_id, word, mastery_threshold=mastery_threshold)
    if entry is None:
        raise NotFoundError(f"'{word}' is not in the vocabulary of user {user_id}")
    if entry.mastered and entry.times_correctly_used == mastery_threshold:
        _log.info("User %d mastered '%s'", user_id, entry.word)
    return entry


def words_used_correctly(
    message: str,
    entries: list[VocabularyEntry],
    errors: list[ErrorSpan] | None,
) -> list[VocabularyEntry]:
    """Entries whose word appears in *message* and in none of the error spans.

    Both checks are case-insensitive substring matches.
    """
    text = (message or "").lower()
    error_texts = [e.error_text.lower() for e in errors or []]
    used = []
    for entry in entries:
        key = entry.key
        if not key or key not in text:
            continue
        if any(key in et for et in error_texts):
            continue
        used.append(entry)
    return used


def apply_usage_feedback(
    db: Database,
    user_id: int,
    message: str,
    errors: list[ErrorSpan] | None,
    mastery_threshold: int = MASTERY_THRESHOLD,
) -> list[VocabularyEntry]:
    """Record a correct use of every tracked word the user got right in *message*."""
    used = words_used_correctly(message, db.list_vocabulary(user_id), errors)
    return [
        record_correct_usage(db, user_id, e.word, mastery_threshold=mastery_threshold)
        for e in used
    ]


def select_flashcards(
    db: Database,
    user_id: int,
    level: str | None = None,
    count: int = 10,
    rng: random.Random | None = None,
) -> list[VocabularyEntry]:
    """Pick up to *count* entries, weakest first, returned in random order.

    Non-mastered and less-encountered words are preferred.  ``level=None`` or
    ``"ALL"`` disables the level filter.
    """
    rng = rng or random
    entries = db.list_vocabulary(user_id)
    if level and level.upper() != "ALL":
        entries = [e for e in entries if e.level == level.upper()]
    entries.sort(key=lambda e: (e.mastered, e.times_encountered))
    picked = entries[:count]
    rng.shuffle(picked)
    return picked


def update_entry(
    db: Database,
    user_id: int,
    word: str,
    translation: str | None = None,
    mastered: bool | None = None,
) -> VocabularyEntry:
    if db.find_vocabulary(user_id, word) is None:
        raise NotFoundError(f"'{word}' is not in the vocabulary of user {user_id}")
    return db.update_vocabulary_fields(user_id, word, translation=translation, mastered=mastered)


def eligible_entries(entries: list[VocabularyEntry], level: str) -> list[VocabularyEntry]:
    """Entries at or below *level* in CEFR order."""
    ceiling = level_rank(level)
    return [e for e in entries if level_rank(e.level) <= ceiling]
