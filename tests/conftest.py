"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone

import pytest

from vocab_quiz.db import Database
from vocab_quiz.errors import UpstreamError
from vocab_quiz.models import Quiz, QuizQuestion, VocabularyEntry


class FakeLLM:
    """Scripted stand-in for an LLM provider.

    Replays *responses* in order (the last one repeats).  A *router* callable
    takes precedence and maps each prompt to a reply.  ``fail=True`` raises
    UpstreamError on every call; *delay* sleeps before answering.
    """

    def __init__(self, responses=None, router=None, fail=False, delay=0.0):
        self._responses = responses or [""]
        self._router = router
        self.fail = fail
        self.delay = delay
        self.prompts: list[str] = []

    async def generate(self, prompt: str, timeout: float = 60.0, temperature: float = 0.7) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise UpstreamError("backend down")
        if self._router is not None:
            return self._router(prompt)
        idx = min(len(self.prompts) - 1, len(self._responses) - 1)
        return self._responses[idx]

    def name(self) -> str:
        return "fake-llm"

    @property
    def call_count(self):
        return len(self.prompts)


def question_json(
    question="Which of these do you read?",
    options=("A book", "A spoon", "A chair", "A shoe"),
    correct="A book",
    explanation="You read a book.",
) -> str:
    return json.dumps({
        "question": question,
        "options": list(options),
        "correctAnswer": correct,
        "explanation": explanation,
    })


@pytest.fixture
def tmp_db(tmp_path):
    """Create a fresh temporary database."""
    db = Database(tmp_path / "test.db")
    yield db
    db.close()


@pytest.fixture
def add_words(tmp_db):
    """Insert words for a user: ``add_words(1, [("ubiquitous", "C1"), ...])``."""

    def _add(user_id: int, words: list[tuple[str, str]]) -> list[VocabularyEntry]:
        now = datetime.now(timezone.utc)
        return [
            tmp_db.upsert_vocabulary(VocabularyEntry(
                user_id=user_id,
                word=word,
                level=level,
                times_encountered=1,
                first_seen_at=now,
                last_seen_at=now,
            ))
            for word, level in words
        ]

    return _add


@pytest.fixture
def b1_words():
    return [
        ("journey", "A2"),
        ("borrow", "A2"),
        ("reliable", "B1"),
        ("improve", "B1"),
        ("opinion", "B1"),
    ]


@pytest.fixture
def saved_quiz(tmp_db):
    """A persisted 5-question quiz whose answers are 'answer 1' … 'answer 5'."""
    quiz = Quiz(
        title="B1 Vocabulary Quiz",
        level="B1",
        questions=[
            QuizQuestion(
                question=f"Question {n}?",
                options=[f"answer {n}", "wrong a", "wrong b", "wrong c"],
                correct_answer=f"answer {n}",
                explanation=f"Because {n}.",
            )
            for n in range(1, 6)
        ],
    )
    tmp_db.save_quiz(quiz)
    return quiz
