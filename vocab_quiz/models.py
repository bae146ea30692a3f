from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

CEFR_LEVELS = ("A1", "A2", "B1", "B2", "C1", "C2")
DEFAULT_LEVEL = "B1"


def level_rank(level: str) -> int:
    """Ordinal position of a CEFR code (A1=1 … C2=6); unknown codes rank as B1."""
    code = (level or "").strip().upper()
    if code in CEFR_LEVELS:
        return CEFR_LEVELS.index(code) + 1
    return CEFR_LEVELS.index(DEFAULT_LEVEL) + 1


@dataclass
class VocabularyEntry:
    user_id: int
    word: str
    level: str = DEFAULT_LEVEL
    translation: str = ""
    times_encountered: int = 0
    times_correctly_used: int = 0
    first_seen_at: datetime | None = None
    last_seen_at: datetime | None = None
    mastered: bool = False
    id: int | None = None

    @property
    def key(self) -> str:
        return self.word.strip().lower()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "word": self.word,
            "translation": self.translation,
            "level": self.level,
            "timesEncountered": self.times_encountered,
            "timesCorrectlyUsed": self.times_correctly_used,
            "firstSeenAt": self.first_seen_at.isoformat() if self.first_seen_at else None,
            "lastSeenAt": self.last_seen_at.isoformat() if self.last_seen_at else None,
            "mastered": self.mastered,
        }


@dataclass
class ErrorSpan:
    error_text: str
    correction: str = ""
    explanation: str = ""


@dataclass
class QuizQuestion:
    question: str
    options: list[str]
    correct_answer: str
    explanation: str
    id: int | None = None
    source: str = "llm"  # llm | fallback

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "question": self.question,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
            "explanation": self.explanation,
        }


@dataclass
class Quiz:
    title: str
    level: str
    quiz_type: str = "Vocabulary"
    created_at: datetime | None = None
    questions: list[QuizQuestion] = field(default_factory=list)
    id: int | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "level": self.level,
            "quizType": self.quiz_type,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "questions": [q.to_dict() for q in self.questions],
        }


@dataclass
class SubmittedAnswer:
    question_id: int
    answer: str


@dataclass
class AnswerDetail:
    question_id: int
    user_answer: str
    correct_answer: str
    is_correct: bool
    question: str = ""  # filled in when a stored result is read back

    def to_dict(self) -> dict:
        return {
            "questionId": self.question_id,
            "userAnswer": self.user_answer,
            "correctAnswer": self.correct_answer,
            "isCorrect": self.is_correct,
        }


@dataclass
class QuizResult:
    user_id: int
    quiz_id: int
    score: int
    total_questions: int
    correct_answers: int
    completed_at: datetime | None = None
    answers: list[AnswerDetail] = field(default_factory=list)
    id: int | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "quizId": self.quiz_id,
            "score": self.score,
            "totalQuestions": self.total_questions,
            "correctAnswers": self.correct_answers,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "answers": [a.to_dict() for a in self.answers],
        }
