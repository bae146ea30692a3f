from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from vocab_quiz.models import (
    AnswerDetail,
    Quiz,
    QuizQuestion,
    QuizResult,
    VocabularyEntry,
)

SCHEMA = """
CREATE TABLE IF NOT EXISTS vocabulary (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    word TEXT NOT NULL,
    word_key TEXT NOT NULL,
    translation TEXT DEFAULT '',
    level TEXT NOT NULL DEFAULT 'B1',
    times_encountered INTEGER DEFAULT 0,
    times_correctly_used INTEGER DEFAULT 0,
    first_seen_at TEXT NOT NULL,
    last_seen_at TEXT NOT NULL,
    mastered INTEGER DEFAULT 0,
    UNIQUE (user_id, word_key)
);

CREATE TABLE IF NOT EXISTS quizzes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    level TEXT NOT NULL,
    quiz_type TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS quiz_questions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    quiz_id INTEGER NOT NULL REFERENCES quizzes(id),
    position INTEGER NOT NULL,
    question TEXT NOT NULL,
    options_json TEXT NOT NULL,
    correct_answer TEXT NOT NULL,
    explanation TEXT
);

CREATE TABLE IF NOT EXISTS quiz_results (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    quiz_id INTEGER NOT NULL,
    score INTEGER NOT NULL,
    total_questions INTEGER NOT NULL,
    correct_answers INTEGER NOT NULL,
    completed_at TEXT NOT NULL,
    answer_details_json TEXT DEFAULT '[]'
);
"""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _row_to_entry(row: sqlite3.Row) -> VocabularyEntry:
    return VocabularyEntry(
        id=row["id"],
        user_id=row["user_id"],
        word=row["word"],
        translation=row["translation"] or "",
        level=row["level"],
        times_encountered=row["times_encountered"],
        times_correctly_used=row["times_correctly_used"],
        first_seen_at=_ts(row["first_seen_at"]),
        last_seen_at=_ts(row["last_seen_at"]),
        mastered=bool(row["mastered"]),
    )


class Database:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self._init_schema()

    def _init_schema(self) -> None:
        self.conn.executescript(SCHEMA)
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()

    # ── Vocabulary ────────────────────────────────────────────────────────

    def find_vocabulary(self, user_id: int, word: str) -> VocabularyEntry | None:
        row = self.conn.execute(
            "SELECT * FROM vocabulary WHERE user_id = ? AND word_key = ?",
            (user_id, word.strip().lower()),
        ).fetchone()
        return _row_to_entry(row) if row else None

    def list_vocabulary(self, user_id: int) -> list[VocabularyEntry]:
        rows = self.conn.execute(
            "SELECT * FROM vocabulary WHERE user_id = ? ORDER BY id", (user_id,)
        ).fetchall()
        return [_row_to_entry(r) for r in rows]

    def upsert_vocabulary(self, entry: VocabularyEntry) -> VocabularyEntry:
        """Insert a new entry; if (user, word) already exists, count it as one more encounter.

        Two overlapping requests that both saw the word as new end up with a
        single row and an encounter count of 2 rather than a constraint error.
        """
        now = _now()
        first = entry.first_seen_at or now
        last = entry.last_seen_at or now
        self.conn.execute(
            "INSERT INTO vocabulary (user_id, word, word_key, translation, level, "
            "times_encountered, times_correctly_used, first_seen_at, last_seen_at, mastered) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?) "
            "ON CONFLICT (user_id, word_key) DO UPDATE SET "
            "times_encountered = times_encountered + 1, "
            "last_seen_at = excluded.last_seen_at",
            (
                entry.user_id,
                entry.word.strip(),
                entry.key,
                entry.translation,
                entry.level,
                entry.times_encountered,
                entry.times_correctly_used,
                first.isoformat(),
                last.isoformat(),
                1 if entry.mastered else 0,
            ),
        )
        self.conn.commit()
        return self.find_vocabulary(entry.user_id, entry.word)

    def increment_encounter(
        self, user_id: int, word: str, seen_at: datetime | None = None
    ) -> VocabularyEntry | None:
        seen_at = seen_at or _now()
        cur = self.conn.execute(
            "UPDATE vocabulary SET times_encountered = times_encountered + 1, "
            "last_seen_at = ? WHERE user_id = ? AND word_key = ?",
            (seen_at.isoformat(), user_id, word.strip().lower()),
        )
        self.conn.commit()
        if cur.rowcount == 0:
            return None
        return self.find_vocabulary(user_id, word)

    def increment_correct_usage(
        self, user_id: int, word: str, mastery_threshold: int = 3
    ) -> VocabularyEntry | None:
        cur = self.conn.execute(
            "UPDATE vocabulary SET times_correctly_used = times_correctly_used + 1, "
            "mastered = CASE WHEN times_correctly_used + 1 >= ? THEN 1 ELSE mastered END "
            "WHERE user_id = ? AND word_key = ?",
            (mastery_threshold, user_id, word.strip().lower()),
        )
        self.conn.commit()
        if cur.rowcount == 0:
            return None
        return self.find_vocabulary(user_id, word)

    def update_vocabulary_fields(
        self,
        user_id: int,
        word: str,
        translation: str | None = None,
        mastered: bool | None = None,
    ) -> VocabularyEntry | None:
        sets: list[str] = []
        params: list = []
        if translation is not None:
            sets.append("translation = ?")
            params.append(translation)
        if mastered is not None:
            sets.append("mastered = ?")
            params.append(1 if mastered else 0)
        if sets:
            params.extend([user_id, word.strip().lower()])
            self.conn.execute(
                f"UPDATE vocabulary SET {', '.join(sets)} WHERE user_id = ? AND word_key = ?",
                params,
            )
            self.conn.commit()
        return self.find_vocabulary(user_id, word)

    # ── Quizzes ───────────────────────────────────────────────────────────

    def save_quiz(self, quiz: Quiz) -> int:
        """Persist *quiz* and its questions in order; assigns ids in place."""
        if quiz.created_at is None:
            quiz.created_at = _now()
        cur = self.conn.execute(
            "INSERT INTO quizzes (title, level, quiz_type, created_at) VALUES (?, ?, ?, ?)",
            (quiz.title, quiz.level, quiz.quiz_type, quiz.created_at.isoformat()),
        )
        quiz.id = cur.lastrowid
        for position, q in enumerate(quiz.questions):
            qcur = self.conn.execute(
                "INSERT INTO quiz_questions "
                "(quiz_id, position, question, options_json, correct_answer, explanation) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (quiz.id, position, q.question, json.dumps(q.options),
                 q.correct_answer, q.explanation),
            )
            q.id = qcur.lastrowid
        self.conn.commit()
        return quiz.id

    def get_quiz(self, quiz_id: int) -> Quiz | None:
        row = self.conn.execute(
            "SELECT * FROM quizzes WHERE id = ?", (quiz_id,)
        ).fetchone()
        if row is None:
            return None
        qrows = self.conn.execute(
            "SELECT * FROM quiz_questions WHERE quiz_id = ? ORDER BY position",
            (quiz_id,),
        ).fetchall()
        return Quiz(
            id=row["id"],
            title=row["title"],
            level=row["level"],
            quiz_type=row["quiz_type"],
            created_at=_ts(row["created_at"]),
            questions=[
                QuizQuestion(
                    id=q["id"],
                    question=q["question"],
                    options=json.loads(q["options_json"]),
                    correct_answer=q["correct_answer"],
                    explanation=q["explanation"] or "",
                )
                for q in qrows
            ],
        )

    def list_quizzes_by_level(self, level: str) -> list[Quiz]:
        rows = self.conn.execute(
            "SELECT id FROM quizzes WHERE level = ? ORDER BY id DESC", (level.upper(),)
        ).fetchall()
        return [self.get_quiz(r["id"]) for r in rows]

    # ── Results ───────────────────────────────────────────────────────────

    def save_result(self, result: QuizResult) -> int:
        if result.completed_at is None:
            result.completed_at = _now()
        cur = self.conn.execute(
            "INSERT INTO quiz_results (user_id, quiz_id, score, total_questions, "
            "correct_answers, completed_at, answer_details_json) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                result.user_id,
                result.quiz_id,
                result.score,
                result.total_questions,
                result.correct_answers,
                result.completed_at.isoformat(),
                json.dumps([a.to_dict() for a in result.answers]),
            ),
        )
        self.conn.commit()
        result.id = cur.lastrowid
        return result.id

    def _row_to_result(self, row: sqlite3.Row) -> QuizResult:
        details = json.loads(row["answer_details_json"] or "[]")
        return QuizResult(
            id=row["id"],
            user_id=row["user_id"],
            quiz_id=row["quiz_id"],
            score=row["score"],
            total_questions=row["total_questions"],
            correct_answers=row["correct_answers"],
            completed_at=_ts(row["completed_at"]),
            answers=[
                AnswerDetail(
                    question_id=d["questionId"],
                    user_answer=d["userAnswer"],
                    correct_answer=d["correctAnswer"],
                    is_correct=d["isCorrect"],
                )
                for d in details
            ],
        )

    def get_result(self, result_id: int) -> QuizResult | None:
        row = self.conn.execute(
            "SELECT * FROM quiz_results WHERE id = ?", (result_id,)
        ).fetchone()
        return self._row_to_result(row) if row else None

    def list_results(self, user_id: int) -> list[QuizResult]:
        rows = self.conn.execute(
            "SELECT * FROM quiz_results WHERE user_id = ? ORDER BY id DESC",
            (user_id,),
        ).fetchall()
        return [self._row_to_result(r) for r in rows]

    # ── Stats ─────────────────────────────────────────────────────────────

    def get_stats(self, user_id: int) -> dict:
        vocab = self.conn.execute(
            "SELECT COUNT(*) AS total, COALESCE(SUM(mastered), 0) AS mastered "
            "FROM vocabulary WHERE user_id = ?",
            (user_id,),
        ).fetchone()
        results = self.conn.execute(
            "SELECT COUNT(*) AS taken, AVG(score) AS avg_score "
            "FROM quiz_results WHERE user_id = ?",
            (user_id,),
        ).fetchone()
        return {
            "words_tracked": vocab["total"],
            "words_mastered": vocab["mastered"],
            "quizzes_taken": results["taken"],
            "average_score": (
                round(results["avg_score"], 1) if results["avg_score"] is not None else 0
            ),
        }
