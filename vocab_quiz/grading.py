"""Score quiz submissions and read results back."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from vocab_quiz.errors import InvalidInputError, NotFoundError
from vocab_quiz.models import AnswerDetail, Quiz, QuizResult, SubmittedAnswer

if TYPE_CHECKING:
    from vocab_quiz.db import Database

_log = logging.getLogger("vocab_quiz.grading")


def score_answers(quiz: Quiz, answers: list[SubmittedAnswer]) -> tuple[int, int, list[AnswerDetail]]:
    """Compare *answers* to *quiz*; returns (score, correct_count, details).

    Matching is case-insensitive exact string equality.  The
    denominator is the quiz's question count, so unanswered questions count
    as wrong.  Answers for unknown question ids are skipped, and only the
    first answer to a given question is counted.
    """
    correct_by_id = {q.id: q.correct_answer for q in quiz.questions}
    details: list[AnswerDetail] = []
    answered: set[int] = set()
    correct_count = 0

    for answer in answers:
        if answer.question_id not in correct_by_id:
            _log.warning("Question ID %s not found in quiz %s", answer.question_id, quiz.id)
            continue
        if answer.question_id in answered:
            _log.warning("Duplicate answer for question %s ignored", answer.question_id)
            continue
        answered.add(answer.question_id)

        correct_answer = correct_by_id[answer.question_id]
        user_answer = answer.answer or ""
        is_correct = user_answer.casefold() == correct_answer.casefold()
        if is_correct:
            correct_count += 1
        details.append(AnswerDetail(
            question_id=answer.question_id,
            user_answer=user_answer,
            correct_answer=correct_answer,
            is_correct=is_correct,
        ))

    total = len(quiz.questions)
    score = (correct_count * 100) // total if total else 0
    return score, correct_count, details


def grade_answers(
    db: Database,
    user_id: int,
    quiz_id: int,
    answers: list[SubmittedAnswer],
) -> QuizResult:
    if not answers:
        raise InvalidInputError("No answers were submitted")
    quiz = db.get_quiz(quiz_id)
    if quiz is None:
        raise NotFoundError(f"Quiz with ID {quiz_id} not found")
    if not quiz.questions:
        raise InvalidInputError(f"Quiz {quiz_id} has no questions")

    score, correct_count, details = score_answers(quiz, answers)
    result = QuizResult(
        user_id=user_id,
        quiz_id=quiz.id,
        score=score,
        total_questions=len(quiz.questions),
        correct_answers=correct_count,
        completed_at=datetime.now(timezone.utc),
        answers=details,
    )
    db.save_result(result)
    _log.info("Quiz %d graded for user %d: %d/%d, score %d",
              quiz_id, user_id, correct_count, result.total_questions, score)
    return result


def get_result_detail(db: Database, user_id: int, result_id: int) -> QuizResult:
    """Load a stored result for its owner with question texts filled in."""
    result = db.get_result(result_id)
    if result is None or result.user_id != user_id:
        raise NotFoundError(f"Quiz result with ID {result_id} not found")
    quiz = db.get_quiz(result.quiz_id)
    if quiz is None:
        raise NotFoundError("Associated quiz not found")

    texts = {q.id: q.question for q in quiz.questions}
    result.answers = [a for a in result.answers if a.question_id in texts]
    for a in result.answers:
        a.question = texts[a.question_id]
    return result
