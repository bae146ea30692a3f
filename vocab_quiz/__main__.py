"""CLI entry point for vocab-quiz.

Usage:
  python -m vocab_quiz learn USER_ID TEXT [--no-analysis]
  python -m vocab_quiz quiz USER_ID LEVEL [--count N]
  python -m vocab_quiz grade USER_ID QUIZ_ID ANSWERS_JSON
  python -m vocab_quiz result USER_ID RESULT_ID
  python -m vocab_quiz vocab USER_ID
  python -m vocab_quiz flashcards USER_ID [--level LEVEL] [--count N]
  python -m vocab_quiz stats USER_ID
"""
from __future__ import annotations

import asyncio
import json
import logging
import sys

from vocab_quiz.errors import VocabQuizError


def main(argv: list[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    command = args[0] if args else ""
    if command not in COMMANDS:
        print(f"Unknown command: {command}" if command else "No command given")
        print(f"Commands: {', '.join(COMMANDS)}")
        return 1

    logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")

    from vocab_quiz.config import load_settings
    from vocab_quiz.db import Database

    settings = load_settings()
    db = Database(settings.db_full_path)
    try:
        COMMANDS[command](db, settings, args[1:])
    except VocabQuizError as e:
        print(f"Error: {e}")
        return 1
    except (IndexError, ValueError) as e:
        print(f"Bad arguments for '{command}': {e}")
        print(__doc__)
        return 1
    finally:
        db.close()
    return 0


def _parse_flag(args: list[str], name: str, default: str) -> str:
    for i, a in enumerate(args):
        if a == name and i + 1 < len(args):
            return args[i + 1]
    return default


def _positional(args: list[str]) -> list[str]:
    out = []
    skip = False
    for a in args:
        if skip:
            skip = False
            continue
        if a in ("--count", "--level"):
            skip = True
            continue
        if a.startswith("--"):
            continue
        out.append(a)
    return out


def _learn(db, settings, args: list[str]) -> None:
    from vocab_quiz.config import make_llm
    from vocab_quiz.extractor import analyze_errors
    from vocab_quiz.pipeline import process_user_text

    pos = _positional(args)
    user_id, text = int(pos[0]), " ".join(pos[1:])
    llm = make_llm(settings)

    async def run():
        errors = None
        if "--no-analysis" not in args:
            errors = await analyze_errors(llm, text, timeout=settings.generation_timeout)
            for e in errors:
                print(f"  ✗ {e.error_text} → {e.correction}  ({e.explanation})")
        return await process_user_text(llm, db, user_id, text, errors=errors, settings=settings)

    entries = asyncio.run(run())
    print(f"\nTracked {len(entries)} words:")
    for e in entries:
        print(f"  {e.word:20s} {e.level}  seen {e.times_encountered}x")


def _quiz(db, settings, args: list[str]) -> None:
    from vocab_quiz.config import make_llm
    from vocab_quiz.pipeline import generate_quiz

    pos = _positional(args)
    user_id, level = int(pos[0]), pos[1]
    count = int(_parse_flag(args, "--count", str(settings.default_question_count)))
    llm = make_llm(settings)

    print(f"Generating {count} questions using {llm.name()}...")
    quiz = asyncio.run(generate_quiz(llm, db, user_id, level, count=count, settings=settings))
    print(f"\n{quiz.title} (ID {quiz.id})")
    print("=" * 40)
    for n, q in enumerate(quiz.questions, 1):
        print(f"{n}. [{q.id}] {q.question}")
        for opt in q.options:
            print(f"     - {opt}")


def _grade(db, settings, args: list[str]) -> None:
    from vocab_quiz.pipeline import parse_answers, submit_answers

    user_id, quiz_id = int(args[0]), int(args[1])
    answers = parse_answers(json.loads(args[2]))
    result = submit_answers(db, user_id, quiz_id, answers)
    _print_result(result)


def _result(db, settings, args: list[str]) -> None:
    from vocab_quiz.grading import get_result_detail

    result = get_result_detail(db, int(args[0]), int(args[1]))
    _print_result(result)


def _print_result(result) -> None:
    print(f"Result {result.id}: {result.correct_answers}/{result.total_questions} "
          f"correct, score {result.score}")
    for a in result.answers:
        mark = "✓" if a.is_correct else "✗"
        label = a.question or f"question {a.question_id}"
        print(f"  {mark} {label}: {a.user_answer!r} (correct: {a.correct_answer!r})")


def _vocab(db, settings, args: list[str]) -> None:
    entries = db.list_vocabulary(int(args[0]))
    if not entries:
        print("No vocabulary tracked yet.")
        return
    for e in entries:
        star = "*" if e.mastered else " "
        print(f"{star} {e.word:20s} {e.level}  seen {e.times_encountered}x, "
              f"used correctly {e.times_correctly_used}x")


def _flashcards(db, settings, args: list[str]) -> None:
    from vocab_quiz.tracker import select_flashcards

    user_id = int(_positional(args)[0])
    level = _parse_flag(args, "--level", "ALL")
    count = int(_parse_flag(args, "--count", "10"))
    for e in select_flashcards(db, user_id, level=level, count=count):
        print(f"  {e.word:20s} {e.translation or '?'}  ({e.level})")


def _stats(db, settings, args: list[str]) -> None:
    stats = db.get_stats(int(args[0]))
    print("Vocab Quiz Stats")
    print("=" * 40)
    print(f"Words tracked:  {stats['words_tracked']}")
    print(f"Words mastered: {stats['words_mastered']}")
    print(f"Quizzes taken:  {stats['quizzes_taken']}")
    print(f"Average score:  {stats['average_score']}")


COMMANDS = {
    "learn": _learn,
    "quiz": _quiz,
    "grade": _grade,
    "result": _result,
    "vocab": _vocab,
    "flashcards": _flashcards,
    "stats": _stats,
}


if __name__ == "__main__":
    sys.exit(main())
