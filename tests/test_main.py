"""Tests for the command-line entry point."""
from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from conftest import FakeLLM, question_json
from vocab_quiz.__main__ import COMMANDS, main
from vocab_quiz.config import Settings


@pytest.fixture
def cli(tmp_path):
    """Run the CLI against a temporary database and a scripted LLM."""
    settings = Settings(db_path=str(tmp_path / "cli.db"))

    def route(prompt):
        if prompt.startswith("Extract"):
            return json.dumps(["journey", "borrow", "reliable", "improve", "opinion"])
        if prompt.startswith("Determine the CEFR level"):
            return "A2"
        if "analyze" in prompt.lower():
            return '{"errors": []}'
        return question_json()

    llm = FakeLLM(router=route)
    with patch("vocab_quiz.config.load_settings", return_value=settings), \
            patch("vocab_quiz.config.make_llm", return_value=llm):
        yield main


class TestMain:
    def test_no_command(self, capsys):
        assert main([]) == 1
        assert "No command given" in capsys.readouterr().out

    def test_unknown_command(self, capsys):
        assert main(["serve"]) == 1
        out = capsys.readouterr().out
        assert "Unknown command: serve" in out
        assert "Commands: learn, quiz, grade, result, vocab, flashcards, stats" in out

    def test_command_table(self):
        assert list(COMMANDS) == ["learn", "quiz", "grade", "result", "vocab", "flashcards", "stats"]
        assert all(callable(handler) for handler in COMMANDS.values())

    @pytest.mark.parametrize("name", ["parse_flag", "positional", "print_result"])
    def test_helpers_are_not_commands(self, name, capsys):
        assert main([name]) == 1
        assert f"Unknown command: {name}" in capsys.readouterr().out

    def test_empty_vocab(self, cli, capsys):
        assert cli(["vocab", "1"]) == 0
        assert "No vocabulary tracked yet." in capsys.readouterr().out

    def test_learn_then_vocab(self, cli, capsys):
        assert cli(["learn", "1", "My", "journey", "was", "reliable"]) == 0
        assert "Tracked 5 words" in capsys.readouterr().out
        assert cli(["vocab", "1"]) == 0
        out = capsys.readouterr().out
        assert "journey" in out
        assert "A2" in out

    def test_quiz_needs_words(self, cli, capsys):
        assert cli(["quiz", "1", "B1"]) == 1
        assert "Error: Not enough vocabulary words" in capsys.readouterr().out

    def test_learn_quiz_grade_stats(self, cli, capsys):
        cli(["learn", "1", "some text", "--no-analysis"])
        assert cli(["quiz", "1", "B1", "--count", "2"]) == 0
        out = capsys.readouterr().out
        assert "B1 Vocabulary Quiz (ID 1)" in out

        assert cli(["grade", "1", "1", json.dumps({"1": "A book", "2": "A spoon"})]) == 0
        assert "1/2 correct, score 50" in capsys.readouterr().out

        assert cli(["result", "1", "1"]) == 0
        assert "Which of these do you read?" in capsys.readouterr().out

        assert cli(["stats", "1"]) == 0
        out = capsys.readouterr().out
        assert "Quizzes taken:  1" in out
        assert "Average score:  50" in out

    def test_bad_arguments(self, cli, capsys):
        assert cli(["grade", "1", "1", "{not json"]) == 1
        assert "Bad arguments for 'grade'" in capsys.readouterr().out

    def test_missing_result(self, cli, capsys):
        assert cli(["result", "1", "99"]) == 1
        assert "Error: Quiz result with ID 99 not found" in capsys.readouterr().out
