"""Tests for prompt templates and formatting."""
from __future__ import annotations

import pytest

from vocab_quiz.models import CEFR_LEVELS
from vocab_quiz.prompts import (
    CLASSIFY_LEVEL_PROMPT,
    ERROR_ANALYSIS_PROMPT,
    EXTRACT_VOCABULARY_PROMPT,
    LEVEL_GUIDANCE,
    QUIZ_QUESTION_PROMPT,
    format_level_guidance,
)


class TestFormatLevelGuidance:
    def test_every_level_has_guidance(self):
        assert set(LEVEL_GUIDANCE) == set(CEFR_LEVELS)

    def test_case_insensitive(self):
        assert format_level_guidance("c2") == LEVEL_GUIDANCE["C2"]

    def test_unknown_falls_back_to_b1(self):
        assert format_level_guidance("Z9") == LEVEL_GUIDANCE["B1"]


class TestPromptTemplates:
    @pytest.mark.parametrize("level", CEFR_LEVELS)
    def test_quiz_question_formats(self, level):
        result = QUIZ_QUESTION_PROMPT.format(
            word="journey", level=level, level_guidance=format_level_guidance(level),
        )
        assert "'journey'" in result
        assert f"{level} level" in result
        assert LEVEL_GUIDANCE[level] in result
        assert '"correctAnswer"' in result
        assert "{" in result  # JSON braces survive formatting

    def test_extract_formats(self):
        result = EXTRACT_VOCABULARY_PROMPT.format(text="I love my journey.")
        assert "'I love my journey.'" in result
        assert "JSON array" in result

    def test_classify_formats(self):
        result = CLASSIFY_LEVEL_PROMPT.format(word="ubiquitous")
        assert "'ubiquitous'" in result

    def test_error_analysis_formats(self):
        result = ERROR_ANALYSIS_PROMPT.format(text="I goed home.")
        assert "I goed home." in result
        assert '{"errors": []}' in result
