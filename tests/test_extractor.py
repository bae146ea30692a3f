"""Tests for vocabulary extraction, level classification and error analysis."""
from __future__ import annotations

import json

import pytest

from conftest import FakeLLM
from vocab_quiz.extractor import (
    analyze_errors,
    classify_level,
    extract_vocabulary,
    parse_level,
)


class TestExtractVocabulary:
    @pytest.mark.asyncio
    async def test_clean_array(self):
        llm = FakeLLM(responses=['["ubiquitous", "journey", "reliable"]'])
        words = await extract_vocabulary(llm, "Smartphones are ubiquitous on every journey.")
        assert words == {"ubiquitous", "journey", "reliable"}
        assert llm.call_count == 1
        assert "Smartphones are ubiquitous" in llm.prompts[0]

    @pytest.mark.asyncio
    async def test_trims_and_deduplicates(self):
        llm = FakeLLM(responses=['["  journey ", "Journey", "journey", "", "   ", "borrow"]'])
        words = await extract_vocabulary(llm, "text")
        assert len(words) == 2
        assert {w.lower() for w in words} == {"journey", "borrow"}
        assert all(w == w.strip() for w in words)

    @pytest.mark.asyncio
    async def test_non_string_items_dropped(self):
        llm = FakeLLM(responses=['["journey", 42, null, {"w": 1}]'])
        assert await extract_vocabulary(llm, "text") == {"journey"}

    @pytest.mark.asyncio
    async def test_recovers_from_wrapped_array(self):
        llm = FakeLLM(responses=['Here are the words:\n```json\n["journey", "borrow"]\n```'])
        assert await extract_vocabulary(llm, "text") == {"journey", "borrow"}
        assert llm.call_count == 1

    @pytest.mark.asyncio
    async def test_accepts_words_object(self):
        llm = FakeLLM(responses=[json.dumps({"words": ["journey"]})])
        assert await extract_vocabulary(llm, "text") == {"journey"}

    @pytest.mark.asyncio
    async def test_unparsable_returns_empty(self):
        llm = FakeLLM(responses=["I could not find any useful words, sorry!"])
        assert await extract_vocabulary(llm, "text") == set()

    @pytest.mark.asyncio
    async def test_backend_failure_returns_empty(self):
        llm = FakeLLM(fail=True)
        assert await extract_vocabulary(llm, "text") == set()

    @pytest.mark.asyncio
    async def test_timeout_returns_empty(self):
        llm = FakeLLM(responses=['["journey"]'], delay=0.5)
        assert await extract_vocabulary(llm, "text", timeout=0.01) == set()

    @pytest.mark.asyncio
    async def test_blank_text_skips_llm(self):
        llm = FakeLLM(responses=['["journey"]'])
        assert await extract_vocabulary(llm, "   ") == set()
        assert llm.call_count == 0

    @pytest.mark.asyncio
    async def test_short_words_kept(self):
        # Length filtering is the caller's job.
        llm = FakeLLM(responses=['["go", "journey"]'])
        assert await extract_vocabulary(llm, "text") == {"go", "journey"}


class TestParseLevel:
    @pytest.mark.parametrize("response,expected", [
        ("B2", "B2"),
        ("The level is C1.", "C1"),
        ("a2", "A2"),
        ("Level: **A1**", "A1"),
        ("I'm not sure", "B1"),
        ("", "B1"),
        ("D3", "B1"),
    ])
    def test_mapping(self, response, expected):
        assert parse_level(response) == expected


class TestClassifyLevel:
    @pytest.mark.asyncio
    async def test_known_code(self):
        llm = FakeLLM(responses=["C1"])
        assert await classify_level(llm, "ubiquitous") == "C1"
        assert "'ubiquitous'" in llm.prompts[0]

    @pytest.mark.asyncio
    async def test_unmappable_defaults_to_b1(self):
        llm = FakeLLM(responses=["It depends on context."])
        assert await classify_level(llm, "set") == "B1"

    @pytest.mark.asyncio
    async def test_failure_defaults_to_b1(self):
        llm = FakeLLM(fail=True)
        assert await classify_level(llm, "set") == "B1"


class TestAnalyzeErrors:
    @pytest.mark.asyncio
    async def test_parses_errors(self):
        llm = FakeLLM(responses=[json.dumps({"errors": [
            {"errorText": "I goed", "correction": "I went", "explanation": "irregular past"},
        ]})])
        errors = await analyze_errors(llm, "Yesterday I goed home.")
        assert len(errors) == 1
        assert errors[0].error_text == "I goed"
        assert errors[0].correction == "I went"

    @pytest.mark.asyncio
    async def test_skips_entries_without_text(self):
        llm = FakeLLM(responses=[json.dumps({"errors": [
            {"correction": "x"},
            "not an object",
            {"errorText": "teh", "correction": "the"},
        ]})])
        errors = await analyze_errors(llm, "teh cat")
        assert [e.error_text for e in errors] == ["teh"]

    @pytest.mark.asyncio
    async def test_no_errors(self):
        llm = FakeLLM(responses=['{"errors": []}'])
        assert await analyze_errors(llm, "All good.") == []

    @pytest.mark.asyncio
    async def test_garbage_is_no_errors(self):
        llm = FakeLLM(responses=["Looks fine to me!"])
        assert await analyze_errors(llm, "All good.") == []

    @pytest.mark.asyncio
    async def test_failure_is_no_errors(self):
        llm = FakeLLM(fail=True)
        assert await analyze_errors(llm, "All good.") == []
