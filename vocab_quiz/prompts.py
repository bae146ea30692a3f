"""Prompt templates for vocabulary extraction, level classification and quiz generation."""
from __future__ import annotations

EXTRACT_VOCABULARY_PROMPT = """\
Extract the most important vocabulary words from the following text.
Include only words that would be useful for an English language learner to know.
Skip names, numbers and very common function words (the, and, is, ...).

Return a JSON array containing only the words, with no other text:
["word1", "word2", "word3"]

Text: '{text}'
"""

CLASSIFY_LEVEL_PROMPT = """\
Determine the CEFR level (A1, A2, B1, B2, C1, or C2) of the English word '{word}'.
Return only the level designation as a single string.
"""

ERROR_ANALYSIS_PROMPT = """\
You are an English language tutor. Analyze the following text for grammar, spelling, \
and vocabulary errors. For each error found, provide the correction and a brief \
explanation of the rule.

Respond in this exact JSON format only, with no other text:
{{
  "errors": [
    {{"errorText": "the wrong text", "correction": "the fixed text", "explanation": "the rule"}}
  ]
}}
If there are no errors, return {{"errors": []}}.

Text to analyze: '{text}'
"""

LEVEL_GUIDANCE = {
    "A1": "Use only very simple, everyday words in the question and options. Keep sentences under 10 words.",
    "A2": "Use simple words and short sentences. Options should be concrete and familiar.",
    "B1": "Use clear, everyday language. Distractors may be related words with different meanings.",
    "B2": "Use natural language with some abstraction. Distractors should be plausible near-misses.",
    "C1": "Use sophisticated language. Distractors should differ from the answer in nuance or register.",
    "C2": "Use advanced, idiomatic language. Distractors should be subtle and require precise understanding.",
}

QUIZ_QUESTION_PROMPT = """\
You are an English language teacher creating a vocabulary quiz.

Create ONE multiple-choice question about the word '{word}' appropriate for \
{level} level English students.
{level_guidance}

Instructions:
1. Write a specific question that tests understanding of '{word}'. Don't just ask \
"What is the meaning of {word}?" For example, for 'book' ask "Which of these is a book?" \
or "What do you typically do with a book?"
2. Provide exactly 4 different options. Only one may be correct.
3. The options should be meaningful alternatives, not "Option 2", "Option 3".
4. "correctAnswer" must be an exact copy of the correct option.
5. Write a brief explanation (1-2 sentences) of why the answer is correct.

Respond with a single JSON object in this exact format, with no other text:
{{
  "question": "A specific question about the word",
  "options": ["Correct answer", "Wrong answer 1", "Wrong answer 2", "Wrong answer 3"],
  "correctAnswer": "Correct answer",
  "explanation": "Why this is correct"
}}
"""


def format_level_guidance(level: str) -> str:
    return LEVEL_GUIDANCE.get(level.upper(), LEVEL_GUIDANCE["B1"])
