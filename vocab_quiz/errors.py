"""Exception types raised across the vocabulary/quiz pipeline."""
from __future__ import annotations


class VocabQuizError(Exception):
    """Base class for all pipeline errors."""


class UpstreamError(VocabQuizError):
    """The text-generation backend was unreachable or returned an error."""


class ValidationError(VocabQuizError):
    """Generated content failed structural checks."""


class InsufficientDataError(VocabQuizError):
    """Not enough tracked vocabulary to build a quiz."""


class GenerationError(VocabQuizError):
    """Quiz assembly finished without a single usable question."""


class NotFoundError(VocabQuizError, LookupError):
    """Unknown quiz, result or vocabulary entry."""


class InvalidInputError(VocabQuizError, ValueError):
    """Caller-supplied input cannot be processed (e.g. empty answer set)."""
