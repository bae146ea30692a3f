"""Isolate the JSON payload inside a raw LLM response.

Models wrap JSON in code fences, lead with "Sure, here it is:" and trail
off with "Hope that helps!".  :func:`sanitize` cuts the response down to the
span between the first opening and last closing bracket.  It is a heuristic,
not a parser: it never raises and ``sanitize(sanitize(x)) == sanitize(x)``.
"""
from __future__ import annotations

import json
import logging

_log = logging.getLogger("vocab_quiz.sanitize")


def sanitize(raw: str, array: bool = False) -> str:
    """Return the ``{…}`` (or ``[…]`` when *array*) span of *raw*.

    If no opening bracket is found, or the last closing bracket does not
    come after it, *raw* is returned unchanged.
    """
    if not isinstance(raw, str):
        return raw
    opener, closer = ("[", "]") if array else ("{", "}")
    start = raw.find(opener)
    end = raw.rfind(closer)
    if start == -1 or end == -1 or end <= start:
        return raw
    return raw[start : end + 1]


def _loads(text: str):
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None


def parse_json_object(raw: str) -> dict | None:
    """Parse *raw* as a JSON object, retrying once on the sanitized text."""
    data = _loads(raw)
    if not isinstance(data, dict):
        data = _loads(sanitize(raw))
    if isinstance(data, dict):
        return data
    _log.debug("No JSON object in response: %.300s", raw)
    return None


def parse_json_array(raw: str) -> list | None:
    """Parse *raw* as a JSON array, retrying once on the sanitized text."""
    data = _loads(raw)
    if not isinstance(data, list):
        data = _loads(sanitize(raw, array=True))
    if isinstance(data, list):
        return data
    _log.debug("No JSON array in response: %.300s", raw)
    return None
