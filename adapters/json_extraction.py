"""
Lenient JSON extraction for model replies.

Model output often wraps the JSON object in markdown fences or prose, and is
sometimes cut off by the token limit. ``extract_json`` tries, in order:

1. a direct parse of the reply with code fences removed,
2. the span from the first ``{`` to the last ``}``,
3. the same span (or the unterminated tail) after ``repair_incomplete_json``.

Repair is deliberately narrow: it removes trailing commas and appends the
missing closing ``]`` and ``}`` characters. It cannot recover a reply cut off
inside a string or after a key, and bracket counting does not look inside
string literals.
"""

import json
import logging
import re
from typing import Any, Dict, Optional

logger = logging.getLogger("wastenot.llm")

_TRAILING_COMMA = re.compile(r",\s*([}\]])")


def strip_code_fences(text: str) -> str:
    s = text.strip()
    if s.startswith("```"):
        s = re.sub(r"^```(?:json|JSON)?\s*", "", s)
        s = re.sub(r"\s*```$", "", s)
    return s


def repair_incomplete_json(fragment: str) -> str:
    """Close unbalanced brackets and braces and drop trailing commas"""
    s = fragment.rstrip().rstrip(",")
    missing_brackets = s.count("[") - s.count("]")
    missing_braces = s.count("{") - s.count("}")
    s += "]" * max(0, missing_brackets)
    s += "}" * max(0, missing_braces)
    return _TRAILING_COMMA.sub(r"\1", s)


def _loads_object(candidate: str) -> Optional[Dict[str, Any]]:
    try:
        data = json.loads(candidate)
    except (json.JSONDecodeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def extract_json(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Pull a JSON object out of a model reply.

    Returns:
        The parsed object, or None when nothing usable could be recovered.
    """
    if not text or not isinstance(text, str):
        return None

    cleaned = strip_code_fences(text)
    data = _loads_object(cleaned)
    if data is not None:
        return data

    start = cleaned.find("{")
    if start == -1:
        logger.warning("No JSON object found in model reply (%d chars)", len(text))
        return None

    end = cleaned.rfind("}")
    candidates = []
    if end > start:
        candidates.append(cleaned[start : end + 1])
    candidates.append(cleaned[start:])

    for candidate in candidates:
        data = _loads_object(candidate)
        if data is not None:
            return data
    for candidate in candidates:
        data = _loads_object(repair_incomplete_json(candidate))
        if data is not None:
            logger.info("Recovered truncated JSON from model reply")
            return data

    logger.warning("Could not parse JSON from model reply: %.200s", text)
    return None


def has_keys(data: Dict[str, Any], expected_keys) -> bool:
    missing = [key for key in expected_keys if key not in data]
    if missing:
        logger.warning("Model reply missing keys: %s", ", ".join(missing))
        return False
    return True
