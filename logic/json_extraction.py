"""Tolerant extraction of a JSON object from free-form model output."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterator, Optional

logger = logging.getLogger(__name__)


def _balanced_spans(text: str) -> Iterator[str]:
    """Yield each balanced ``{...}`` span, scanning left to right.

    Every ``{`` is tried as a starting point. Braces inside JSON string
    literals are ignored so that reasoning text such as ``"wear it {loosely}"``
    does not end a span early.
    """

    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        end = None
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    end = index
                    break
        if end is not None:
            yield text[start : end + 1]
        # Restart from the next brace whether or not this one closed.
        start = text.find("{", start + 1)


def extract_json_object(text: str | None) -> Optional[Dict[str, Any]]:
    """Return the first JSON object found in ``text``.

    The whole text is tried first, then every balanced ``{...}`` span in order
    of appearance. ``None`` means no structured result was found; this function
    never raises on malformed input.
    """

    if not text or not text.strip():
        return None

    stripped = text.strip()
    try:
        parsed = json.loads(stripped)
    except ValueError:
        parsed = None
    if isinstance(parsed, dict):
        return parsed

    for span in _balanced_spans(stripped):
        try:
            candidate = json.loads(span)
        except ValueError:
            continue
        if isinstance(candidate, dict):
            return candidate

    logger.info("No structured JSON object found in model output of length %s", len(stripped))
    return None


__all__ = ["extract_json_object"]
