"""
Best-effort JSON extraction from model output.

Generative models wrap JSON in prose, markdown code fences, or both.
This module finds the FIRST balanced JSON object in free text.

CONTRACT:
- Returns a dict when a well-formed object is found
- Returns None when there is none (never raises)
- Braces inside JSON strings do not affect balancing
"""

import json
from typing import Any, Optional


def _balanced_object_end(text: str, start: int) -> Optional[int]:
    """Index just past the '}' closing the object opened at `start`."""
    depth = 0
    in_string = False
    escaped = False

    for idx in range(start, len(text)):
        char = text[idx]
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
                return idx + 1
    return None


def extract_first_json_object(text: Optional[str]) -> Optional[dict[str, Any]]:
    """
    Extract the first well-formed JSON object embedded in `text`.

    Candidates that are balanced but not valid JSON (e.g. "{price}" in
    prose) are skipped and the scan continues after their opening brace.
    """
    if not text:
        return None

    start = text.find("{")
    while start != -1:
        end = _balanced_object_end(text, start)
        if end is not None:
            try:
                value = json.loads(text[start:end])
            except ValueError:
                value = None
            if isinstance(value, dict):
                return value
        start = text.find("{", start + 1)

    return None
