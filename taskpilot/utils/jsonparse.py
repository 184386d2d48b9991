# =============================================
# File: taskpilot/utils/jsonparse.py
# Purpose: Tolerant extraction of JSON arrays/objects embedded in model prose
# =============================================
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional


def _strip_fences(text: str) -> str:
    raw = (text or "").strip()
    if raw.startswith("```"):
        first_newline = raw.find("\n")
        last_fence = raw.rfind("```")
        if first_newline != -1 and last_fence > first_newline:
            raw = raw[first_newline:last_fence].strip()
    return raw


def _balanced_spans(text: str, opener: str, closer: str):
    """
    Yield every substring that starts at an `opener` and ends at its matching
    `closer`, honoring JSON string quoting. Leftmost first.
    """
    n = len(text)
    start = text.find(opener)
    while start != -1:
        depth = 0
        in_str = False
        escaped = False
        for i in range(start, n):
            ch = text[i]
            if in_str:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_str = False
                continue
            if ch == '"':
                in_str = True
            elif ch == opener:
                depth += 1
            elif ch == closer:
                depth -= 1
                if depth == 0:
                    yield text[start : i + 1]
                    break
        start = text.find(opener, start + 1)


def _first_json(text: str, opener: str, closer: str, kind: type) -> Optional[Any]:
    raw = _strip_fences(text)
    if not raw:
        return None

    # whole payload first, then the first well-formed bracketed span
    try:
        parsed = json.loads(raw)
        if isinstance(parsed, kind):
            return parsed
    except ValueError:
        pass

    for span in _balanced_spans(raw, opener, closer):
        try:
            parsed = json.loads(span)
        except ValueError:
            continue
        if isinstance(parsed, kind):
            return parsed
    return None


def extract_json_array(text: str) -> Optional[List[Any]]:
    """First well-formed JSON array inside `text`, or None."""
    return _first_json(text, "[", "]", list)


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """First well-formed JSON object inside `text`, or None."""
    return _first_json(text, "{", "}", dict)
