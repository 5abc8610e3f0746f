"""Shared utilities for parsing LLM responses."""

from __future__ import annotations

from typing import Optional


def strip_code_fences(raw: str) -> str:
    """Drop markdown fence lines (```json ... ```) from a model reply."""
    if "```" not in raw:
        return raw
    lines = [line for line in raw.split("\n") if not line.strip().startswith("```")]
    return "\n".join(lines)


def extract_json_object(raw: str) -> Optional[str]:
    """Return the first top-level ``{...}`` substring of ``raw``.

    Braces inside JSON strings are ignored, so prose before the object and
    trailing text (even text containing braces) do not confuse the scan.
    Returns None when no balanced object is found.
    """
    if not raw:
        return None

    start = raw.find("{")
    while start >= 0:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(raw)):
            ch = raw[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return raw[start:i + 1]
        # Unbalanced from this brace; try the next one
        start = raw.find("{", start + 1)
    return None

