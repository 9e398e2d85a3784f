"""
JSON recovery for LLM replies.

Models asked for JSON occasionally wrap it in markdown fences or add prose
around it; these helpers pull the object back out.
"""

import json
from typing import Any, Dict, List, Optional


def strip_code_fences(text: str) -> str:
    normalized = (text or "").strip()
    if normalized.startswith("```"):
        lines = [line for line in normalized.split("\n") if not line.strip().startswith("```")]
        normalized = "\n".join(lines).strip()
    return normalized


def extract_largest_balanced_json(text: str) -> Optional[str]:
    """Return the largest balanced ``{...}`` block in text, respecting string literals."""
    if not text:
        return None

    in_string = False
    escape = False
    depth = 0
    start_idx: Optional[int] = None
    best: Optional[str] = None

    for i, ch in enumerate(text):
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            if depth == 0:
                start_idx = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0 and start_idx is not None:
                candidate = text[start_idx:i + 1]
                if best is None or len(candidate) > len(best):
                    best = candidate
                start_idx = None

    return best


def parse_json_object(text: str) -> Dict[str, Any]:
    """Parse an LLM reply into a JSON object.

    Raises:
        ValueError: if no JSON object can be recovered
    """
    normalized = strip_code_fences(text)
    candidates: List[str] = [normalized]
    extracted = extract_largest_balanced_json(normalized)
    if extracted and extracted != normalized:
        candidates.append(extracted)

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    raise ValueError("No JSON object found in model response")
