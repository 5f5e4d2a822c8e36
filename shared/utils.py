"""Shared utilities for MathLogic Pro.

Generic helpers used by the solve pipeline and the CLIs.
No dependency on config or domain-specific models.
"""

from __future__ import annotations

import json
import re
import time
from pathlib import Path
from typing import Any, Optional


def ensure_dir(path: str | Path) -> Path:
    """Create directory and parents, return Path."""
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def now_timestamp() -> str:
    """ISO-like, filesystem-friendly timestamp."""
    return time.strftime("%Y%m%d-%H%M%S")


def merge_usage(total: dict[str, int], add: dict[str, int]) -> dict[str, int]:
    """Accumulate API usage dicts (handles string values like model_used)."""
    for k, v in add.items():
        if isinstance(v, str):
            total[k] = v
        else:
            total[k] = total.get(k, 0) + int(v)
    return total


def safe_filename(name: str) -> str:
    return "".join(ch if ch.isalnum() or ch in "-_." else "_" for ch in name)


# ============================================================================
# JSON parsing
# ============================================================================


def strip_code_fences(text: str) -> str:
    """If text is a fenced code block, return its contents."""
    t = text.strip()
    if t.startswith("```") and t.endswith("```"):
        lines = t.splitlines()
        if len(lines) >= 3:
            return "\n".join(lines[1:-1]).strip()
    return text


def _find_balanced_json_object(text: str) -> Optional[str]:
    """Extract the first balanced JSON object from text."""
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escape = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escape:
                escape = False
                continue
            if ch == "\\":
                escape = True
                continue
            if ch == '"':
                in_string = False
                continue
        else:
            if ch == '"':
                in_string = True
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start : i + 1]
    return None


def parse_json_response(text: str) -> dict[str, Any]:
    """Extract a JSON object from a model response.

    Handles raw JSON, markdown fenced code blocks, and surrounding commentary.
    Raises ValueError when no JSON object can be recovered.
    """
    raw = strip_code_fences(text).strip()

    # 1) Direct parse
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        data = None
    if isinstance(data, dict):
        return data

    # 2) Look for explicit ```json fenced blocks
    fence_patterns = [r"```json\s*(.*?)\s*```", r"```\s*(.*?)\s*```"]
    for pat in fence_patterns:
        m = re.search(pat, raw, flags=re.DOTALL | re.IGNORECASE)
        if m:
            try:
                data = json.loads(m.group(1).strip())
            except json.JSONDecodeError:
                continue
            if isinstance(data, dict):
                return data

    # 3) Balanced object scan
    candidate = _find_balanced_json_object(raw)
    if candidate:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            data = None
        if isinstance(data, dict):
            return data

    raise ValueError("Could not parse JSON object from response")
