"""MathLogic-specific utilities.

Confidence handling for display, artifact writing, and timing.
"""

from __future__ import annotations

import json
import math
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from mathlogic import config
from mathlogic.models import MathResponse


def parse_confidence(raw: str) -> Optional[float]:
    """Parse a confidence string and clamp it to [0, 1]. None if not numeric."""
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError):
        return None
    if math.isnan(value):
        return None
    return min(1.0, max(0.0, value))


def is_low_confidence(confidence: str, threshold: Optional[float] = None) -> bool:
    """Unparseable confidences count as low."""
    value = parse_confidence(confidence)
    if value is None:
        return True
    limit = config.LOW_CONFIDENCE_THRESHOLD if threshold is None else threshold
    return value <= limit


@dataclass
class Stopwatch:
    """Lightweight wall-clock timer."""
    start: float = 0.0

    def __post_init__(self) -> None:
        if self.start == 0.0:
            self.start = time.time()

    def elapsed_s(self) -> float:
        return time.time() - self.start


def response_markdown(response: MathResponse) -> str:
    """Flatten all three views into one markdown document."""
    logic = response.machine_readable_json
    problem = response.parsed_problem

    md = [f"# Proof: {logic.proof_id}", "", f"**Certainty:** {response.certainty.value}"]
    if problem is not None:
        md.append(f"**Difficulty:** {problem.difficulty_estimate.value}")
        md += ["", "## Problem Analysis", "", "**Given:**", ""]
        md += [f"- {g}" for g in problem.given] or ["- (none)"]
        md += ["", f"**To Prove:** {problem.to_prove}"]
    if response.uncertainty_reason:
        md += ["", f"> **Note:** {response.uncertainty_reason}"]

    md += ["", "---", "", response.human_readable_proof, "", "---", "", "## Step-by-Step Logic", ""]
    for step in logic.steps:
        md.append(f"### Step {step.step_no} (confidence: {step.confidence})")
        md.append("")
        md.append(f"**Statement:** {step.statement}")
        md.append(f"**Justification:** {step.justification}")
        if step.checkable_assertions:
            md.append("")
            md += [f"- `{a}`" for a in step.checkable_assertions]
        md.append("")

    md += [f"**Final Answer:** {logic.final_answer}", ""]
    md += ["## Verification", "", "```python", response.python_verification.rstrip(), "```", ""]
    if logic.machine_checks:
        md += ["**Machine checks:**", ""] + [f"- `{c}`" for c in logic.machine_checks] + [""]
    return "\n".join(md)


def save_response(response: MathResponse, out_base: Path) -> tuple[Path, Path]:
    """Write BASE.json and BASE.md; return (md_path, json_path)."""
    # Append, so dotted names like "thm-1.2" keep their tail
    json_path = out_base.with_name(out_base.name + ".json")
    md_path = out_base.with_name(out_base.name + ".md")

    json_path.parent.mkdir(parents=True, exist_ok=True)
    json_path.write_text(response.model_dump_json(indent=2), encoding="utf-8")
    md_path.write_text(response_markdown(response), encoding="utf-8")

    return md_path, json_path


def save_usage(usage: dict[str, int], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(usage, indent=2), encoding="utf-8")
    return path
