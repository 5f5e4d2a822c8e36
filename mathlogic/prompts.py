"""Instruction templates for the two pipeline stages.

Templates use str.format placeholders; literal braces are doubled.
"""

from __future__ import annotations

PARSE_PROBLEM_TEMPLATE = """Task: Parse the following math problem and return structured JSON.

Input: <<{query}>>

Output Format (JSON):
{{
  "id": "<unique id>",
  "given": ["<bullet statements>"],
  "to_prove": "<single sentence>",
  "variables": ["x","n",...],
  "domain_constraints": ["positive integers","real",...],
  "problem_tags": ["algebra","number-theory",...],
  "difficulty_estimate": "easy|medium|hard|IMO",
  "suggested_lemmas": ["lemma1","lemma2"]
}}

Keep output minimal and valid JSON."""


GENERATE_PROOF_TEMPLATE = """Input JSON = <<{problem_json}>>.

Produce three outputs (wrapped in the response JSON structure):

1) Machine-Readable Logic (JSON):
{{
  "proof_id": "<id>",
  "steps": [
    {{"step_no":1, "statement":"...", "justification":"<theorem/lemma/reference>", "checkable_assertions":["expr1","expr2"], "confidence":"0-1"}}
  ],
  "final_answer":"...",
  "machine_checks": ["sympy_expressions_or_assertions"]
}}

2) Human-Readable Proof (Markdown):
- Formal, step-by-step mathematical proof.
- Labeled steps must correspond to the JSON logic steps.
- Use LaTeX formatting for equations (e.g., $x^2 + y^2 = z^2$).

3) Python Verification:
- A standalone Python/SymPy script to verify the result.

Rules:
- Each step must be minimal and logically follow previous steps.
- Number steps 1, 2, 3, ... in order, without gaps.
- Justification must cite known theorems (e.g., "Euclid's lemma", "modular arithmetic"), or say "calculation".
- checkable_assertions should be short expressions executable in SymPy/Python (e.g., "expand((x+1)**2) == x**2+2*x+1").
- Confidence 0-1 (0.0 low, 1.0 certain), written as a string.
- Set certainty to CERTAIN or UNSURE; give uncertainty_reason only when UNSURE."""


def format_parse_prompt(query: str) -> str:
    return PARSE_PROBLEM_TEMPLATE.format(query=query)


def format_proof_prompt(problem_json: str) -> str:
    return GENERATE_PROOF_TEMPLATE.format(problem_json=problem_json)
