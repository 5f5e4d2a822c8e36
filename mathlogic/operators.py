"""Pipeline stages: problem parsing and proof generation.

Each stage issues exactly one schema-constrained request, then checks the
reply twice: it must parse as JSON (otherwise the stage's generic failure),
and it must validate against the typed record (otherwise a
SchemaViolationError naming the offending fields).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, TypeVar

from pydantic import BaseModel, ValidationError

from mathlogic import config
from mathlogic.errors import (
    MathLogicError,
    ProblemParseError,
    ProofGenerationError,
    SchemaViolationError,
)
from mathlogic.models import ParsedProblem, ProofBundle
from mathlogic.prompts import format_parse_prompt, format_proof_prompt
from shared.agents import AgentResponse, call_structured
from shared.utils import parse_json_response, safe_filename

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


def _log_io(run_dir: Optional[Path], name: str, *, prompt: str, response: str, thinking: Optional[str] = None) -> None:
    """Log prompt, response, and thinking (if available) to files."""
    if not run_dir:
        return
    log_dir = run_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    safe_name = safe_filename(name)
    (log_dir / f"{safe_name}.prompt.txt").write_text(prompt, encoding="utf-8")
    (log_dir / f"{safe_name}.response.txt").write_text(response, encoding="utf-8")
    if thinking:
        (log_dir / f"{safe_name}.thinking.txt").write_text(thinking, encoding="utf-8")


def _format_validation_errors(exc: ValidationError) -> list[str]:
    errors = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "<root>"
        errors.append(f"{loc}: {err.get('msg', 'invalid')}")
    return errors


def _to_record(
    resp: AgentResponse,
    model: type[RecordT],
    *,
    stage: str,
    failure: type[MathLogicError],
) -> RecordT:
    if not resp.text:
        raise failure()
    try:
        data = parse_json_response(resp.text)
    except ValueError as exc:
        raise failure() from exc
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise SchemaViolationError(stage, _format_validation_errors(exc)) from exc


def parse_problem(
    query: str,
    *,
    run_dir: Optional[Path] = None,
) -> tuple[ParsedProblem, dict[str, int]]:
    """Turn free-form problem text into a ParsedProblem using the fast model."""
    prompt = format_parse_prompt(query)
    logger.info("Parsing problem with %s", config.PARSER_MODEL)

    try:
        resp = call_structured(
            prompt,
            model=config.PARSER_MODEL,
            schema=ParsedProblem,
            temperature=config.PARSER_TEMPERATURE,
            max_tokens=config.MAX_PARSE_TOKENS,
        )
    except Exception as exc:
        logger.debug("Parser call failed: %r", exc)
        raise ProblemParseError() from exc

    _log_io(run_dir, "parse_problem", prompt=prompt, response=resp.text, thinking=resp.thinking)

    parsed = _to_record(resp, ParsedProblem, stage="parse", failure=ProblemParseError)
    logger.info(
        "Parsed problem %s (difficulty=%s, tags=%s)",
        parsed.id, parsed.difficulty_estimate.value, ", ".join(parsed.problem_tags) or "-",
    )
    return parsed, resp.usage


def generate_proof(
    parsed: ParsedProblem,
    *,
    run_dir: Optional[Path] = None,
) -> tuple[ProofBundle, dict[str, int]]:
    """Ask the reasoning model for the proof bundle of a parsed problem."""
    prompt = format_proof_prompt(parsed.model_dump_json())
    logger.info("Generating proof with %s (thinking budget %d)", config.PROVER_MODEL, config.PROVER_THINKING_BUDGET)

    try:
        resp = call_structured(
            prompt,
            model=config.PROVER_MODEL,
            schema=ProofBundle,
            thinking_budget=config.PROVER_THINKING_BUDGET,
            reasoning_effort=config.PROVER_REASONING_EFFORT,
            max_tokens=config.MAX_PROOF_TOKENS,
        )
    except Exception as exc:
        logger.debug("Prover call failed: %r", exc)
        raise ProofGenerationError() from exc

    _log_io(run_dir, "generate_proof", prompt=prompt, response=resp.text, thinking=resp.thinking)

    bundle = _to_record(resp, ProofBundle, stage="generate", failure=ProofGenerationError)
    if not bundle.certainty_consistent():
        logger.warning(
            "Proof %s reports certainty=%s with%s an uncertainty reason",
            bundle.machine_readable_json.proof_id,
            bundle.certainty.value,
            "" if bundle.uncertainty_reason else "out",
        )
    logger.info(
        "Generated proof %s: %d steps, certainty=%s",
        bundle.machine_readable_json.proof_id,
        len(bundle.machine_readable_json.steps),
        bundle.certainty.value,
    )
    return bundle, resp.usage
