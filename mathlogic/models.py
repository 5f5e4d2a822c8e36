from __future__ import annotations

import time
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    IMO = "IMO"


class Certainty(str, Enum):
    CERTAIN = "CERTAIN"
    UNSURE = "UNSURE"


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class View(str, Enum):
    """Display modes for a resolved response."""
    PROOF = "proof"
    JSON = "json"
    PYTHON = "python"


class ParsedProblem(BaseModel):
    """Structured description of the user's problem (Parser stage output)."""

    model_config = ConfigDict(frozen=True)

    id: str
    given: list[str]
    to_prove: str
    variables: list[str]
    domain_constraints: list[str]
    problem_tags: list[str]
    difficulty_estimate: Difficulty
    suggested_lemmas: list[str] = Field(default_factory=list)


class LogicStep(BaseModel):
    """One step of the machine-readable proof trace."""

    model_config = ConfigDict(frozen=True)

    step_no: int = Field(description="1-based position of the step in the proof.")
    statement: str = Field(description="The mathematical statement derived at this step.")
    justification: str = Field(
        description="The theorem or lemma used to justify this statement, or 'calculation'."
    )
    checkable_assertions: list[str] = Field(
        description="Short expressions executable in SymPy/Python (e.g. 'expand((x+1)**2) == x**2+2*x+1')."
    )
    confidence: str = Field(description="Confidence level 0.0 to 1.0")


class MachineReadableJson(BaseModel):
    """Strict logical breakdown of the proof steps."""

    model_config = ConfigDict(frozen=True)

    proof_id: str
    steps: list[LogicStep]
    final_answer: str = Field(description="The final answer or QED statement.")
    machine_checks: list[str] = Field(description="SymPy expressions verifying the final result.")

    @field_validator("steps")
    @classmethod
    def _steps_numbered_in_order(cls, steps: list[LogicStep]) -> list[LogicStep]:
        if not steps:
            raise ValueError("proof must contain at least one step")
        for expected, step in enumerate(steps, 1):
            if step.step_no != expected:
                raise ValueError(
                    f"step numbers must run 1..{len(steps)} without gaps; "
                    f"got {step.step_no} at position {expected}"
                )
        return steps


class ProofBundle(BaseModel):
    """What the Generator stage asks the reasoning model for."""

    model_config = ConfigDict(frozen=True)

    human_readable_proof: str = Field(
        description="A formal, step-by-step mathematical proof in Markdown format, "
        "using LaTeX style formatting for equations (e.g. $E=mc^2$)."
    )
    machine_readable_json: MachineReadableJson
    python_verification: str = Field(
        description="A short, executable Python/SymPy script to numerically or symbolically verify the result."
    )
    certainty: Certainty = Field(description="Whether the model is certain of the mathematical validity.")
    uncertainty_reason: Optional[str] = Field(default=None, description="If UNSURE, explain why.")

    def certainty_consistent(self) -> bool:
        """True when a reason is given exactly for UNSURE answers."""
        has_reason = bool(self.uncertainty_reason and self.uncertainty_reason.strip())
        return has_reason == (self.certainty is Certainty.UNSURE)


class MathResponse(ProofBundle):
    """Final result handed to the presentation layer."""

    parsed_problem: Optional[ParsedProblem] = None

    @classmethod
    def from_bundle(cls, bundle: ProofBundle, parsed_problem: ParsedProblem) -> "MathResponse":
        return cls(**dict(bundle), parsed_problem=parsed_problem)


class Message(BaseModel):
    """A single conversational turn."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: Union[MathResponse, str]
    timestamp: float = Field(default_factory=time.time)

    @property
    def is_response(self) -> bool:
        return isinstance(self.content, MathResponse)
