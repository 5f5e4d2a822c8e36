"""Error taxonomy for the solve pipeline."""

from __future__ import annotations

GENERIC_FAILURE_MESSAGE = (
    "Failed to process the mathematical query. "
    "Please check your connection or try a clearer prompt."
)


class MathLogicError(RuntimeError):
    """Base class for every failure raised by the pipeline."""


class ProblemParseError(MathLogicError):
    def __init__(self, message: str = "Failed to parse problem"):
        super().__init__(message)


class ProofGenerationError(MathLogicError):
    def __init__(self, message: str = "Failed to generate proof"):
        super().__init__(message)


class SchemaViolationError(MathLogicError):
    """The model returned valid JSON that does not match the requested schema."""

    def __init__(self, stage: str, errors: list[str]):
        self.stage = stage
        self.errors = list(errors)
        detail = "; ".join(self.errors) if self.errors else "unknown violation"
        super().__init__(f"Schema violation in {stage} stage: {detail}")


class SessionBusyError(MathLogicError):
    def __init__(self, message: str = "A query is already in flight for this session"):
        super().__init__(message)
