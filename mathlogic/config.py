"""MathLogic-specific configuration.

Inherits shared settings and adds model choices, sampling and reasoning
budgets, display thresholds and paths for the solve pipeline.
"""

from __future__ import annotations

import os
from pathlib import Path

from shared.config import *  # noqa: F401, F403 (re-export shared settings)
from shared.config import LLM_PROVIDER

# ============================================================================
# Models (fast parser, stronger prover)
# ============================================================================

_DEFAULT_MODELS = {
    "gemini": ("gemini-2.5-flash", "gemini-3-pro-preview"),
    "openai": ("gpt-5-mini", "gpt-5.2"),
    "anthropic": ("claude-haiku-4-5", "claude-sonnet-4-5"),
}
_parser_default, _prover_default = _DEFAULT_MODELS.get(LLM_PROVIDER, _DEFAULT_MODELS["gemini"])

PARSER_MODEL = os.getenv("PARSER_MODEL", _parser_default)
PROVER_MODEL = os.getenv("PROVER_MODEL", _prover_default)

# ============================================================================
# Sampling and reasoning budget
# ============================================================================

PARSER_TEMPERATURE = float(os.getenv("PARSER_TEMPERATURE", "0.2"))
PROVER_THINKING_BUDGET = int(os.getenv("PROVER_THINKING_BUDGET", "4096"))
PROVER_REASONING_EFFORT = os.getenv("PROVER_REASONING_EFFORT", "medium")

# ============================================================================
# Token budgets
# ============================================================================

MAX_PARSE_TOKENS = int(os.getenv("MAX_PARSE_TOKENS", "4096"))
MAX_PROOF_TOKENS = int(os.getenv("MAX_PROOF_TOKENS", "32000"))

# ============================================================================
# Display
# ============================================================================

LOW_CONFIDENCE_THRESHOLD = float(os.getenv("LOW_CONFIDENCE_THRESHOLD", "0.8"))

# ============================================================================
# Paths
# ============================================================================

_APP_ROOT = Path(__file__).resolve().parent
RUNS_DIR = os.getenv("RUNS_DIR", str(_APP_ROOT.parent / "runs"))
SAVE_RUNS = os.getenv("SAVE_RUNS", "false").lower() in {"1", "true", "yes"}
