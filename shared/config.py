"""Shared configuration for MathLogic Pro.

API keys, provider selection and call policy shared by every stage.
All settings can be overridden via environment variables (.env recommended).
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(PROJECT_ROOT / ".env")

# ============================================================================
# API Keys
# ============================================================================

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or os.getenv("API_KEY")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")

# ============================================================================
# Provider: "gemini" (default), "openai" or "anthropic"
# ============================================================================

LLM_PROVIDER = os.getenv("LLM_PROVIDER", "gemini").strip().lower()
SUPPORTED_PROVIDERS = ("gemini", "openai", "anthropic")

_PROVIDER_KEYS = {
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}

# ============================================================================
# Call policy (one attempt per stage unless overridden)
# ============================================================================

LLM_MAX_ATTEMPTS = max(1, int(os.getenv("LLM_MAX_ATTEMPTS", "1")))
LLM_RETRY_MAX_WAIT = float(os.getenv("LLM_RETRY_MAX_WAIT", "8"))

# ============================================================================
# Default token budget (used by shared agents as fallback)
# ============================================================================

DEFAULT_MAX_TOKENS = int(os.getenv("DEFAULT_MAX_TOKENS", "16000"))

# ============================================================================
# Logging
# ============================================================================

VERBOSE_DEFAULT = os.getenv("VERBOSE", "false").lower() in {"1", "true", "yes"}


def require_api_keys(*, allow_missing: bool = False, provider: str | None = None) -> None:
    """Validate that the key for the selected provider is present."""
    if allow_missing:
        return

    provider = (provider or LLM_PROVIDER).lower()
    if provider not in SUPPORTED_PROVIDERS:
        raise RuntimeError(
            f"Unsupported LLM_PROVIDER {provider!r}; expected one of: "
            + ", ".join(SUPPORTED_PROVIDERS)
        )

    env_name = _PROVIDER_KEYS[provider]
    if not globals().get(env_name):
        raise RuntimeError(
            f"Missing required environment variable: {env_name}. "
            "Create a .env file or export it in your shell."
        )
