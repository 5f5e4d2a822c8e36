"""LLM agent layer for MathLogic Pro.

Supports:
- Gemini (google-genai) with response schemas and thinking budgets
- OpenAI Responses API with json_schema output and reasoning.effort
- Claude Messages API with optional extended thinking
- Offline mock mode for tests and demos

Every call asks for a single JSON object matching a pydantic model.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel
from tenacity import retry, stop_after_attempt, wait_exponential_jitter

from shared import config

# Optional imports (only the selected provider's SDK is needed)
try:
    from google import genai
    from google.genai import types as genai_types
except Exception:
    genai = None
    genai_types = None

try:
    from openai import OpenAI
except Exception:
    OpenAI = None

try:
    from anthropic import Anthropic
except Exception:
    Anthropic = None


@dataclass
class AgentResponse:
    """Standard wrapper for LLM responses with minimal metadata."""

    text: str
    usage: dict[str, int]
    raw: Any | None = None
    thinking: str | None = None


_retry_policy = retry(
    stop=stop_after_attempt(config.LLM_MAX_ATTEMPTS),
    wait=wait_exponential_jitter(initial=1, max=config.LLM_RETRY_MAX_WAIT),
    reraise=True,
)


# ============================================================================
# Mock mode (offline testing)
# ============================================================================

MOCK_SCENARIOS = ("clean", "unsure", "network_error", "bad_json", "schema_violation")

_MOCK_MODE: bool = False
_MOCK_SCENARIO: str = "clean"


def set_mock_mode(enabled: bool, *, scenario: str = "clean") -> None:
    global _MOCK_MODE, _MOCK_SCENARIO
    if scenario not in MOCK_SCENARIOS:
        raise ValueError(f"Unknown mock scenario {scenario!r}")
    _MOCK_MODE = enabled
    _MOCK_SCENARIO = scenario


def is_mock_mode() -> bool:
    return _MOCK_MODE


def _mock_json(obj: dict) -> AgentResponse:
    return AgentResponse(text=json.dumps(obj, indent=2), usage={"mock_calls": 1}, raw=obj)


def _mock_text(text: str) -> AgentResponse:
    return AgentResponse(text=text, usage={"mock_calls": 1}, raw=None)


_MOCK_PARSED_PROBLEM = {
    "id": "sqrt2-irrational",
    "given": ["sqrt(2) is a real number"],
    "to_prove": "sqrt(2) is irrational",
    "variables": ["p", "q"],
    "domain_constraints": ["p, q are integers", "q != 0", "rational numbers"],
    "problem_tags": ["number-theory", "irrationality", "proof-by-contradiction"],
    "difficulty_estimate": "easy",
    "suggested_lemmas": ["Euclid's lemma", "If p^2 is even then p is even"],
}

_MOCK_PROOF = {
    "human_readable_proof": (
        "**Theorem.** $\\sqrt{2}$ is irrational.\n\n"
        "**Step 1.** Suppose $\\sqrt{2} = p/q$ with $p, q$ coprime integers and $q \\neq 0$.\n\n"
        "**Step 2.** Squaring gives $p^2 = 2q^2$, so $p^2$ is even.\n\n"
        "**Step 3.** By Euclid's lemma $p$ is even; write $p = 2k$.\n\n"
        "**Step 4.** Then $4k^2 = 2q^2$, so $q^2 = 2k^2$ and $q$ is even.\n\n"
        "**Step 5.** Both $p$ and $q$ are even, contradicting $\\gcd(p, q) = 1$. $\\blacksquare$"
    ),
    "machine_readable_json": {
        "proof_id": "sqrt2-irrational-proof",
        "steps": [
            {
                "step_no": 1,
                "statement": "Assume sqrt(2) = p/q with gcd(p, q) = 1, q != 0",
                "justification": "assumption for proof by contradiction",
                "checkable_assertions": [],
                "confidence": "1.0",
            },
            {
                "step_no": 2,
                "statement": "p**2 = 2*q**2",
                "justification": "calculation",
                "checkable_assertions": ["simplify((p/q)**2 - 2).subs(p, sqrt(2)*q) == 0"],
                "confidence": "0.99",
            },
            {
                "step_no": 3,
                "statement": "p is even, p = 2*k",
                "justification": "Euclid's lemma",
                "checkable_assertions": ["Mod((2*k)**2, 2) == 0"],
                "confidence": "0.97",
            },
            {
                "step_no": 4,
                "statement": "q**2 = 2*k**2, so q is even",
                "justification": "calculation",
                "checkable_assertions": ["expand((2*k)**2) == 4*k**2"],
                "confidence": "0.95",
            },
            {
                "step_no": 5,
                "statement": "2 divides gcd(p, q), contradicting gcd(p, q) = 1",
                "justification": "proof by contradiction",
                "checkable_assertions": [],
                "confidence": "0.95",
            },
        ],
        "final_answer": "QED: sqrt(2) is irrational",
        "machine_checks": ["sqrt(2).is_rational == False"],
    },
    "python_verification": (
        "from sympy import sqrt\n\n"
        "assert sqrt(2).is_rational is False\n"
        "print('sqrt(2) is irrational')\n"
    ),
    "certainty": "CERTAIN",
}


def _mock_structured(prompt: str) -> AgentResponse:
    lower = prompt.lower()
    if "parse the following math problem" in lower:
        if _MOCK_SCENARIO == "network_error":
            raise ConnectionError("(Mock) network unreachable")
        if _MOCK_SCENARIO == "schema_violation":
            broken = {k: v for k, v in _MOCK_PARSED_PROBLEM.items() if k != "to_prove"}
            return _mock_json(broken)
        return _mock_json(_MOCK_PARSED_PROBLEM)

    if _MOCK_SCENARIO == "bad_json":
        return _mock_text("(Mock) Here is the proof you asked for, sadly not as JSON.")
    proof = dict(_MOCK_PROOF)
    if _MOCK_SCENARIO == "unsure":
        proof["certainty"] = "UNSURE"
        proof["uncertainty_reason"] = "(Mock) Step 3 relies on a lemma that was not verified."
    return _mock_json(proof)


# ============================================================================
# API clients
# ============================================================================

_gemini_client: Any = None
_openai_client: Any = None
_anthropic_client: Any = None


def _get_gemini_client():
    global _gemini_client
    if _gemini_client is None:
        if genai is None:
            raise RuntimeError("google-genai package not installed")
        if not config.GEMINI_API_KEY:
            raise RuntimeError("Missing GEMINI_API_KEY (set it in .env or env vars)")
        _gemini_client = genai.Client(api_key=config.GEMINI_API_KEY)
    return _gemini_client


def _get_openai_client():
    global _openai_client
    if _openai_client is None:
        if OpenAI is None:
            raise RuntimeError("openai package not installed")
        if not config.OPENAI_API_KEY:
            raise RuntimeError("Missing OPENAI_API_KEY (set it in .env or env vars)")
        _openai_client = OpenAI(api_key=config.OPENAI_API_KEY)
    return _openai_client


def _get_anthropic_client():
    global _anthropic_client
    if _anthropic_client is None:
        if Anthropic is None:
            raise RuntimeError("anthropic package not installed")
        if not config.ANTHROPIC_API_KEY:
            raise RuntimeError("Missing ANTHROPIC_API_KEY (set it in .env or env vars)")
        _anthropic_client = Anthropic(api_key=config.ANTHROPIC_API_KEY)
    return _anthropic_client


def reset_clients() -> None:
    """Drop cached SDK clients (after changing keys or provider)."""
    global _gemini_client, _openai_client, _anthropic_client
    _gemini_client = _openai_client = _anthropic_client = None


# ============================================================================
# Gemini
# ============================================================================

def _usage_gemini(resp: Any) -> dict[str, int]:
    usage: dict[str, int] = {"gemini_calls": 1}
    u = getattr(resp, "usage_metadata", None)
    if u is None:
        return usage
    usage.update({
        "gemini_input_tokens": int(getattr(u, "prompt_token_count", 0) or 0),
        "gemini_output_tokens": int(getattr(u, "candidates_token_count", 0) or 0),
        "gemini_thinking_tokens": int(getattr(u, "thoughts_token_count", 0) or 0),
        "gemini_total_tokens": int(getattr(u, "total_token_count", 0) or 0),
    })
    return usage


@_retry_policy
def call_gemini(
    prompt: str,
    *,
    model: str,
    schema: type[BaseModel],
    temperature: Optional[float] = None,
    thinking_budget: Optional[int] = None,
    max_tokens: Optional[int] = None,
) -> AgentResponse:
    """Call Gemini with a JSON response schema."""
    client = _get_gemini_client()

    gen_config: dict[str, Any] = {
        "response_mime_type": "application/json",
        "response_schema": schema,
        "max_output_tokens": max_tokens or config.DEFAULT_MAX_TOKENS,
    }
    if temperature is not None:
        gen_config["temperature"] = temperature
    if thinking_budget is not None:
        gen_config["thinking_config"] = genai_types.ThinkingConfig(thinking_budget=thinking_budget)

    resp = client.models.generate_content(
        model=model,
        contents=[genai_types.Content(role="user", parts=[genai_types.Part(text=prompt)])],
        config=genai_types.GenerateContentConfig(**gen_config),
    )

    return AgentResponse(
        text=(resp.text or "").strip(),
        usage=_usage_gemini(resp),
        raw=resp,
    )


# ============================================================================
# GPT (Responses API)
# ============================================================================

def _usage_openai_responses(resp: Any) -> dict[str, int]:
    """Extract usage from Responses API response."""
    usage: dict[str, int] = {"openai_calls": 1}
    u = getattr(resp, "usage", None)
    if u is None:
        return usage
    details = getattr(u, "output_tokens_details", None)
    usage.update({
        "openai_input_tokens": int(getattr(u, "input_tokens", 0) or 0),
        "openai_output_tokens": int(getattr(u, "output_tokens", 0) or 0),
        "openai_reasoning_tokens": int(getattr(details, "reasoning_tokens", 0) or 0),
        "openai_total_tokens": int(getattr(u, "total_tokens", 0) or 0),
    })
    return usage


_REASONING_MODEL_PREFIXES = ("gpt-5", "o1", "o3", "o4")


def is_reasoning_model(model: str) -> bool:
    """True for OpenAI model families that only accept the default temperature."""
    name = model.lower().rsplit("/", 1)[-1]
    return name.startswith(_REASONING_MODEL_PREFIXES)


@_retry_policy
def call_gpt(
    prompt: str,
    *,
    model: str,
    schema: type[BaseModel],
    temperature: Optional[float] = None,
    reasoning_effort: Optional[str] = None,
    max_tokens: Optional[int] = None,
) -> AgentResponse:
    """Call GPT using the Responses API with a json_schema text format."""
    client = _get_openai_client()

    kwargs: dict[str, Any] = {
        "model": model,
        "input": [{"role": "user", "content": prompt}],
        "text": {
            "format": {
                "type": "json_schema",
                "name": schema.__name__,
                "schema": schema.model_json_schema(),
                "strict": False,
            }
        },
        "max_output_tokens": max_tokens or config.DEFAULT_MAX_TOKENS,
    }
    # Reasoning models reject sampling parameters
    if reasoning_effort:
        kwargs["reasoning"] = {"effort": reasoning_effort}
    elif temperature is not None and not is_reasoning_model(model):
        kwargs["temperature"] = temperature

    resp = client.responses.create(**kwargs)

    text_parts = []
    thinking_parts = []
    for item in getattr(resp, "output", []) or []:
        for block in getattr(item, "content", []) or []:
            if hasattr(block, "text"):
                text_parts.append(block.text)
        for block in getattr(item, "summary", []) or []:
            if hasattr(block, "text"):
                thinking_parts.append(block.text)

    return AgentResponse(
        text="".join(text_parts).strip(),
        usage=_usage_openai_responses(resp),
        raw=resp,
        thinking="".join(thinking_parts) if thinking_parts else None,
    )


# ============================================================================
# Claude (Messages API with thinking)
# ============================================================================

def _usage_anthropic(resp: Any) -> dict[str, int]:
    usage: dict[str, int] = {"anthropic_calls": 1}
    u = getattr(resp, "usage", None)
    if u is None:
        return usage
    usage.update({
        "anthropic_input_tokens": int(getattr(u, "input_tokens", 0) or 0),
        "anthropic_output_tokens": int(getattr(u, "output_tokens", 0) or 0),
    })
    return usage


@_retry_policy
def call_claude(
    prompt: str,
    *,
    model: str,
    schema: type[BaseModel],
    temperature: Optional[float] = None,
    thinking_budget: Optional[int] = None,
    max_tokens: Optional[int] = None,
) -> AgentResponse:
    """Call Claude, embedding the JSON schema in the prompt."""
    client = _get_anthropic_client()

    final_prompt = (
        f"{prompt}\n\nResponse JSON schema:\n"
        f"{json.dumps(schema.model_json_schema(), indent=2)}\n\n"
        "IMPORTANT: Respond with valid JSON only."
    )
    budget_max = max_tokens or config.DEFAULT_MAX_TOKENS

    kwargs: dict[str, Any] = {
        "model": model,
        "max_tokens": budget_max,
        "messages": [{"role": "user", "content": final_prompt}],
    }
    if thinking_budget:
        # budget_tokens must stay below max_tokens; temperature is fixed with thinking on
        kwargs["thinking"] = {"type": "enabled", "budget_tokens": thinking_budget}
        kwargs["max_tokens"] = max(budget_max, thinking_budget + 1024)
    elif temperature is not None:
        kwargs["temperature"] = temperature

    # Large max_tokens values are refused without streaming
    with client.messages.stream(**kwargs) as stream:
        resp = stream.get_final_message()

    text_parts = []
    thinking_parts = []
    for block in getattr(resp, "content", []) or []:
        block_type = getattr(block, "type", None)
        if block_type == "text":
            text_parts.append(getattr(block, "text", ""))
        elif block_type == "thinking":
            thinking_parts.append(getattr(block, "thinking", ""))

    return AgentResponse(
        text="".join(text_parts).strip(),
        usage=_usage_anthropic(resp),
        raw=resp,
        thinking="".join(thinking_parts) if thinking_parts else None,
    )


# ============================================================================
# Dispatch
# ============================================================================

def call_structured(
    prompt: str,
    *,
    model: str,
    schema: type[BaseModel],
    temperature: Optional[float] = None,
    thinking_budget: Optional[int] = None,
    reasoning_effort: Optional[str] = None,
    max_tokens: Optional[int] = None,
    provider: Optional[str] = None,
) -> AgentResponse:
    """Send one user-role prompt to the configured provider and ask for `schema` JSON."""
    if _MOCK_MODE:
        return _mock_structured(prompt)

    provider = (provider or config.LLM_PROVIDER).lower()
    if provider == "gemini":
        return call_gemini(
            prompt,
            model=model,
            schema=schema,
            temperature=temperature,
            thinking_budget=thinking_budget,
            max_tokens=max_tokens,
        )
    if provider == "openai":
        return call_gpt(
            prompt,
            model=model,
            schema=schema,
            temperature=temperature,
            reasoning_effort=reasoning_effort,
            max_tokens=max_tokens,
        )
    if provider == "anthropic":
        return call_claude(
            prompt,
            model=model,
            schema=schema,
            temperature=temperature,
            thinking_budget=thinking_budget,
            max_tokens=max_tokens,
        )
    raise RuntimeError(f"Unsupported LLM provider: {provider!r}")
