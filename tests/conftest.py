from __future__ import annotations

import copy
import json
from typing import Any, Callable, Optional

import pytest

from mathlogic import config
from mathlogic.models import MathResponse, ParsedProblem, ProofBundle
from shared import agents
from shared.agents import AgentResponse


@pytest.fixture(autouse=True)
def _isolate(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "SAVE_RUNS", False)
    monkeypatch.setattr(config, "RUNS_DIR", str(tmp_path / "runs"))
    yield
    agents.set_mock_mode(False)


@pytest.fixture
def parsed_payload() -> dict[str, Any]:
    return copy.deepcopy(agents._MOCK_PARSED_PROBLEM)


@pytest.fixture
def proof_payload() -> dict[str, Any]:
    return copy.deepcopy(agents._MOCK_PROOF)


@pytest.fixture
def parsed_problem(parsed_payload) -> ParsedProblem:
    return ParsedProblem.model_validate(parsed_payload)


@pytest.fixture
def math_response(parsed_problem, proof_payload) -> MathResponse:
    return MathResponse.from_bundle(ProofBundle.model_validate(proof_payload), parsed_problem)


class FakeAgent:
    """Stand-in for call_structured that answers per requested schema."""

    def __init__(self):
        self.calls: list[dict[str, Any]] = []
        self._answers: dict[str, Callable[[], AgentResponse]] = {}

    def answer(self, schema_name: str, payload: Any = None, *, text: Optional[str] = None, error: Optional[Exception] = None):
        def respond() -> AgentResponse:
            if error is not None:
                raise error
            body = text if text is not None else json.dumps(payload)
            return AgentResponse(text=body, usage={"fake_calls": 1, "fake_tokens": 10})

        self._answers[schema_name] = respond
        return self

    def stages(self) -> list[str]:
        return [call["schema"].__name__ for call in self.calls]

    def __call__(self, prompt: str, **kwargs) -> AgentResponse:
        self.calls.append({"prompt": prompt, **kwargs})
        return self._answers[kwargs["schema"].__name__]()


@pytest.fixture
def fake_agent(monkeypatch) -> FakeAgent:
    fake = FakeAgent()
    monkeypatch.setattr("mathlogic.operators.call_structured", fake)
    return fake
