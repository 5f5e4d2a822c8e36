from __future__ import annotations

import asyncio
import json

import pytest
from rich.console import Console

from mathlogic.controller import SolveController, asolve_math_problem, solve_math_problem
from mathlogic.errors import ProblemParseError, ProofGenerationError
from mathlogic.models import Difficulty, MathResponse
from shared.agents import set_mock_mode

QUERY = "Prove that the square root of 2 is irrational"


def test_solve_runs_parser_then_generator(fake_agent, parsed_payload, proof_payload):
    fake_agent.answer("ParsedProblem", parsed_payload).answer("ProofBundle", proof_payload)

    usage: dict[str, int] = {}
    response = solve_math_problem(QUERY, usage=usage)

    assert isinstance(response, MathResponse)
    assert fake_agent.stages() == ["ParsedProblem", "ProofBundle"]
    assert response.parsed_problem is not None
    assert response.parsed_problem.difficulty_estimate in set(Difficulty)
    assert response.parsed_problem.id == parsed_payload["id"]
    assert usage == {"fake_calls": 2, "fake_tokens": 20}


def test_parse_failure_never_reaches_generator(fake_agent, proof_payload):
    fake_agent.answer("ParsedProblem", error=ConnectionError("offline"))
    fake_agent.answer("ProofBundle", proof_payload)

    with pytest.raises(ProblemParseError):
        solve_math_problem(QUERY)
    assert fake_agent.stages() == ["ParsedProblem"]


def test_generator_bad_json_returns_nothing(fake_agent, parsed_payload):
    fake_agent.answer("ParsedProblem", parsed_payload)
    fake_agent.answer("ProofBundle", text="Proof: trivially true.")

    result = None
    with pytest.raises(ProofGenerationError, match="Failed to generate proof"):
        result = solve_math_problem(QUERY)
    assert result is None
    assert fake_agent.stages() == ["ParsedProblem", "ProofBundle"]


@pytest.mark.parametrize("query", ["", "   \n"])
def test_empty_query_rejected_before_any_call(fake_agent, query):
    with pytest.raises(ValueError):
        solve_math_problem(query)
    assert fake_agent.calls == []


def test_async_wrapper(fake_agent, parsed_payload, proof_payload):
    fake_agent.answer("ParsedProblem", parsed_payload).answer("ProofBundle", proof_payload)
    response = asyncio.run(asolve_math_problem(QUERY))
    assert response.machine_readable_json.proof_id == proof_payload["machine_readable_json"]["proof_id"]


def test_mock_mode_end_to_end():
    set_mock_mode(True)
    response = solve_math_problem(QUERY)

    problem = response.parsed_problem
    assert "irrational" in problem.to_prove
    assert any("rational" in c for c in problem.domain_constraints)
    assert "number-theory" in problem.problem_tags
    assert "QED" in response.machine_readable_json.final_answer
    assert response.certainty_consistent()


def test_mock_unsure_carries_reason():
    set_mock_mode(True, scenario="unsure")
    response = solve_math_problem(QUERY)
    assert response.certainty.value == "UNSURE"
    assert response.uncertainty_reason


def test_controller_saves_run_artifacts(tmp_path):
    set_mock_mode(True)
    controller = SolveController(console=Console(record=True), run_root=tmp_path, save_runs=True)

    response = controller.solve(QUERY)

    run_dir = controller.last_run_dir
    assert run_dir is not None and run_dir.parent == tmp_path
    assert (run_dir / "query.txt").read_text(encoding="utf-8") == QUERY
    assert (run_dir / "logs" / "parse_problem.prompt.txt").exists()
    assert (run_dir / "logs" / "generate_proof.response.txt").exists()
    assert json.loads((run_dir / "usage.json").read_text(encoding="utf-8")) == {"mock_calls": 2}
    saved = run_dir / f"{response.machine_readable_json.proof_id}.json"
    assert MathResponse.model_validate_json(saved.read_text(encoding="utf-8")) == response
    assert controller.usage_totals == {"mock_calls": 2}


def test_controller_without_run_logs(tmp_path):
    set_mock_mode(True)
    controller = SolveController(console=Console(record=True), run_root=tmp_path, save_runs=False)
    controller.solve(QUERY)
    controller.solve(QUERY)
    assert controller.last_run_dir is None
    assert list(tmp_path.iterdir()) == []
    assert controller.usage_totals == {"mock_calls": 4}


def test_controller_records_usage_on_failure(tmp_path):
    set_mock_mode(True, scenario="bad_json")
    controller = SolveController(console=Console(record=True), run_root=tmp_path, save_runs=True)
    with pytest.raises(ProofGenerationError):
        controller.solve(QUERY)
    assert controller.usage_totals == {"mock_calls": 1}


def test_controller_saves_blank_proof_id_inside_run_dir(tmp_path, fake_agent, parsed_payload, proof_payload):
    proof_payload["machine_readable_json"]["proof_id"] = ""
    fake_agent.answer("ParsedProblem", parsed_payload).answer("ProofBundle", proof_payload)
    controller = SolveController(console=Console(record=True), run_root=tmp_path, save_runs=True)

    controller.solve(QUERY)

    run_dir = controller.last_run_dir
    assert (run_dir / "proof.json").exists()
    assert (run_dir / "proof.md").exists()
    assert sorted(p.name for p in tmp_path.iterdir()) == [run_dir.name]
