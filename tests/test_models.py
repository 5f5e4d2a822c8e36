from __future__ import annotations

import pytest
from pydantic import ValidationError

from mathlogic.models import (
    Certainty,
    Difficulty,
    MachineReadableJson,
    MathResponse,
    Message,
    ParsedProblem,
    ProofBundle,
    Role,
)


def test_parsed_problem_accepts_known_difficulties(parsed_payload):
    for value in ("easy", "medium", "hard", "IMO"):
        parsed_payload["difficulty_estimate"] = value
        assert ParsedProblem.model_validate(parsed_payload).difficulty_estimate == Difficulty(value)


def test_parsed_problem_rejects_unknown_difficulty(parsed_payload):
    parsed_payload["difficulty_estimate"] = "impossible"
    with pytest.raises(ValidationError):
        ParsedProblem.model_validate(parsed_payload)


def test_suggested_lemmas_optional(parsed_payload):
    del parsed_payload["suggested_lemmas"]
    assert ParsedProblem.model_validate(parsed_payload).suggested_lemmas == []


@pytest.mark.parametrize("field", ["id", "given", "to_prove", "variables", "domain_constraints", "problem_tags"])
def test_parsed_problem_required_fields(parsed_payload, field):
    del parsed_payload[field]
    with pytest.raises(ValidationError):
        ParsedProblem.model_validate(parsed_payload)


def test_records_are_frozen(parsed_problem):
    with pytest.raises(ValidationError):
        parsed_problem.to_prove = "something else"


def test_steps_must_be_non_empty(proof_payload):
    logic = proof_payload["machine_readable_json"]
    logic["steps"] = []
    with pytest.raises(ValidationError, match="at least one step"):
        MachineReadableJson.model_validate(logic)


def test_steps_must_be_numbered_without_gaps(proof_payload):
    logic = proof_payload["machine_readable_json"]
    logic["steps"][2]["step_no"] = 7
    with pytest.raises(ValidationError, match="without gaps"):
        MachineReadableJson.model_validate(logic)


def test_steps_may_not_be_reordered(proof_payload):
    logic = proof_payload["machine_readable_json"]
    logic["steps"][0], logic["steps"][1] = logic["steps"][1], logic["steps"][0]
    with pytest.raises(ValidationError):
        MachineReadableJson.model_validate(logic)


def test_logic_round_trip_preserves_step_order(proof_payload):
    logic = MachineReadableJson.model_validate(proof_payload["machine_readable_json"])
    restored = MachineReadableJson.model_validate_json(logic.model_dump_json())
    assert restored == logic
    assert [s.step_no for s in restored.steps] == [1, 2, 3, 4, 5]
    assert [s.statement for s in restored.steps] == [s.statement for s in logic.steps]


def test_confidence_kept_as_opaque_string(proof_payload):
    proof_payload["machine_readable_json"]["steps"][0]["confidence"] = "very high"
    bundle = ProofBundle.model_validate(proof_payload)
    assert bundle.machine_readable_json.steps[0].confidence == "very high"


def test_certainty_consistency(proof_payload):
    assert ProofBundle.model_validate(proof_payload).certainty_consistent()

    proof_payload["certainty"] = "UNSURE"
    assert not ProofBundle.model_validate(proof_payload).certainty_consistent()

    proof_payload["uncertainty_reason"] = "Step 3 is shaky"
    unsure = ProofBundle.model_validate(proof_payload)
    assert unsure.certainty is Certainty.UNSURE
    assert unsure.certainty_consistent()

    proof_payload["certainty"] = "CERTAIN"
    assert not ProofBundle.model_validate(proof_payload).certainty_consistent()


def test_certainty_rejects_unknown_value(proof_payload):
    proof_payload["certainty"] = "MAYBE"
    with pytest.raises(ValidationError):
        ProofBundle.model_validate(proof_payload)


def test_from_bundle_attaches_parsed_problem(parsed_problem, proof_payload):
    bundle = ProofBundle.model_validate(proof_payload)
    response = MathResponse.from_bundle(bundle, parsed_problem)
    assert response.parsed_problem == parsed_problem
    assert response.machine_readable_json == bundle.machine_readable_json
    assert response.certainty is bundle.certainty


def test_proof_bundle_schema_does_not_request_parsed_problem():
    schema = ProofBundle.model_json_schema()
    assert "parsed_problem" not in schema["properties"]
    assert set(schema["required"]) == {
        "human_readable_proof", "machine_readable_json", "python_verification", "certainty",
    }


def test_message_content_text_or_response(math_response):
    question = Message(role=Role.USER, content="Prove it")
    answer = Message(role=Role.ASSISTANT, content=math_response)
    assert not question.is_response
    assert answer.is_response
    assert answer.timestamp >= question.timestamp

    restored = Message.model_validate_json(answer.model_dump_json())
    assert restored.is_response
    assert restored.content == math_response
