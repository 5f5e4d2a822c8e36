from __future__ import annotations

import pytest

from mathlogic.errors import GENERIC_FAILURE_MESSAGE, ProblemParseError, SessionBusyError
from mathlogic.models import Role
from mathlogic.session import MathSession


def test_submit_records_both_turns(math_response):
    session = MathSession(solver=lambda query: math_response)

    assert session.last_response is None
    result = session.submit("Prove sqrt(2) is irrational")

    assert result is math_response
    assert [m.role for m in session.messages] == [Role.USER, Role.ASSISTANT]
    assert session.messages[0].content == "Prove sqrt(2) is irrational"
    assert session.last_response is math_response
    assert not session.busy


def test_failure_appends_generic_message_and_reraises():
    def failing(query):
        raise ProblemParseError()

    session = MathSession(solver=failing)
    with pytest.raises(ProblemParseError):
        session.submit("Prove something")

    assert [m.role for m in session.messages] == [Role.USER, Role.ASSISTANT]
    assert session.messages[-1].content == GENERIC_FAILURE_MESSAGE
    assert session.last_response is None
    assert not session.busy


def test_second_submission_while_pending_is_refused(math_response):
    seen = {}

    def reentrant(query):
        with pytest.raises(SessionBusyError):
            session.submit("another query")
        seen["busy"] = session.busy
        return math_response

    session = MathSession(solver=reentrant)
    session.submit("first query")

    assert seen["busy"] is True
    assert [m.content for m in session.messages if not m.is_response] == ["first query"]


def test_history_is_append_only(math_response):
    session = MathSession(solver=lambda query: math_response)
    session.submit("one")
    first = session.messages
    session.submit("two")

    assert len(first) == 2
    assert session.messages[:2] == first
    assert len(session.messages) == 4


def test_blank_query_rejected():
    session = MathSession(solver=lambda query: pytest.fail("solver should not run"))
    with pytest.raises(ValueError):
        session.submit("  ")
    assert session.messages == ()
