"""Conversation history around the solve pipeline.

A session admits one query at a time and only ever appends to its history.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from mathlogic.controller import solve_math_problem
from mathlogic.errors import GENERIC_FAILURE_MESSAGE, SessionBusyError
from mathlogic.models import MathResponse, Message, Role

logger = logging.getLogger(__name__)


class MathSession:
    def __init__(self, solver: Optional[Callable[[str], MathResponse]] = None):
        self._solver = solver or solve_math_problem
        self._messages: list[Message] = []
        self._lock = threading.Lock()

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @property
    def last_response(self) -> Optional[MathResponse]:
        for message in reversed(self._messages):
            if message.is_response:
                return message.content
        return None

    def submit(self, query: str) -> MathResponse:
        """Solve `query` and record both turns. Raises SessionBusyError if a query is pending."""
        if not query or not query.strip():
            raise ValueError("Query must be a non-empty string")
        if not self._lock.acquire(blocking=False):
            raise SessionBusyError()
        try:
            self._messages.append(Message(role=Role.USER, content=query))
            try:
                response = self._solver(query)
            except Exception:
                self._messages.append(Message(role=Role.ASSISTANT, content=GENERIC_FAILURE_MESSAGE))
                raise
            self._messages.append(Message(role=Role.ASSISTANT, content=response))
            return response
        finally:
            self._lock.release()
