"""
Scripted agents and test doubles shared by the test modules.
"""

import random
import threading
from typing import List, Optional

from resilient_agent.agent.models import CompletionRequest, CompletionResponse


class StubAgent:
    """Scripted synchronous agent for testing."""

    def __init__(self, outcomes: Optional[list] = None, name: str = "stub"):
        """
        Create a StubAgent that plays back a script of outcomes.

        Parameters:
            outcomes (list, optional): Ordered outcomes for successive calls. An exception instance is raised, a string is returned as the completion content. When exhausted the agent returns "<name> response".
            name (str): Label used as the response model and in the default content.
        """
        self.outcomes = list(outcomes or [])
        self.name = name
        self.call_count = 0
        self.requests: List[CompletionRequest] = []
        self._lock = threading.Lock()

    def _next_outcome(self, request: CompletionRequest):
        with self._lock:
            self.call_count += 1
            self.requests.append(request)
            if self.outcomes:
                return self.outcomes.pop(0)
        return f"{self.name} response"

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        outcome = self._next_outcome(request)
        if isinstance(outcome, BaseException):
            raise outcome
        return CompletionResponse(content=outcome, model=self.name)


class AsyncStubAgent(StubAgent):
    """Scripted agent that also offers a native coroutine."""

    def __init__(self, outcomes: Optional[list] = None, name: str = "async-stub"):
        super().__init__(outcomes, name)
        self.async_call_count = 0

    async def acomplete(self, request: CompletionRequest) -> CompletionResponse:
        self.async_call_count += 1
        outcome = self._next_outcome(request)
        if isinstance(outcome, BaseException):
            raise outcome
        return CompletionResponse(content=outcome, model=self.name)


class RecordingSleep:
    """Stand-in for time.sleep that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class AsyncRecordingSleep(RecordingSleep):
    """Stand-in for asyncio.sleep that records requested delays."""

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class ScriptedRandom(random.Random):
    """Random generator whose randrange returns a fixed sequence."""

    def __init__(self, picks: List[int]):
        super().__init__(0)
        self.picks = list(picks)

    def randrange(self, *args, **kwargs):
        return self.picks.pop(0)

