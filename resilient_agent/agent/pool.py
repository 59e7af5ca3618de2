"""
Random agent pool for the resilient agent layer.

A pool holds a fixed, non-empty sequence of agents and hands each call to one
of them, chosen uniformly at random. It never retries or fails over on its
own; wrap the pool in a `RetryingAgent` to re-roll the choice on each attempt.
"""

import random
import threading
from typing import Optional, Sequence, Union

from loguru import logger

from .base import BaseAgent, CompletionAgent, acomplete_with
from .exceptions import ConfigurationError
from .models import AgentInfo, CompletionRequest, CompletionResponse


class RandomSource:
    """
    Lock-guarded random number generator.

    Concurrent selections draw from the same generator without racing on its
    internal state.
    """

    def __init__(self, seed: Optional[int] = None, rng: Optional[random.Random] = None):
        """
        Parameters:
            seed (Optional[int]): Seed for a fresh generator; ignored when `rng` is given.
            rng (Optional[random.Random]): Generator to use instead of creating one.
        """
        self._rng = rng if rng is not None else random.Random(seed)
        self._lock = threading.Lock()

    def choose_index(self, length: int) -> int:
        """
        Draw an index uniformly from `[0, length)`.

        Parameters:
            length (int): Number of candidates; must be positive.

        Returns:
            int: The chosen index.
        """
        if length < 1:
            raise ValueError("Cannot choose from an empty sequence")
        with self._lock:
            return self._rng.randrange(length)


class PoolMember:
    """An agent placed in a pool, with the metadata used for logging."""

    def __init__(self, agent: CompletionAgent, info: Optional[AgentInfo] = None):
        self.agent = agent
        self.info = info if info is not None else AgentInfo()

    def __repr__(self) -> str:
        return f"PoolMember({self.info.describe()})"


def as_member(entry: Union[PoolMember, CompletionAgent]) -> PoolMember:
    """Wrap a bare agent in a `PoolMember`, passing members through."""
    if isinstance(entry, PoolMember):
        return entry
    return PoolMember(entry)


class RandomAgentPool(BaseAgent):
    """
    Agent that delegates each call to a uniformly chosen member.

    Results and failures of the chosen member are returned unmodified.

    Example:
        ```python
        pool = RandomAgentPool([openai_agent, bigmodel_agent])
        response = pool.complete(CompletionRequest.from_prompt("Hello"))
        ```
    """

    def __init__(
        self,
        agents: Sequence[Union[PoolMember, CompletionAgent]],
        random_source: Optional[RandomSource] = None,
        seed: Optional[int] = None,
    ):
        """
        Create a pool over a non-empty sequence of agents.

        Parameters:
            agents (Sequence): Agents or `PoolMember` entries; shared, never copied.
            random_source (Optional[RandomSource]): Selection randomness; a fresh one is created when omitted.
            seed (Optional[int]): Seed for the fresh random source.

        Raises:
            ConfigurationError: If `agents` is empty.
        """
        members = tuple(as_member(entry) for entry in agents)
        if not members:
            raise ConfigurationError("RandomAgentPool requires at least one agent")
        self._members = members
        self._random = random_source if random_source is not None else RandomSource(seed)

    @property
    def members(self) -> tuple:
        """The pool's members, in construction order."""
        return self._members

    def select(self) -> PoolMember:
        """
        Pick one member uniformly at random.

        Returns:
            PoolMember: The chosen member.
        """
        member = self._members[self._random.choose_index(len(self._members))]
        logger.info(
            f"Using provider: {member.info.provider or 'unknown'}, "
            f"model: {member.info.model or 'unknown'}"
        )
        return member

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        """
        Serve the request with a randomly chosen member.

        Parameters:
            request (CompletionRequest): The conversation to complete.

        Returns:
            CompletionResponse: The chosen member's completion.

        Raises:
            AgentError: Whatever the chosen member raised, unchanged.
        """
        return self.select().agent.complete(request)

    async def acomplete(self, request: CompletionRequest) -> CompletionResponse:
        """Async counterpart of `complete`."""
        return await acomplete_with(self.select().agent, request)

    def __len__(self) -> int:
        return len(self._members)

    def __repr__(self) -> str:
        return f"RandomAgentPool(agents={len(self._members)})"
