"""
Failure-tracking agent pool.

`TrackedAgentPool` picks members uniformly at random like `RandomAgentPool`,
but counts each member's consecutive failures and stops selecting a member
once it reaches `max_failures`. A success resets the counter.
"""

import threading
from typing import Callable, List, Optional, Sequence, Union

from loguru import logger

from .base import BaseAgent, CompletionAgent, acomplete_with
from .exceptions import ConfigurationError, NoValidAgentsError
from .models import AgentInfo, CompletionRequest, CompletionResponse, FailureStats
from .pool import PoolMember, RandomSource, as_member

InvalidAgentCallback = Callable[[int, AgentInfo], None]


class _MemberState:
    def __init__(self, member: PoolMember, max_failures: int):
        self.member = member
        self.max_failures = max_failures
        self.failure_count = 0

    @property
    def valid(self) -> bool:
        return self.failure_count < self.max_failures


class TrackedAgentPool(BaseAgent):
    """
    Random pool that sidelines members after repeated consecutive failures.

    Counters are kept under a lock that is never held across an agent call,
    so one pool serves concurrent callers.

    Example:
        ```python
        pool = TrackedAgentPool(
            [PoolMember(a, AgentInfo(provider="openai", model="gpt-4o")), b],
            max_failures=5,
            on_agent_invalid=lambda index, info: print(f"agent {index} disabled"),
        )
        ```
    """

    def __init__(
        self,
        agents: Sequence[Union[PoolMember, CompletionAgent]],
        max_failures: int = 3,
        on_agent_invalid: Optional[InvalidAgentCallback] = None,
        random_source: Optional[RandomSource] = None,
        seed: Optional[int] = None,
    ):
        """
        Create a tracked pool.

        Parameters:
            agents (Sequence): Agents or `PoolMember` entries.
            max_failures (int): Consecutive failures after which a member is no longer selected.
            on_agent_invalid (Optional[Callable[[int, AgentInfo], None]]): Called once when a member crosses the threshold.
            random_source (Optional[RandomSource]): Selection randomness.
            seed (Optional[int]): Seed for a fresh random source.

        Raises:
            ConfigurationError: If `agents` is empty or `max_failures` is below 1.
        """
        if max_failures < 1:
            raise ConfigurationError(f"max_failures must be at least 1, got {max_failures}")
        states = [_MemberState(as_member(entry), max_failures) for entry in agents]
        if not states:
            raise ConfigurationError("TrackedAgentPool requires at least one agent")
        self.max_failures = max_failures
        self.on_agent_invalid = on_agent_invalid
        self._states: List[_MemberState] = states
        self._lock = threading.Lock()
        self._random = random_source if random_source is not None else RandomSource(seed)

    def add_agent(
        self,
        agent: Union[PoolMember, CompletionAgent],
        info: Optional[AgentInfo] = None,
        max_failures: Optional[int] = None,
    ) -> None:
        """
        Add a member to the pool; safe to call while the pool is in use.

        Parameters:
            agent: Agent or `PoolMember` to add.
            info (Optional[AgentInfo]): Metadata for a bare agent.
            max_failures (Optional[int]): Per-member threshold; the pool default when omitted.
        """
        member = agent if isinstance(agent, PoolMember) else PoolMember(agent, info)
        limit = max_failures if max_failures is not None else self.max_failures
        if limit < 1:
            raise ConfigurationError(f"max_failures must be at least 1, got {limit}")
        with self._lock:
            self._states.append(_MemberState(member, limit))
        logger.info(f"Added agent {member.info.describe()} to pool")

    def _select(self) -> int:
        with self._lock:
            valid = [i for i, state in enumerate(self._states) if state.valid]
            if not valid:
                raise NoValidAgentsError(len(self._states))
            index = valid[self._random.choose_index(len(valid))]
            info = self._states[index].member.info
        logger.info(
            f"Using provider: {info.provider or 'unknown'}, model: {info.model or 'unknown'}"
        )
        return index

    def _record_success(self, index: int) -> None:
        with self._lock:
            self._states[index].failure_count = 0

    def _record_failure(self, index: int, error: Exception) -> None:
        with self._lock:
            state = self._states[index]
            state.failure_count += 1
            became_invalid = state.failure_count == state.max_failures
            failures = state.failure_count
        info = state.member.info
        logger.warning(
            f"Agent {info.describe()} failed ({failures}/{state.max_failures}): {error}"
        )
        if became_invalid:
            logger.warning(f"Agent {info.describe()} marked invalid")
            if self.on_agent_invalid is not None:
                self.on_agent_invalid(index, info)

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        """
        Serve the request with a randomly chosen valid member.

        Parameters:
            request (CompletionRequest): The conversation to complete.

        Returns:
            CompletionResponse: The chosen member's completion.

        Raises:
            NoValidAgentsError: If every member has reached its failure limit.
            AgentError: Whatever the chosen member raised, unchanged.
        """
        index = self._select()
        agent = self._states[index].member.agent
        try:
            response = agent.complete(request)
        except Exception as e:
            self._record_failure(index, e)
            raise
        self._record_success(index)
        return response

    async def acomplete(self, request: CompletionRequest) -> CompletionResponse:
        """Async counterpart of `complete`."""
        index = self._select()
        agent = self._states[index].member.agent
        try:
            response = await acomplete_with(agent, request)
        except Exception as e:
            self._record_failure(index, e)
            raise
        self._record_success(index)
        return response

    @property
    def total_count(self) -> int:
        """Number of members, valid or not."""
        with self._lock:
            return len(self._states)

    @property
    def valid_count(self) -> int:
        """Number of members still eligible for selection."""
        with self._lock:
            return sum(1 for state in self._states if state.valid)

    def is_exhausted(self) -> bool:
        """Whether no member is eligible for selection."""
        return self.valid_count == 0

    def failure_stats(self) -> List[FailureStats]:
        """
        Snapshot every member's failure counter.

        Returns:
            List[FailureStats]: One row per member, in insertion order.
        """
        with self._lock:
            return [
                FailureStats(
                    index=i,
                    info=state.member.info,
                    failure_count=state.failure_count,
                    max_failures=state.max_failures,
                )
                for i, state in enumerate(self._states)
            ]

    def reset_failures(self) -> None:
        """Reset every member's failure counter, making all members valid again."""
        with self._lock:
            for state in self._states:
                state.failure_count = 0
        logger.info("Pool failure counters reset")

    def __len__(self) -> int:
        return self.total_count

    def __repr__(self) -> str:
        return f"TrackedAgentPool(valid={self.valid_count}, total={self.total_count})"
