"""
Fluent builder for agent pools.
"""

from typing import List, Optional

from .base import CompletionAgent
from .models import AgentInfo
from .pool import PoolMember, RandomAgentPool, RandomSource
from .tracked_pool import InvalidAgentCallback, TrackedAgentPool


class AgentPoolBuilder:
    """
    Collects agents and pool options, then builds a pool.

    Example:
        ```python
        pool = (
            AgentPoolBuilder()
            .max_failures(5)
            .on_agent_invalid(lambda index, info: print(f"disabled {info.model}"))
            .add_agent(agent1, provider="ollama", model="qwen2.5:14b", agent_id=1)
            .add_agent(agent2, provider="bigmodel", model="glm-4-flash", agent_id=2)
            .build()
        )
        ```
    """

    def __init__(self):
        self._members: List[PoolMember] = []
        self._max_failures = 3
        self._on_agent_invalid: Optional[InvalidAgentCallback] = None
        self._seed: Optional[int] = None

    def add_agent(
        self,
        agent: CompletionAgent,
        provider: str = "",
        model: str = "",
        agent_id: Optional[int] = None,
    ) -> "AgentPoolBuilder":
        """
        Add an agent with its provider and model names.

        Parameters:
            agent (CompletionAgent): The agent instance.
            provider (str): Provider name, e.g. "openai" or "bigmodel".
            model (str): Model name, e.g. "gpt-4o" or "glm-4-flash".
            agent_id (Optional[int]): Caller-assigned identifier.

        Returns:
            AgentPoolBuilder: This builder.
        """
        self._members.append(
            PoolMember(agent, AgentInfo(id=agent_id, provider=provider, model=model))
        )
        return self

    def max_failures(self, max_failures: int) -> "AgentPoolBuilder":
        """Set how many consecutive failures sideline a member."""
        self._max_failures = max_failures
        return self

    def on_agent_invalid(self, callback: InvalidAgentCallback) -> "AgentPoolBuilder":
        """Set the callback fired when a member is sidelined."""
        self._on_agent_invalid = callback
        return self

    def seed(self, seed: int) -> "AgentPoolBuilder":
        """Seed the pool's random source for reproducible selection."""
        self._seed = seed
        return self

    def build(self) -> TrackedAgentPool:
        """
        Build a failure-tracking pool.

        Raises:
            ConfigurationError: If no agent was added or `max_failures` is invalid.
        """
        return TrackedAgentPool(
            self._members,
            max_failures=self._max_failures,
            on_agent_invalid=self._on_agent_invalid,
            random_source=RandomSource(self._seed),
        )

    def build_random(self) -> RandomAgentPool:
        """
        Build a plain uniform pool; failure options are ignored.

        Raises:
            ConfigurationError: If no agent was added.
        """
        return RandomAgentPool(self._members, random_source=RandomSource(self._seed))

    def __len__(self) -> int:
        return len(self._members)
