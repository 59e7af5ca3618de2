#!/usr/bin/env python3
"""
Example: Random Agent Pools

Spreads load over several agents by picking one uniformly at random per
call, and shows a retrying agent over a pool, where each retry re-rolls the
choice. No API key is needed.
"""

from collections import Counter

from resilient_agent import (
    AgentPoolBuilder,
    BaseAgent,
    CompletionRequest,
    CompletionResponse,
    RetryingAgent,
    RetryPolicy,
    TransientAgentError,
)


class EchoAgent(BaseAgent):
    def __init__(self, name: str, healthy: bool = True):
        self.name = name
        self.healthy = healthy

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        if not self.healthy:
            raise TransientAgentError(f"{self.name} is overloaded")
        return CompletionResponse(content=f"{self.name} says hi", model=self.name)


def example_distribution():
    print("\n=== Example 1: Uniform selection ===\n")

    pool = (
        AgentPoolBuilder()
        .seed(7)
        .add_agent(EchoAgent("alpha"), provider="local", model="alpha")
        .add_agent(EchoAgent("beta"), provider="local", model="beta")
        .add_agent(EchoAgent("gamma"), provider="local", model="gamma")
        .build_random()
    )

    request = CompletionRequest.from_prompt("Hello")
    counts = Counter(pool.complete(request).model for _ in range(3000))
    for name, count in sorted(counts.items()):
        print(f"{name}: {count / 3000:.1%}")


def example_retry_rerolls():
    print("\n=== Example 2: Retry around a pool ===\n")

    pool = (
        AgentPoolBuilder()
        .add_agent(EchoAgent("overloaded", healthy=False), provider="local", model="overloaded")
        .add_agent(EchoAgent("steady"), provider="local", model="steady")
        .build_random()
    )
    agent = RetryingAgent(pool, RetryPolicy(max_attempts=5, base_delay=0.1, max_delay=0.5))

    print(agent.prompt("Hello"))


def main():
    example_distribution()
    example_retry_rerolls()


if __name__ == "__main__":
    main()
