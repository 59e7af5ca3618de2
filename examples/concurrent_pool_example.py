#!/usr/bin/env python3
"""
Example: Concurrent Calls on a Failure-Tracking Pool

Several asyncio tasks share one TrackedAgentPool. A member that keeps failing
is sidelined and the callback reports it; the remaining members carry the load.
No API key is needed.
"""

import asyncio
import random

from resilient_agent import (
    AgentInfo,
    AgentPoolBuilder,
    BaseAgent,
    CompletionRequest,
    CompletionResponse,
    TransientAgentError,
)


class SimulatedAgent(BaseAgent):
    def __init__(self, name: str, failure_rate: float):
        self.name = name
        self.failure_rate = failure_rate

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        raise NotImplementedError("use acomplete")

    async def acomplete(self, request: CompletionRequest) -> CompletionResponse:
        await asyncio.sleep(random.uniform(0.01, 0.05))
        if random.random() < self.failure_rate:
            raise TransientAgentError(f"{self.name} timed out")
        return CompletionResponse(content=f"{self.name}: ok", model=self.name)


def report_invalid(index: int, info: AgentInfo) -> None:
    print(f"!! agent {index} ({info.describe()}) sidelined")


async def main():
    pool = (
        AgentPoolBuilder()
        .max_failures(2)
        .on_agent_invalid(report_invalid)
        .add_agent(SimulatedAgent("reliable", 0.0), provider="sim", model="reliable", agent_id=1)
        .add_agent(SimulatedAgent("shaky", 0.3), provider="sim", model="shaky", agent_id=2)
        .add_agent(SimulatedAgent("dead", 1.0), provider="sim", model="dead", agent_id=3)
        .build()
    )

    async def call(i: int) -> str:
        try:
            response = await pool.acomplete(CompletionRequest.from_prompt(f"task {i}"))
            return response.content
        except TransientAgentError as e:
            return f"failed: {e}"

    results = await asyncio.gather(*(call(i) for i in range(20)))
    for line in results:
        print(line)

    print("\nFailure stats:")
    for stats in pool.failure_stats():
        state = "valid" if stats.valid else "invalid"
        print(f"  {stats.info.describe()}: {stats.failure_count}/{stats.max_failures} ({state})")


if __name__ == "__main__":
    asyncio.run(main())
