#!/usr/bin/env python3
"""
Example: Retrying a Flaky Agent

This example wraps an agent that fails transiently in a RetryingAgent and
shows the exponential back-off between attempts. No API key is needed.
"""

from resilient_agent import (
    BaseAgent,
    CompletionRequest,
    CompletionResponse,
    PermanentAgentError,
    RetryingAgent,
    RetryPolicy,
    TransientAgentError,
    configure_logging,
)


class FlakyAgent(BaseAgent):
    """Fails with a transient error a fixed number of times, then answers."""

    def __init__(self, failures: int):
        self.failures = failures
        self.calls = 0

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        self.calls += 1
        if self.calls <= self.failures:
            raise TransientAgentError(f"503 Service Unavailable (call {self.calls})")
        return CompletionResponse(content=f"Answered on call {self.calls}", model="flaky")


class BrokenKeyAgent(BaseAgent):
    """Always fails with a permanent error."""

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        raise PermanentAgentError("401 Unauthorized", status_code=401)


def example_recovers():
    print("\n=== Example 1: Recovering after two transient failures ===\n")

    agent = RetryingAgent(
        FlakyAgent(failures=2),
        RetryPolicy(max_attempts=4, base_delay=0.2, backoff_multiplier=2.0, max_delay=1.0),
    )
    print(agent.prompt("Hello"))


def example_permanent_error():
    print("\n=== Example 2: Permanent errors are not retried ===\n")

    inner = BrokenKeyAgent()
    agent = RetryingAgent(inner, RetryPolicy(max_attempts=5, base_delay=0.2))
    try:
        agent.prompt("Hello")
    except PermanentAgentError as e:
        print(f"Gave up immediately: {e}")


def example_delays():
    print("\n=== Example 3: Back-off schedule ===\n")

    policy = RetryPolicy(max_attempts=6, base_delay=0.5, backoff_multiplier=3.0, max_delay=4.0)
    for attempt in range(1, policy.max_attempts):
        print(f"Delay after attempt {attempt}: {policy.delay_for(attempt):.2f}s")


def main():
    configure_logging(verbose=True)
    example_recovers()
    example_permanent_error()
    example_delays()


if __name__ == "__main__":
    main()
