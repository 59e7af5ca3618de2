#!/usr/bin/env python3
"""
Example: BigModel with Retries

Calls glm-4-flash on the BigModel API through a RetryingAgent.
Set BIGMODEL_API_KEY before running.
"""

import os

from resilient_agent import BigModelAgent, CompletionRequest, configure_logging, with_retry


def main():
    if not os.getenv("BIGMODEL_API_KEY"):
        print("Note: Set BIGMODEL_API_KEY environment variable to run this example")
        return

    configure_logging(verbose=True)

    agent = with_retry(
        BigModelAgent(system_prompt="You are an AI assistant"),
        max_attempts=3,
        base_delay=1.0,
    )

    response = agent.complete(CompletionRequest.from_prompt("Introduce yourself in one sentence"))
    print(response.content)
    if response.usage:
        print(f"Tokens used: {response.usage.total_tokens}")


if __name__ == "__main__":
    main()
