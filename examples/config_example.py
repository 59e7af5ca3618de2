#!/usr/bin/env python3
"""
Example: Building a Pool from YAML

Loads pool.yaml next to this file, builds a failure-tracking pool wrapped in
a retrying agent, and sends one prompt. Agents whose API keys are missing
are skipped. Set RESILIENT_AGENT_LOG_LEVEL=DEBUG for more detail.
"""

from pathlib import Path

from resilient_agent import (
    AgentError,
    ConfigurationError,
    build_from_config,
    configure_logging,
    load_pool_config,
)


def main():
    configure_logging(verbose=True)

    try:
        config = load_pool_config(Path(__file__).with_name("pool.yaml"))
        agent = build_from_config(
            config,
            on_agent_invalid=lambda index, info: print(f"Agent {info.describe()} disabled"),
        )
    except ConfigurationError as e:
        print(f"Configuration problem: {e}")
        return

    try:
        print(agent.prompt("Give me one fun fact about octopuses"))
    except AgentError as e:
        print(f"All attempts failed: {e}")


if __name__ == "__main__":
    main()
