"""
Test configuration and fixtures for pytest.
"""

from typing import Optional

import pytest

from helpers import AsyncRecordingSleep, RecordingSleep, StubAgent
from resilient_agent.agent.models import CompletionRequest


@pytest.fixture
def stub_agent_factory():
    """Fixture factory for scripted agents."""

    def _create(outcomes: Optional[list] = None, name: str = "stub") -> StubAgent:
        return StubAgent(outcomes=outcomes, name=name)

    return _create


@pytest.fixture
def sample_request():
    """
    Provide a single-turn completion request.

    Returns:
        CompletionRequest: A request holding one user message, "Hello".
    """
    return CompletionRequest.from_prompt("Hello")


@pytest.fixture
def recording_sleep():
    """Provide a sleep function that records delays instead of waiting."""
    return RecordingSleep()


@pytest.fixture
def async_recording_sleep():
    """Provide an async sleep function that records delays instead of waiting."""
    return AsyncRecordingSleep()
