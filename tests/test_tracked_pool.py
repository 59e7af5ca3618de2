"""
Tests for the failure-tracking agent pool.
"""

import asyncio
import threading

import pytest

from helpers import AsyncStubAgent, ScriptedRandom, StubAgent
from resilient_agent.agent.exceptions import (
    ConfigurationError,
    NoValidAgentsError,
    PermanentAgentError,
    TransientAgentError,
)
from resilient_agent.agent.models import AgentInfo
from resilient_agent.agent.pool import PoolMember, RandomSource
from resilient_agent.agent.tracked_pool import TrackedAgentPool


def failing(n: int, name: str = "bad") -> StubAgent:
    return StubAgent([TransientAgentError(f"{name} down {i}") for i in range(n)], name=name)


class TestTrackedAgentPoolConstruction:
    """Tests for TrackedAgentPool construction."""

    def test_empty_pool_is_configuration_error(self):
        """Test that an empty pool is rejected."""
        with pytest.raises(ConfigurationError):
            TrackedAgentPool([])

    def test_invalid_max_failures(self):
        """Test that max_failures below 1 is rejected."""
        with pytest.raises(ConfigurationError):
            TrackedAgentPool([StubAgent()], max_failures=0)

    def test_counts(self):
        """Test total and valid counts for a fresh pool."""
        pool = TrackedAgentPool([StubAgent(), StubAgent()])
        assert pool.total_count == 2
        assert pool.valid_count == 2
        assert len(pool) == 2
        assert not pool.is_exhausted()


class TestTrackedAgentPoolFailures:
    """Tests for failure counting and sidelining."""

    def test_member_sidelined_after_max_failures(self, sample_request):
        """Test that a member stops being selected once it hits the limit."""
        bad = failing(10, "bad")
        good = StubAgent(name="good")
        picks = [0, 0, 0]  # bad three times, then only good is valid
        pool = TrackedAgentPool(
            [bad, good],
            max_failures=3,
            random_source=RandomSource(rng=ScriptedRandom(picks + [0] * 10)),
        )

        for _ in range(3):
            with pytest.raises(TransientAgentError):
                pool.complete(sample_request)

        assert pool.valid_count == 1
        for _ in range(5):
            assert pool.complete(sample_request).model == "good"
        assert bad.call_count == 3
        assert good.call_count == 5

    def test_callback_fires_once(self, sample_request):
        """Test that on_agent_invalid fires exactly once when a member crosses the limit."""
        invalidated = []
        info = AgentInfo(id=7, provider="bigmodel", model="glm-4-flash")
        pool = TrackedAgentPool(
            [PoolMember(failing(5), info)],
            max_failures=2,
            on_agent_invalid=lambda index, agent_info: invalidated.append((index, agent_info)),
        )

        for _ in range(2):
            with pytest.raises(TransientAgentError):
                pool.complete(sample_request)
        with pytest.raises(NoValidAgentsError):
            pool.complete(sample_request)

        assert invalidated == [(0, info)]

    def test_all_members_exhausted(self, sample_request):
        """Test that a pool with no valid members raises NoValidAgentsError."""
        pool = TrackedAgentPool([failing(5, "a"), failing(5, "b")], max_failures=1)

        for _ in range(2):
            with pytest.raises(TransientAgentError):
                pool.complete(sample_request)

        assert pool.is_exhausted()
        with pytest.raises(NoValidAgentsError) as exc_info:
            pool.complete(sample_request)
        assert isinstance(exc_info.value, PermanentAgentError)
        assert exc_info.value.total == 2

    def test_success_resets_counter(self, sample_request):
        """Test that a success resets the consecutive failure count."""
        agent = StubAgent([TransientAgentError("a"), TransientAgentError("b"), "ok", TransientAgentError("c")])
        pool = TrackedAgentPool([agent], max_failures=3)

        for _ in range(2):
            with pytest.raises(TransientAgentError):
                pool.complete(sample_request)
        assert pool.failure_stats()[0].failure_count == 2

        pool.complete(sample_request)
        assert pool.failure_stats()[0].failure_count == 0

        with pytest.raises(TransientAgentError):
            pool.complete(sample_request)
        assert pool.failure_stats()[0].failure_count == 1
        assert pool.valid_count == 1

    def test_permanent_and_unexpected_errors_count(self, sample_request):
        """Test that any exception counts as a failure and propagates unchanged."""
        boom = RuntimeError("bug")
        agent = StubAgent([PermanentAgentError("bad key"), boom])
        pool = TrackedAgentPool([agent], max_failures=5)

        with pytest.raises(PermanentAgentError):
            pool.complete(sample_request)
        with pytest.raises(RuntimeError) as exc_info:
            pool.complete(sample_request)

        assert exc_info.value is boom
        assert pool.failure_stats()[0].failure_count == 2

    def test_reset_failures(self, sample_request):
        """Test that reset_failures makes every member valid again."""
        pool = TrackedAgentPool([failing(1)], max_failures=1)
        with pytest.raises(TransientAgentError):
            pool.complete(sample_request)
        assert pool.valid_count == 0

        pool.reset_failures()

        assert pool.valid_count == 1
        assert pool.complete(sample_request).model == "bad"

    def test_failure_stats(self, sample_request):
        """Test the failure statistics snapshot."""
        info = AgentInfo(id=1, provider="openai", model="gpt-4o")
        pool = TrackedAgentPool(
            [PoolMember(failing(1), info), StubAgent()],
            max_failures=2,
            random_source=RandomSource(rng=ScriptedRandom([0])),
        )
        with pytest.raises(TransientAgentError):
            pool.complete(sample_request)

        stats = pool.failure_stats()

        assert [s.index for s in stats] == [0, 1]
        assert stats[0].info == info
        assert stats[0].failure_count == 1
        assert stats[0].max_failures == 2
        assert stats[0].valid
        assert stats[1].failure_count == 0


class TestTrackedAgentPoolMembers:
    """Tests for adding members."""

    def test_add_agent(self, sample_request):
        """Test that added agents become selectable."""
        pool = TrackedAgentPool([failing(1)], max_failures=1)
        with pytest.raises(TransientAgentError):
            pool.complete(sample_request)

        pool.add_agent(StubAgent(name="new"), AgentInfo(provider="ollama", model="qwen2.5:14b"))

        assert pool.total_count == 2
        assert pool.valid_count == 1
        assert pool.complete(sample_request).model == "new"
        assert pool.failure_stats()[1].info.provider == "ollama"

    def test_add_agent_custom_limit(self):
        """Test a per-member failure limit."""
        pool = TrackedAgentPool([StubAgent()], max_failures=3)
        pool.add_agent(StubAgent(), max_failures=1)
        assert [s.max_failures for s in pool.failure_stats()] == [3, 1]

    def test_add_agent_invalid_limit(self):
        """Test that a zero per-member limit is rejected."""
        pool = TrackedAgentPool([StubAgent()])
        with pytest.raises(ConfigurationError):
            pool.add_agent(StubAgent(), max_failures=0)


class TestTrackedAgentPoolAsync:
    """Tests for the async path."""

    def test_async_tracking(self, sample_request):
        """Test that async calls update counters like sync calls."""
        agent = AsyncStubAgent([TransientAgentError("busy"), "ok"])
        pool = TrackedAgentPool([agent], max_failures=2)

        with pytest.raises(TransientAgentError):
            asyncio.run(pool.acomplete(sample_request))
        assert pool.failure_stats()[0].failure_count == 1

        assert asyncio.run(pool.acomplete(sample_request)).content == "ok"
        assert pool.failure_stats()[0].failure_count == 0

    def test_async_no_valid_agents(self, sample_request):
        """Test NoValidAgentsError on the async path."""
        pool = TrackedAgentPool([failing(1)], max_failures=1)
        with pytest.raises(TransientAgentError):
            asyncio.run(pool.acomplete(sample_request))
        with pytest.raises(NoValidAgentsError):
            asyncio.run(pool.acomplete(sample_request))


def test_concurrent_calls_keep_consistent_counts(sample_request):
    """Test that concurrent successes and failures leave consistent state."""
    good = [StubAgent(name=f"good-{i}") for i in range(3)]
    pool = TrackedAgentPool(good, max_failures=2, seed=11)

    def worker():
        for _ in range(50):
            pool.complete(sample_request)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sum(agent.call_count for agent in good) == 200
    assert all(s.failure_count == 0 for s in pool.failure_stats())
