"""
Tests for pool configuration loading and agent construction.
"""

import pytest

from helpers import StubAgent
from resilient_agent.agent.exceptions import ConfigurationError
from resilient_agent.agent.retry import RetryingAgent
from resilient_agent.agent.tracked_pool import TrackedAgentPool
from resilient_agent.client.bigmodel import BigModelAgent
from resilient_agent.client.openai_client import OpenAIAgent
from resilient_agent.client.openrouter import OpenRouterAgent
from resilient_agent.config import (
    DEEPSEEK_API_BASE_URL,
    AgentConfig,
    PoolConfig,
    ProviderKind,
    build_agent,
    build_from_config,
    build_pool,
    load_pool_config,
)

POOL_YAML = """
system_prompt: You are an AI assistant
max_failures: 5
seed: 42
retry:
  max_attempts: 4
  base_delay: 0.5
agents:
  - id: 1
    provider: bigmodel
    model_name: glm-4-flash
    api_key: bm-key
  - id: 2
    provider: ollama
    model_name: qwen2.5:14b
    api_base_url: http://gpu-box:11434/v1
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "pool.yaml"
    path.write_text(POOL_YAML)
    return path


class TestLoadPoolConfig:
    """Tests for load_pool_config."""

    def test_load(self, config_file):
        """Test loading a complete configuration."""
        config = load_pool_config(config_file)

        assert config.system_prompt == "You are an AI assistant"
        assert config.max_failures == 5
        assert config.seed == 42
        assert config.retry.max_attempts == 4
        assert config.retry.base_delay == 0.5
        assert [a.provider for a in config.agents] == [ProviderKind.BIGMODEL, ProviderKind.OLLAMA]
        assert config.agents[1].info().describe() == "#2 ollama/qwen2.5:14b"

    def test_missing_file(self, tmp_path):
        """Test that a missing file is a configuration error."""
        with pytest.raises(ConfigurationError, match="not found"):
            load_pool_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        """Test that malformed YAML is a configuration error."""
        path = tmp_path / "bad.yaml"
        path.write_text("agents: [unclosed")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_pool_config(path)

    def test_non_mapping_root(self, tmp_path):
        """Test that a list at the root is rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- provider: openai\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_pool_config(path)

    @pytest.mark.parametrize(
        "body",
        [
            "agents: []\n",
            "agents:\n  - provider: nonsense\n    model_name: x\n",
            "agents:\n  - provider: openai\n    model_name: ''\n",
            "max_failures: 0\nagents:\n  - provider: openai\n    model_name: gpt-4o\n",
            "retry:\n  base_delay: 20\n  max_delay: 5\nagents:\n  - provider: openai\n    model_name: gpt-4o\n",
        ],
    )
    def test_validation_errors(self, tmp_path, body):
        """Test that schema violations are configuration errors."""
        path = tmp_path / "invalid.yaml"
        path.write_text(body)
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_pool_config(path)


class TestBuildAgent:
    """Tests for build_agent."""

    def test_bigmodel(self):
        """Test building a BigModel agent."""
        agent = build_agent(
            AgentConfig(provider="bigmodel", model_name="glm-4-flash", api_key="k"),
            default_system_prompt="Be kind",
        )
        assert isinstance(agent, BigModelAgent)
        assert agent.system_prompt == "Be kind"

    def test_agent_prompt_beats_default(self):
        """Test that the agent's own system prompt wins."""
        agent = build_agent(
            AgentConfig(provider="openai", model_name="gpt-4o", api_key="k", system_prompt="Own"),
            default_system_prompt="Default",
        )
        assert isinstance(agent, OpenAIAgent)
        assert agent.system_prompt == "Own"

    def test_ollama_without_key(self, monkeypatch):
        """Test that a local Ollama agent needs no key."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        agent = build_agent(AgentConfig(provider="ollama", model_name="qwen2.5:14b"))
        assert str(agent.client.base_url).startswith("http://localhost:11434/v1")

    def test_deepseek_base_url(self):
        """Test the DeepSeek default endpoint."""
        agent = build_agent(AgentConfig(provider="deepseek", model_name="deepseek-chat", api_key="k"))
        assert str(agent.client.base_url).startswith(DEEPSEEK_API_BASE_URL)

    def test_openrouter_site_name(self):
        """Test that agent_name becomes the OpenRouter title header."""
        agent = build_agent(
            AgentConfig(provider="openrouter", model_name="openai/gpt-4o", api_key="k", agent_name="pool")
        )
        assert isinstance(agent, OpenRouterAgent)
        assert agent.site_name == "pool"

    def test_missing_key(self, monkeypatch):
        """Test that a missing key surfaces as a configuration error."""
        monkeypatch.delenv("BIGMODEL_API_KEY", raising=False)
        with pytest.raises(ConfigurationError):
            build_agent(AgentConfig(provider="bigmodel", model_name="glm-4-flash"))


class TestBuildPool:
    """Tests for build_pool and build_from_config."""

    def test_build_pool(self, config_file):
        """Test building a tracked pool from a file."""
        pool = build_pool(load_pool_config(config_file))

        assert isinstance(pool, TrackedAgentPool)
        assert pool.total_count == 2
        stats = pool.failure_stats()
        assert stats[0].info.provider == "bigmodel"
        assert stats[1].max_failures == 5

    def test_unbuildable_agents_skipped(self, monkeypatch):
        """Test that agents failing construction are skipped."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        config = PoolConfig(
            agents=[
                AgentConfig(provider="openai", model_name="gpt-4o"),
                AgentConfig(provider="bigmodel", model_name="glm-4-flash", api_key="k"),
            ]
        )

        pool = build_pool(config)

        assert pool.total_count == 1
        assert pool.failure_stats()[0].info.model == "glm-4-flash"

    def test_nothing_buildable(self, monkeypatch):
        """Test that a pool with no constructible agent is rejected."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        config = PoolConfig(agents=[AgentConfig(provider="openai", model_name="gpt-4o")])
        with pytest.raises(ConfigurationError):
            build_pool(config)

    def test_custom_factory(self, sample_request):
        """Test injecting an agent factory."""
        seen = []

        def factory(agent_config, system_prompt):
            seen.append((agent_config.model_name, system_prompt))
            return StubAgent(name=agent_config.model_name)

        config = PoolConfig(
            system_prompt="shared",
            agents=[AgentConfig(provider="openai", model_name="stub-model")],
        )

        pool = build_pool(config, agent_factory=factory)

        assert seen == [("stub-model", "shared")]
        assert pool.complete(sample_request).model == "stub-model"

    def test_build_from_config_with_retry(self, config_file):
        """Test that retry settings wrap the pool."""
        agent = build_from_config(load_pool_config(config_file))

        assert isinstance(agent, RetryingAgent)
        assert isinstance(agent.agent, TrackedAgentPool)
        assert agent.policy.max_attempts == 4
        assert agent.policy.base_delay == 0.5

    def test_build_from_config_without_retry(self):
        """Test that without retry settings the bare pool is returned."""
        config = PoolConfig(agents=[AgentConfig(provider="bigmodel", model_name="glm-4-flash", api_key="k")])
        assert isinstance(build_from_config(config), TrackedAgentPool)
