"""
Pool configuration loading and agent construction.

A YAML file describes the agents of a pool, their providers and credentials,
and optional retry settings:

```yaml
system_prompt: You are an AI assistant
max_failures: 5
retry:
  max_attempts: 3
  base_delay: 0.5
agents:
  - id: 1
    provider: bigmodel
    model_name: glm-4-flash
    api_key: ...
  - id: 2
    provider: ollama
    model_name: qwen2.5:14b
```
"""

from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Union

import yaml
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from .agent.base import CompletionAgent
from .agent.exceptions import ConfigurationError
from .agent.models import AgentInfo
from .agent.pool import PoolMember
from .agent.retry import RetryingAgent, RetryPolicy, RetrySettings
from .agent.tracked_pool import InvalidAgentCallback, TrackedAgentPool
from .client.bigmodel import BIGMODEL_API_BASE_URL, BigModelAgent
from .client.openai_client import OpenAIAgent
from .client.openrouter import OpenRouterAgent

OLLAMA_API_BASE_URL = "http://localhost:11434/v1"
DEEPSEEK_API_BASE_URL = "https://api.deepseek.com/v1"


class ProviderKind(str, Enum):
    """Supported providers."""

    OPENAI = "openai"
    OPENROUTER = "openrouter"
    BIGMODEL = "bigmodel"
    OLLAMA = "ollama"
    DEEPSEEK = "deepseek"


class AgentConfig(BaseModel):
    """Configuration for a single pooled agent."""

    id: Optional[int] = None
    provider: ProviderKind
    model_name: str = Field(..., min_length=1)
    api_key: Optional[str] = None
    api_base_url: Optional[str] = None
    system_prompt: Optional[str] = None
    agent_name: Optional[str] = None
    temperature: Optional[float] = Field(None, ge=0)
    max_tokens: Optional[int] = Field(None, ge=1)

    def info(self) -> AgentInfo:
        return AgentInfo(id=self.id, provider=self.provider.value, model=self.model_name)


class PoolConfig(BaseModel):
    """Root configuration for a pool of agents."""

    agents: List[AgentConfig] = Field(..., min_length=1)
    system_prompt: Optional[str] = None
    max_failures: int = Field(default=3, ge=1)
    retry: Optional[RetrySettings] = None
    seed: Optional[int] = None


def load_pool_config(path: Union[str, Path]) -> PoolConfig:
    """
    Load and validate a pool configuration from a YAML file.

    Parameters:
        path (Union[str, Path]): Path to the YAML file.

    Returns:
        PoolConfig: The validated configuration.

    Raises:
        ConfigurationError: If the file is missing, is not valid YAML, or fails validation.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")

    try:
        config = PoolConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {config_path}: {e}") from e

    logger.info(f"Loaded {len(config.agents)} agent config(s) from {config_path}")
    return config


def build_agent(
    config: AgentConfig, default_system_prompt: Optional[str] = None
) -> CompletionAgent:
    """
    Construct the provider agent described by `config`.

    Parameters:
        config (AgentConfig): Agent configuration.
        default_system_prompt (Optional[str]): Used when the agent config has no system prompt.

    Returns:
        CompletionAgent: The provider agent.

    Raises:
        ConfigurationError: If the agent cannot be constructed (e.g. missing API key).
    """
    system_prompt = config.system_prompt or default_system_prompt
    common = dict(
        model=config.model_name,
        system_prompt=system_prompt,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
    )

    if config.provider == ProviderKind.BIGMODEL:
        return BigModelAgent(
            api_key=config.api_key,
            base_url=config.api_base_url or BIGMODEL_API_BASE_URL,
            **common,
        )
    if config.provider == ProviderKind.OPENROUTER:
        return OpenRouterAgent(
            api_key=config.api_key,
            site_name=config.agent_name,
            base_url=config.api_base_url or "https://openrouter.ai/api/v1",
            **common,
        )
    if config.provider == ProviderKind.OLLAMA:
        # Ollama ignores the key but the SDK requires one
        return OpenAIAgent(
            api_key=config.api_key or "ollama",
            base_url=config.api_base_url or OLLAMA_API_BASE_URL,
            **common,
        )
    if config.provider == ProviderKind.DEEPSEEK:
        return OpenAIAgent(
            api_key=config.api_key,
            base_url=config.api_base_url or DEEPSEEK_API_BASE_URL,
            **common,
        )
    return OpenAIAgent(
        api_key=config.api_key,
        base_url=config.api_base_url or "https://api.openai.com/v1",
        **common,
    )


def build_pool(
    config: PoolConfig,
    on_agent_invalid: Optional[InvalidAgentCallback] = None,
    agent_factory: Callable[[AgentConfig, Optional[str]], CompletionAgent] = build_agent,
) -> TrackedAgentPool:
    """
    Build a failure-tracking pool from a pool configuration.

    Agents that cannot be constructed are logged and skipped.

    Parameters:
        config (PoolConfig): Pool configuration.
        on_agent_invalid (Optional[Callable]): Callback fired when a member is sidelined.
        agent_factory (Callable): Constructs one agent from its config; `build_agent` by default.

    Returns:
        TrackedAgentPool: The pool.

    Raises:
        ConfigurationError: If no agent could be constructed.
    """
    members = []
    for agent_config in config.agents:
        try:
            agent = agent_factory(agent_config, config.system_prompt)
        except ConfigurationError as e:
            logger.error(f"Skipping {agent_config.provider.value} agent {agent_config.model_name}: {e}")
            continue
        members.append(PoolMember(agent, agent_config.info()))

    if not members:
        raise ConfigurationError("No agent in the configuration could be constructed")

    logger.info(f"Built pool with {len(members)} of {len(config.agents)} configured agent(s)")
    return TrackedAgentPool(
        members,
        max_failures=config.max_failures,
        on_agent_invalid=on_agent_invalid,
        seed=config.seed,
    )


def build_from_config(
    config: PoolConfig,
    on_agent_invalid: Optional[InvalidAgentCallback] = None,
) -> CompletionAgent:
    """
    Build the pool and, when retry settings are present, wrap it in a `RetryingAgent`.

    Each retry re-rolls the pool's random choice.

    Parameters:
        config (PoolConfig): Pool configuration.
        on_agent_invalid (Optional[Callable]): Callback fired when a member is sidelined.

    Returns:
        CompletionAgent: The pool or the retrying wrapper around it.
    """
    pool = build_pool(config, on_agent_invalid=on_agent_invalid)
    if config.retry is None:
        return pool
    return RetryingAgent(pool, RetryPolicy.from_settings(config.retry))
