"""
Resilient Agent - retrying and randomly pooled LLM agents over pluggable providers
"""

from loguru import logger

from .agent import (
    AgentError,
    AgentInfo,
    AgentPoolBuilder,
    BaseAgent,
    CallCancelledError,
    CompletionAgent,
    CompletionRequest,
    CompletionResponse,
    ConfigurationError,
    FailureStats,
    Message,
    NoValidAgentsError,
    PermanentAgentError,
    PoolMember,
    RandomAgentPool,
    RandomSource,
    RetryingAgent,
    RetryPolicy,
    RetrySettings,
    TrackedAgentPool,
    TransientAgentError,
    Usage,
    acomplete_with,
    error_for_status,
    is_transient,
    with_retry,
)
from .client import (
    BigModelAgent,
    OpenAIAgent,
    OpenRouterAgent,
    OpenRouterModel,
    fetch_openrouter_model_list,
)
from .config import (
    AgentConfig,
    PoolConfig,
    ProviderKind,
    build_agent,
    build_from_config,
    build_pool,
    load_pool_config,
)
from .logging_config import configure_logging

logger.disable("resilient_agent")

__version__ = "0.1.0"

__all__ = [
    "CompletionAgent",
    "BaseAgent",
    "acomplete_with",
    "Message",
    "CompletionRequest",
    "CompletionResponse",
    "Usage",
    "AgentInfo",
    "FailureStats",
    "RetrySettings",
    "RetryPolicy",
    "RetryingAgent",
    "with_retry",
    "RandomSource",
    "PoolMember",
    "RandomAgentPool",
    "TrackedAgentPool",
    "AgentPoolBuilder",
    "OpenAIAgent",
    "OpenRouterAgent",
    "OpenRouterModel",
    "fetch_openrouter_model_list",
    "BigModelAgent",
    "AgentConfig",
    "PoolConfig",
    "ProviderKind",
    "load_pool_config",
    "build_agent",
    "build_pool",
    "build_from_config",
    "configure_logging",
    "AgentError",
    "TransientAgentError",
    "PermanentAgentError",
    "NoValidAgentsError",
    "ConfigurationError",
    "CallCancelledError",
    "is_transient",
    "error_for_status",
]
