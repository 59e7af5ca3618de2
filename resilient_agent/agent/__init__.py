"""
Agent subpackage - capability interface, retry wrapper and agent pools
"""

from .base import BaseAgent, CompletionAgent, acomplete_with
from .builder import AgentPoolBuilder
from .exceptions import (
    AgentError,
    CallCancelledError,
    ConfigurationError,
    NoValidAgentsError,
    PermanentAgentError,
    TransientAgentError,
    error_for_status,
    is_transient,
)
from .models import (
    AgentInfo,
    CompletionRequest,
    CompletionResponse,
    FailureStats,
    Message,
    Usage,
)
from .pool import PoolMember, RandomAgentPool, RandomSource
from .retry import RetryingAgent, RetryPolicy, RetrySettings, with_retry
from .tracked_pool import TrackedAgentPool

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
    "AgentError",
    "TransientAgentError",
    "PermanentAgentError",
    "NoValidAgentsError",
    "ConfigurationError",
    "CallCancelledError",
    "is_transient",
    "error_for_status",
]
