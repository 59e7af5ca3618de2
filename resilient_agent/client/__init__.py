"""
Provider agents
"""

from .bigmodel import BIGMODEL_API_BASE_URL, GLM_4_FLASH, BigModelAgent
from .openai_client import OpenAIAgent, classify_openai_error
from .openrouter import (
    OpenRouterAgent,
    OpenRouterEndpoint,
    OpenRouterModel,
    fetch_openrouter_model_list,
)

__all__ = [
    "OpenAIAgent",
    "OpenRouterAgent",
    "OpenRouterModel",
    "OpenRouterEndpoint",
    "fetch_openrouter_model_list",
    "BigModelAgent",
    "classify_openai_error",
    "BIGMODEL_API_BASE_URL",
    "GLM_4_FLASH",
]
