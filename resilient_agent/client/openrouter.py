"""
OpenRouter agent implementation and model catalogue lookup.
"""

import os
from typing import List, Optional

import requests
from pydantic import BaseModel, ValidationError

from ..agent.exceptions import (
    ConfigurationError,
    PermanentAgentError,
    TransientAgentError,
    error_for_status,
)
from .openai_client import OpenAIAgent

OPENROUTER_MODELS_URL = "https://openrouter.ai/api/frontend/models"

MODEL_LIST_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/139.0.0.0 Safari/537.36"
    ),
    "Accept": "application/json",
}


class OpenRouterEndpoint(BaseModel):
    """The default serving endpoint of an OpenRouter model."""

    name: str
    context_length: int
    model_variant_slug: str
    model_variant_permaslug: str
    is_free: bool


class OpenRouterModel(BaseModel):
    """One entry of the OpenRouter model catalogue."""

    slug: str
    updated_at: str
    created_at: str
    name: str
    short_name: str
    author: str
    description: str
    context_length: int
    input_modalities: List[str]
    output_modalities: List[str]
    has_text_output: bool
    group: str
    permaslug: str
    endpoint: Optional[OpenRouterEndpoint] = None


class OpenRouterModelsResponse(BaseModel):
    data: List[OpenRouterModel]


def fetch_openrouter_model_list(
    session: Optional[requests.Session] = None,
    timeout: float = 30.0,
) -> List[OpenRouterModel]:
    """
    Fetch the public OpenRouter model catalogue.

    Parameters:
        session (Optional[requests.Session]): Session to reuse; a plain `requests.get` is used when omitted.
        timeout (float): Request timeout in seconds.

    Returns:
        List[OpenRouterModel]: Every model listed by OpenRouter.

    Raises:
        TransientAgentError: On timeouts, connection failures, 408/429 and 5xx responses.
        PermanentAgentError: On other HTTP errors and bodies that do not match the catalogue schema.
    """
    http = session if session is not None else requests
    try:
        response = http.get(OPENROUTER_MODELS_URL, headers=MODEL_LIST_HEADERS, timeout=timeout)
    except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
        raise TransientAgentError(f"OpenRouter model list request failed: {e}", e) from e
    except requests.exceptions.RequestException as e:
        raise PermanentAgentError(f"OpenRouter model list request failed: {e}", e) from e

    if not response.ok:
        raise error_for_status(response.status_code, response.text)

    try:
        return OpenRouterModelsResponse.model_validate(response.json()).data
    except (ValueError, ValidationError) as e:
        raise PermanentAgentError(f"Unexpected OpenRouter model list: {e}", e) from e


class OpenRouterAgent(OpenAIAgent):
    """
    Agent for OpenRouter.

    OpenRouter exposes many providers behind the OpenAI-compatible API format.
    This agent extends OpenAIAgent with OpenRouter's attribution headers.

    Example:
        ```python
        agent = OpenRouterAgent(
            api_key="your-api-key",
            model="openai/gpt-4o",
            site_url="https://yoursite.com",
            site_name="Your App Name",
        )
        ```
    """

    provider_name = "openrouter"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "openai/gpt-4o",
        site_url: Optional[str] = None,
        site_name: Optional[str] = None,
        base_url: str = "https://openrouter.ai/api/v1",
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ):
        """
        Initialize the OpenRouter agent.

        Args:
            api_key: Your OpenRouter API key (reads from OPENROUTER_API_KEY env var if not provided)
            model: The model to use (e.g., "openai/gpt-4o", "anthropic/claude-3-opus")
            site_url: Optional site URL for rankings on openrouter.ai
            site_name: Optional site name for rankings on openrouter.ai
            base_url: OpenRouter API base URL (default: https://openrouter.ai/api/v1)
            system_prompt: Default system prompt
            temperature: Default sampling temperature
            max_tokens: Default completion token limit

        Raises:
            ConfigurationError: If no API key is provided and OPENROUTER_API_KEY env var is not set
        """
        final_api_key = api_key or os.environ.get("OPENROUTER_API_KEY")

        if not final_api_key:
            raise ConfigurationError(
                "OpenRouter API key must be provided either as 'api_key' parameter "
                "or via OPENROUTER_API_KEY environment variable"
            )

        default_headers = {}
        if site_url:
            default_headers["HTTP-Referer"] = site_url
        if site_name:
            default_headers["X-Title"] = site_name

        self.site_url = site_url
        self.site_name = site_name

        super().__init__(
            api_key=final_api_key,
            model=model,
            base_url=base_url,
            default_headers=default_headers if default_headers else None,
            system_prompt=system_prompt,
            temperature=temperature,
            max_tokens=max_tokens,
        )
