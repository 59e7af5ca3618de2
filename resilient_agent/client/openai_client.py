"""
OpenAI agent implementation.
"""

import os
from typing import Any, Dict, List, Optional

import openai
from loguru import logger
from openai import AsyncOpenAI, OpenAI

from ..agent.base import BaseAgent
from ..agent.exceptions import (
    AgentError,
    ConfigurationError,
    PermanentAgentError,
    TransientAgentError,
    error_for_status,
)
from ..agent.models import CompletionRequest, CompletionResponse, Usage


def classify_openai_error(error: openai.APIError) -> AgentError:
    """
    Translate an OpenAI SDK exception into the transient/permanent taxonomy.

    Parameters:
        error (openai.APIError): Exception raised by the SDK.

    Returns:
        AgentError: Connection failures and timeouts are transient, status errors are classified by code, anything else is permanent.
    """
    if isinstance(error, openai.APIConnectionError):
        return TransientAgentError(f"Connection to LLM provider failed: {error}", error)
    if isinstance(error, openai.APIStatusError):
        return error_for_status(error.status_code, error.message, error)
    return PermanentAgentError(f"LLM provider error: {error}", error)


class OpenAIAgent(BaseAgent):
    """
    Agent for OpenAI-compatible chat completion APIs.

    The SDK's own retries are disabled; wrap the agent in a `RetryingAgent`
    for resilience.

    Example:
        ```python
        agent = OpenAIAgent(
            api_key="your-api-key",
            model="gpt-4o",
            system_prompt="You are a helpful assistant",
        )
        print(agent.prompt("Hello!"))
        ```
    """

    provider_name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o",
        base_url: str = "https://api.openai.com/v1",
        organization: Optional[str] = None,
        default_headers: Optional[dict] = None,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: float = 60.0,
    ):
        """
        Initialize the OpenAI agent.

        Args:
            api_key: Your OpenAI API key (reads from OPENAI_API_KEY env var if not provided)
            model: The model to use (e.g., "gpt-4o", "gpt-4o-mini")
            base_url: API base URL (default: https://api.openai.com/v1)
            organization: Optional organization ID
            default_headers: Optional default headers to include in all requests
            system_prompt: Default system prompt, used when a request has no preamble
            temperature: Default sampling temperature
            max_tokens: Default completion token limit
            timeout: Request timeout in seconds

        Raises:
            ConfigurationError: If no API key is provided and OPENAI_API_KEY env var is not set
        """
        final_api_key = api_key or os.environ.get("OPENAI_API_KEY")

        if not final_api_key:
            raise ConfigurationError(
                "OpenAI API key must be provided either as 'api_key' parameter "
                "or via OPENAI_API_KEY environment variable"
            )

        client_options = dict(
            base_url=base_url,
            api_key=final_api_key,
            organization=organization,
            default_headers=default_headers,
            timeout=timeout,
            max_retries=0,
        )
        self.client = OpenAI(**client_options)
        self.async_client = AsyncOpenAI(**client_options)
        self.model = model
        self.system_prompt = system_prompt
        self.temperature = temperature
        self.max_tokens = max_tokens

    def build_messages(self, request: CompletionRequest) -> List[Dict[str, str]]:
        """
        Convert a request into the chat completions `messages` list.

        The request preamble, or else the agent's system prompt, becomes a
        leading system message.
        """
        messages = []
        preamble = request.preamble or self.system_prompt
        if preamble:
            messages.append({"role": "system", "content": preamble})
        messages.extend({"role": msg.role, "content": msg.content} for msg in request.messages)
        return messages

    def build_params(self, request: CompletionRequest) -> Dict[str, Any]:
        """Collect the keyword arguments for `chat.completions.create`."""
        params: Dict[str, Any] = {
            "model": self.model,
            "messages": self.build_messages(request),
        }
        temperature = request.temperature if request.temperature is not None else self.temperature
        if temperature is not None:
            params["temperature"] = temperature
        max_tokens = request.max_tokens if request.max_tokens is not None else self.max_tokens
        if max_tokens is not None:
            params["max_tokens"] = max_tokens
        params.update(request.additional_params)
        return params

    def parse_completion(self, completion) -> CompletionResponse:
        """
        Convert an SDK `ChatCompletion` into a `CompletionResponse`.

        Raises:
            PermanentAgentError: If the completion contains no choices.
        """
        if not completion.choices:
            raise PermanentAgentError("Response contained no choices")

        choice = completion.choices[0]
        usage = None
        if completion.usage is not None:
            usage = Usage(
                prompt_tokens=completion.usage.prompt_tokens or 0,
                completion_tokens=completion.usage.completion_tokens or 0,
                total_tokens=completion.usage.total_tokens or 0,
            )
            logger.debug(f"{self.provider_name} completion token usage: {usage}")

        return CompletionResponse(
            content=choice.message.content or "",
            model=completion.model,
            id=completion.id,
            finish_reason=choice.finish_reason,
            usage=usage,
            raw=completion.model_dump() if hasattr(completion, "model_dump") else {},
        )

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        """
        Make a synchronous chat completion call.

        Args:
            request: The conversation to complete

        Returns:
            The completion

        Raises:
            AgentError: Classified provider failure
        """
        logger.debug(f"Calling {self.provider_name} model {self.model}")
        try:
            completion = self.client.chat.completions.create(
                stream=False, **self.build_params(request)
            )
        except openai.APIError as e:
            raise classify_openai_error(e) from e
        return self.parse_completion(completion)

    async def acomplete(self, request: CompletionRequest) -> CompletionResponse:
        """Async counterpart of `complete`, using the SDK's async client."""
        logger.debug(f"Calling {self.provider_name} model {self.model} (async)")
        try:
            completion = await self.async_client.chat.completions.create(
                stream=False, **self.build_params(request)
            )
        except openai.APIError as e:
            raise classify_openai_error(e) from e
        return self.parse_completion(completion)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model={self.model!r})"
