"""
BigModel (Zhipu AI) agent implementation.

The BigModel chat completions endpoint is shaped like OpenAI's but reports
some failures as a 200 response carrying an error envelope instead of
`choices`, so it gets its own adapter on top of `requests`.
"""

import os
from typing import Any, Dict, List, Optional

import requests
from loguru import logger
from pydantic import ValidationError

from ..agent.base import BaseAgent
from ..agent.exceptions import (
    ConfigurationError,
    PermanentAgentError,
    TransientAgentError,
    error_for_status,
)
from ..agent.models import CompletionRequest, CompletionResponse, Usage

BIGMODEL_API_BASE_URL = "https://open.bigmodel.cn/api/paas/v4"

GLM_4_FLASH = "glm-4-flash"


class BigModelAgent(BaseAgent):
    """
    Agent for the BigModel chat completions API.

    Example:
        ```python
        agent = BigModelAgent(api_key="your-api-key", system_prompt="You are an AI assistant")
        print(agent.prompt("Hello"))
        ```
    """

    provider_name = "bigmodel"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = GLM_4_FLASH,
        base_url: str = BIGMODEL_API_BASE_URL,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: float = 60.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the BigModel agent.

        Args:
            api_key: Your BigModel API key (reads from BIGMODEL_API_KEY env var if not provided)
            model: The model to use (default: glm-4-flash)
            base_url: API base URL (default: https://open.bigmodel.cn/api/paas/v4)
            system_prompt: Default system prompt, used when a request has no preamble
            temperature: Default sampling temperature
            max_tokens: Default completion token limit
            timeout: Request timeout in seconds
            session: Optional requests session to reuse connections

        Raises:
            ConfigurationError: If no API key is provided and BIGMODEL_API_KEY env var is not set
        """
        final_api_key = api_key or os.environ.get("BIGMODEL_API_KEY")

        if not final_api_key:
            raise ConfigurationError(
                "BigModel API key must be provided either as 'api_key' parameter "
                "or via BIGMODEL_API_KEY environment variable"
            )

        self.session = session if session is not None else requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {final_api_key}"})
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.system_prompt = system_prompt
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    @property
    def completions_url(self) -> str:
        return f"{self.base_url}/chat/completions"

    def build_messages(self, request: CompletionRequest) -> List[Dict[str, str]]:
        messages = []
        preamble = request.preamble or self.system_prompt
        if preamble:
            messages.append({"role": "system", "content": preamble})
        messages.extend({"role": msg.role, "content": msg.content} for msg in request.messages)
        return messages

    def build_payload(self, request: CompletionRequest) -> Dict[str, Any]:
        """
        Build the JSON body for a chat completion request.

        Parameters:
            request (CompletionRequest): The conversation to complete.

        Returns:
            Dict[str, Any]: Body with `model`, `messages`, optional `temperature` and `max_tokens`, merged with the request's `additional_params`.
        """
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": self.build_messages(request),
        }
        temperature = request.temperature if request.temperature is not None else self.temperature
        if temperature is not None:
            payload["temperature"] = temperature
        max_tokens = request.max_tokens if request.max_tokens is not None else self.max_tokens
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        payload.update(request.additional_params)
        return payload

    def parse_response(self, data: Dict[str, Any]) -> CompletionResponse:
        """
        Convert a decoded response body into a `CompletionResponse`.

        Parameters:
            data (Dict[str, Any]): Decoded JSON body.

        Returns:
            CompletionResponse: The first choice's assistant message.

        Raises:
            PermanentAgentError: If the body is not an object, is an error envelope, has no usable assistant message, or has malformed fields.
        """
        if not isinstance(data, dict):
            raise PermanentAgentError(
                f"BigModel returned a {type(data).__name__} instead of a JSON object"
            )

        if "choices" not in data:
            error = data.get("error")
            if isinstance(error, dict):
                message = error.get("message") or str(error)
            else:
                message = data.get("message") or str(data)
            raise PermanentAgentError(f"BigModel API error: {message}")

        choices = data["choices"]
        if not choices:
            raise PermanentAgentError("Response contained no choices")

        try:
            choice = choices[0]
            message = choice.get("message") or {}
            if message.get("role", "assistant") != "assistant":
                raise PermanentAgentError("Chat response does not include an assistant message")

            usage = None
            if data.get("usage"):
                usage = Usage(**data["usage"])
                logger.debug(f"bigmodel completion token usage: {usage}")

            return CompletionResponse(
                content=message.get("content") or "",
                model=data.get("model"),
                id=data.get("id"),
                finish_reason=choice.get("finish_reason"),
                usage=usage,
                raw=data,
            )
        except (ValidationError, AttributeError, TypeError, KeyError) as e:
            raise PermanentAgentError(f"Malformed BigModel response: {e}", e) from e

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        """
        Make a synchronous chat completion call.

        Args:
            request: The conversation to complete

        Returns:
            The completion

        Raises:
            TransientAgentError: On timeouts, connection failures, 408/429 and 5xx responses
            PermanentAgentError: On other HTTP errors and malformed responses
        """
        payload = self.build_payload(request)
        logger.debug(f"Calling bigmodel model {self.model}")

        try:
            response = self.session.post(
                self.completions_url, json=payload, timeout=self.timeout
            )
        except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
            raise TransientAgentError(f"BigModel request failed: {e}", e) from e
        except requests.exceptions.RequestException as e:
            raise PermanentAgentError(f"BigModel request failed: {e}", e) from e

        if not response.ok:
            raise error_for_status(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise PermanentAgentError(f"BigModel returned invalid JSON: {e}", e) from e

        return self.parse_response(data)

    def __repr__(self) -> str:
        return f"BigModelAgent(model={self.model!r})"
