"""
Agent capability for the resilient agent layer.

This module defines the protocol every completion backend, wrapper and pool
implements, plus a small base class that supplies the async and prompt
conveniences on top of a synchronous `complete`.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable

from .models import CompletionRequest, CompletionResponse


@runtime_checkable
class CompletionAgent(Protocol):
    """
    Protocol for anything that can serve a completion request.

    Provider adapters, retrying wrappers and pools all satisfy it, so they
    nest freely. Failures are raised as `AgentError` subclasses.
    """

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        """
        Serve a completion request.

        Args:
            request: The conversation to complete

        Returns:
            The completion

        Raises:
            AgentError: If the call fails
        """
        ...


class BaseAgent(ABC):
    """
    Base class for agents implemented in this package.

    Subclasses implement `complete`; `acomplete` defaults to running it in a
    worker thread and may be overridden with a native coroutine.
    """

    @abstractmethod
    def complete(self, request: CompletionRequest) -> CompletionResponse:
        """
        Serve a completion request synchronously.

        Parameters:
            request (CompletionRequest): The conversation to complete.

        Returns:
            CompletionResponse: The completion.

        Raises:
            AgentError: If the call fails.
        """

    async def acomplete(self, request: CompletionRequest) -> CompletionResponse:
        """
        Serve a completion request from a coroutine.

        Parameters:
            request (CompletionRequest): The conversation to complete.

        Returns:
            CompletionResponse: The completion.
        """
        return await asyncio.to_thread(self.complete, request)

    def prompt(self, prompt: str) -> str:
        """Send a single user prompt and return the completion text."""
        return self.complete(CompletionRequest.from_prompt(prompt)).content

    async def aprompt(self, prompt: str) -> str:
        """Async counterpart of `prompt`."""
        response = await self.acomplete(CompletionRequest.from_prompt(prompt))
        return response.content


async def acomplete_with(
    agent: CompletionAgent, request: CompletionRequest
) -> CompletionResponse:
    """
    Await a completion from any agent, native coroutine or not.

    Parameters:
        agent (CompletionAgent): Agent to call. If it defines `acomplete` that coroutine is awaited, otherwise `complete` runs in a worker thread.
        request (CompletionRequest): The conversation to complete.

    Returns:
        CompletionResponse: The agent's completion.
    """
    acomplete = getattr(agent, "acomplete", None)
    if acomplete is not None:
        return await acomplete(request)
    return await asyncio.to_thread(agent.complete, request)
