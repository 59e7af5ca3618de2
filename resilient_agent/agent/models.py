"""
Core models for the resilient agent layer.

This module contains Pydantic models representing messages, completion
requests and responses, and the descriptive metadata attached to pool members.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class Message(BaseModel):
    """
    Represents a message in the conversation.

    Attributes:
        role: The role of the message sender (user, assistant, or system)
        content: The actual message content
    """

    role: Literal["user", "assistant", "system"]
    content: str


class CompletionRequest(BaseModel):
    """
    A completion request sent to an agent.

    The retry and pool wrappers never look inside a request; only provider
    adapters translate it to a wire format.

    Attributes:
        messages: Conversation so far, oldest first
        preamble: System prompt overriding the adapter's default
        temperature: Sampling temperature
        max_tokens: Upper bound on generated tokens
        additional_params: Extra provider-specific fields merged into the payload
    """

    messages: List[Message] = Field(..., min_length=1)
    preamble: Optional[str] = None
    temperature: Optional[float] = Field(None, ge=0)
    max_tokens: Optional[int] = Field(None, ge=1)
    additional_params: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_prompt(
        cls, prompt: str, preamble: Optional[str] = None
    ) -> "CompletionRequest":
        """
        Build a single-turn request from a user prompt.

        Parameters:
            prompt (str): The user message.
            preamble (Optional[str]): Optional system prompt.

        Returns:
            CompletionRequest: A request with one user message.
        """
        return cls(messages=[Message(role="user", content=prompt)], preamble=preamble)


class Usage(BaseModel):
    """Token accounting reported by a provider."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class CompletionResponse(BaseModel):
    """
    The completion returned by an agent.

    Attributes:
        content: Assistant text
        model: Model that produced the completion, if reported
        id: Provider response id
        finish_reason: Why generation stopped
        usage: Token usage, if reported
        raw: The decoded provider response body
    """

    content: str
    model: Optional[str] = None
    id: Optional[str] = None
    finish_reason: Optional[str] = None
    usage: Optional[Usage] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


class AgentInfo(BaseModel):
    """
    Descriptive metadata for an agent placed in a pool.

    Attributes:
        id: Caller-assigned identifier
        provider: Provider name (openai, bigmodel, ...)
        model: Model name (gpt-4o, glm-4-flash, ...)
    """

    id: Optional[int] = None
    provider: str = ""
    model: str = ""

    def describe(self) -> str:
        """Return a short label used in log lines."""
        label = f"{self.provider or 'unknown'}/{self.model or 'unknown'}"
        if self.id is not None:
            label = f"#{self.id} {label}"
        return label


class FailureStats(BaseModel):
    """Snapshot of one tracked pool member's failure counter."""

    index: int
    info: AgentInfo
    failure_count: int
    max_failures: int

    @property
    def valid(self) -> bool:
        """Whether the member is still eligible for selection."""
        return self.failure_count < self.max_failures
