"""
Retry policy and retrying agent for the resilient agent layer.

This module provides a retry policy and an agent wrapper that re-issues
failed calls using the tenacity library.
"""

import asyncio
import threading
import time
from typing import Any, Awaitable, Callable, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)
from tenacity.wait import wait_base

from .base import BaseAgent, CompletionAgent, acomplete_with
from .exceptions import AgentError, CallCancelledError, ConfigurationError, is_transient
from .models import CompletionRequest, CompletionResponse


class wait_capped(wait_base):
    """Clamp another wait strategy to a ceiling in seconds."""

    def __init__(self, wait: wait_base, max_delay: float):
        self.wait = wait
        self.max_delay = max_delay

    def __call__(self, retry_state: RetryCallState) -> float:
        return min(self.wait(retry_state), self.max_delay)


class RetrySettings(BaseModel):
    """
    Numeric retry settings, loadable from a config file.

    Attributes:
        max_attempts: Maximum number of attempts, including the first one
        base_delay: Wait in seconds before the second attempt
        backoff_multiplier: Factor applied to the wait after each failed attempt
        max_delay: Ceiling on any single wait, in seconds
        jitter: Upper bound of a uniform random extra wait, in seconds
    """

    max_attempts: int = Field(
        default=3, ge=1, description="Maximum number of attempts"
    )
    base_delay: float = Field(
        default=1.0, ge=0, description="Initial wait time in seconds"
    )
    backoff_multiplier: float = Field(
        default=2.0, ge=1.0, description="Multiplier for exponential backoff"
    )
    max_delay: float = Field(
        default=10.0, ge=0, description="Maximum wait time in seconds"
    )
    jitter: float = Field(
        default=0.0, ge=0, description="Maximum random extra wait in seconds"
    )

    @model_validator(mode="after")
    def check_delay_bounds(self) -> "RetrySettings":
        if self.max_delay < self.base_delay:
            raise ValueError(
                f"max_delay ({self.max_delay}) must be >= base_delay ({self.base_delay})"
            )
        return self


class RetryPolicy(RetrySettings):
    """
    Immutable retry policy shared by every call through a `RetryingAgent`.

    Invalid values raise `ConfigurationError` at construction time.

    Attributes:
        retryable: Predicate deciding whether a failure is worth another attempt
    """

    model_config = ConfigDict(frozen=True)

    retryable: Callable[[AgentError], bool] = Field(default=is_transient, exclude=True)

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid retry policy: {e}") from e

    @classmethod
    def from_settings(
        cls,
        settings: RetrySettings,
        retryable: Optional[Callable[[AgentError], bool]] = None,
    ) -> "RetryPolicy":
        """
        Build a policy from plain settings, optionally overriding the predicate.

        Parameters:
            settings (RetrySettings): Numeric settings, e.g. loaded from YAML.
            retryable (Optional[Callable]): Retry predicate; defaults to transient errors only.

        Returns:
            RetryPolicy: The frozen policy.
        """
        data = settings.model_dump()
        if retryable is not None:
            data["retryable"] = retryable
        return cls(**data)

    def delay_for(self, attempt: int) -> float:
        """
        Compute the back-off after a failed attempt, without jitter.

        Parameters:
            attempt (int): Number of the attempt that just failed (1-indexed).

        Returns:
            float: `min(base_delay * backoff_multiplier ** (attempt - 1), max_delay)` in seconds.
        """
        if attempt < 1:
            return 0.0
        try:
            delay = self.base_delay * self.backoff_multiplier ** (attempt - 1)
        except OverflowError:
            return self.max_delay
        return min(delay, self.max_delay)

    def build_wait(self):
        """
        Create the tenacity wait strategy matching `delay_for`, plus jitter,
        never exceeding `max_delay`.

        Returns:
            A tenacity wait strategy.
        """
        wait = wait_exponential(
            multiplier=self.base_delay,
            exp_base=self.backoff_multiplier,
            min=0,
            max=self.max_delay,
        )
        if self.jitter > 0:
            wait = wait_capped(wait + wait_random(0, self.jitter), self.max_delay)
        return wait


class RetryingAgent(BaseAgent):
    """
    Agent wrapper that re-issues failed calls under a `RetryPolicy`.

    Retryable failures are retried with exponential back-off until the attempt
    budget runs out; the last failure is then re-raised unchanged. Failures the
    policy rejects are re-raised immediately. The wrapper keeps no per-call
    state, so one instance serves concurrent callers.

    Example:
        ```python
        agent = RetryingAgent(
            BigModelAgent(api_key="..."),
            RetryPolicy(max_attempts=4, base_delay=0.5, max_delay=5.0),
        )
        response = agent.complete(CompletionRequest.from_prompt("Hello"))
        ```
    """

    def __init__(
        self,
        agent: CompletionAgent,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
        async_sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Wrap an agent with retry behavior.

        Parameters:
            agent (CompletionAgent): The agent to call; shared, never copied.
            policy (Optional[RetryPolicy]): Retry policy; the default policy is used when omitted.
            sleep (Callable[[float], None]): Blocking wait used by `complete`.
            async_sleep (Callable[[float], Awaitable[None]]): Cooperative wait used by `acomplete`.

        Raises:
            ConfigurationError: If the policy allows fewer than one attempt.
        """
        policy = policy if policy is not None else RetryPolicy()
        if policy.max_attempts < 1:
            raise ConfigurationError(
                f"max_attempts must be at least 1, got {policy.max_attempts}"
            )
        self.agent = agent
        self.policy = policy
        self._sleep = sleep
        self._async_sleep = async_sleep

    def _should_retry(self, error: BaseException) -> bool:
        return isinstance(error, AgentError) and bool(self.policy.retryable(error))

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception()
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            f"Agent call failed on attempt {retry_state.attempt_number}/"
            f"{self.policy.max_attempts}: {error}. Retrying in {delay:.2f}s"
        )

    def _retry_kwargs(self) -> dict:
        return dict(
            stop=stop_after_attempt(self.policy.max_attempts),
            wait=self.policy.build_wait(),
            retry=retry_if_exception(self._should_retry),
            before_sleep=self._log_retry,
            reraise=True,
        )

    def _log_failure(self, error: AgentError, attempts: int) -> None:
        if self._should_retry(error):
            logger.error(f"Agent call failed after {attempts} attempt(s): {error}")
        else:
            logger.error(f"Agent call failed with non-retryable error: {error}")

    def complete(
        self,
        request: CompletionRequest,
        cancel_event: Optional[threading.Event] = None,
    ) -> CompletionResponse:
        """
        Call the wrapped agent, retrying retryable failures.

        Parameters:
            request (CompletionRequest): The conversation to complete.
            cancel_event (Optional[threading.Event]): When set, pending back-off waits end at once and no further attempt starts.

        Returns:
            CompletionResponse: The first successful completion.

        Raises:
            AgentError: The last failure, once the policy gives up.
            CallCancelledError: If `cancel_event` is set before the call succeeds.
        """
        attempts = 0

        def _attempt() -> CompletionResponse:
            nonlocal attempts
            if cancel_event is not None and cancel_event.is_set():
                raise CallCancelledError(attempts)
            attempts += 1
            return self.agent.complete(request)

        sleep = self._sleep
        if cancel_event is not None:

            def sleep(seconds: float) -> None:
                if cancel_event.wait(seconds):
                    raise CallCancelledError(attempts)

        retrying = Retrying(sleep=sleep, **self._retry_kwargs())
        try:
            return retrying(_attempt)
        except AgentError as e:
            self._log_failure(e, attempts)
            raise

    async def acomplete(self, request: CompletionRequest) -> CompletionResponse:
        """
        Async counterpart of `complete`.

        Task cancellation interrupts a pending back-off immediately and is
        never retried.

        Parameters:
            request (CompletionRequest): The conversation to complete.

        Returns:
            CompletionResponse: The first successful completion.

        Raises:
            AgentError: The last failure, once the policy gives up.
        """
        attempts = 0

        async def _attempt() -> CompletionResponse:
            nonlocal attempts
            attempts += 1
            return await acomplete_with(self.agent, request)

        retrying = AsyncRetrying(sleep=self._async_sleep, **self._retry_kwargs())
        try:
            return await retrying(_attempt)
        except AgentError as e:
            self._log_failure(e, attempts)
            raise

    def __repr__(self) -> str:
        return (
            f"RetryingAgent(agent={self.agent!r}, "
            f"max_attempts={self.policy.max_attempts})"
        )


def with_retry(agent: CompletionAgent, **policy_fields: Any) -> RetryingAgent:
    """
    Wrap an agent in a `RetryingAgent` built from keyword policy fields.

    Parameters:
        agent (CompletionAgent): The agent to wrap.
        **policy_fields: Any `RetryPolicy` field (max_attempts, base_delay, ...).

    Returns:
        RetryingAgent: The wrapped agent.
    """
    return RetryingAgent(agent, RetryPolicy(**policy_fields))
