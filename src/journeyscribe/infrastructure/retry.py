"""Retry building blocks for upstream HTTP calls, built on tenacity.

Outcomes are classified into three groups:

- retryable: transport errors, configured status codes (429), and error
  responses whose body carries a rate-limit message;
- final: every other response, successful or not;
- terminal: attempts exhausted while only retryable outcomes occurred.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from journeyscribe.domain.config.retry import RetryPolicy

logger = logging.getLogger(__name__)

# Raised by the transport before a response exists: DNS failures, refused
# connections, timeouts, dropped connections.
RETRYABLE_EXCEPTIONS = (httpx.TransportError,)


def is_retryable_response(response: httpx.Response, policy: RetryPolicy) -> bool:
    """Check if a received response should be retried.

    The body must already be read; non-streamed httpx responses always are.
    """
    if response.status_code in policy.retryable_status_codes:
        return True
    if response.status_code < 400:
        return False
    body = response.text
    return any(pattern in body for pattern in policy.retryable_body_patterns)


def describe_outcome(retry_state: RetryCallState) -> str:
    """Short human-readable description of the last attempt's outcome."""
    outcome = retry_state.outcome
    if outcome is None:
        return "no outcome"
    if outcome.failed:
        exception = outcome.exception()
        return f"{type(exception).__name__}: {exception}"
    return f"HTTP {outcome.result().status_code}"


def _log_before_sleep(url: str, policy: RetryPolicy) -> Callable[[RetryCallState], None]:
    def _before_sleep(retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            f"Retryable outcome from {url} (attempt {retry_state.attempt_number}/{policy.max_attempts}): "
            f"{describe_outcome(retry_state)}. Retrying in {delay:.2f}s..."
        )

    return _before_sleep


def create_retrying(
    policy: RetryPolicy,
    *,
    url: str,
    sleep: Callable[[float], Awaitable[None]],
) -> AsyncRetrying:
    """Create an async tenacity controller for one logical request.

    Args:
        policy: Retry policy
        url: Request URL (for logging)
        sleep: Awaitable sleep used between attempts

    Returns:
        AsyncRetrying instance that raises tenacity.RetryError on exhaustion
    """
    # Pure exponential backoff: initial_delay * (backoff_multiplier ^ (attempt - 1)).
    # No jitter and no cap beyond tenacity's own ceiling.
    wait = wait_exponential(
        multiplier=policy.initial_delay,
        exp_base=policy.backoff_multiplier,
    )

    return AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait,
        retry=(
            retry_if_exception_type(RETRYABLE_EXCEPTIONS)
            | retry_if_result(lambda response: is_retryable_response(response, policy))
        ),
        sleep=sleep,
        before_sleep=_log_before_sleep(url, policy),
        reraise=False,
    )
