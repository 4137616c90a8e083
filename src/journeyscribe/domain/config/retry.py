"""Retry policy model."""

from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_RETRYABLE_BODY_PATTERNS = ("Too many requests", "network rate limit is exceeded")


class RetryPolicy(BaseModel):
    """Retry policy for calls to rate-limited upstream APIs.

    Attributes:
        max_attempts: Total number of attempts, the first one included
        initial_delay: Delay in seconds before the second attempt
        backoff_multiplier: Factor applied to the delay after every retryable outcome
        retryable_body_patterns: Case-sensitive substrings that mark an error body as rate limiting
        retryable_status_codes: Status codes that are always retried
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_attempts: int = Field(5, gt=0)
    initial_delay: float = Field(1.0, ge=0.0)  # Allow 0 for tests
    backoff_multiplier: float = Field(2.0, ge=1.0, le=10.0)
    retryable_body_patterns: Tuple[str, ...] = DEFAULT_RETRYABLE_BODY_PATTERNS
    retryable_status_codes: Tuple[int, ...] = (429,)
