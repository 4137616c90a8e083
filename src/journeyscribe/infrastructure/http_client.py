"""Shared HTTP client utilities (httpx + retry/backoff).

Every call to an upstream travel-data API goes through ``fetch_with_retry`` so
that rate limiting is handled in one place instead of per route.

Retries assume the request is idempotent or safe to repeat: after a transport
error the server may already have received the request, so a POST that
creates a resource can be applied more than once. Callers own that decision.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, TypeVar, Union

import httpx
from tenacity import RetryError

from journeyscribe.domain.config.http import HttpConfig
from journeyscribe.domain.config.retry import RetryPolicy
from journeyscribe.infrastructure.errors import FetchCancelled, NetworkExhausted
from journeyscribe.infrastructure.retry import create_retrying

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RequestOptions:
    """Request options passed unchanged to the transport on every attempt."""

    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    params: Optional[Mapping[str, Any]] = None
    content: Any = None  # bytes, str, or an (async) iterable of bytes
    data: Optional[Mapping[str, Any]] = None  # Form fields
    json: Any = None
    timeout: Optional[float] = None  # Per-attempt transport timeout

    def request_kwargs(self, content: Union[bytes, str, None]) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {"headers": dict(self.headers)}
        if self.params is not None:
            kwargs["params"] = self.params
        if content is not None:
            kwargs["content"] = content
        if self.data is not None:
            kwargs["data"] = self.data
        if self.json is not None:
            kwargs["json"] = self.json
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        return kwargs


async def _buffer_content(content: Any) -> Union[bytes, str, None]:
    """Read a streaming body into memory so it can be sent again."""
    if content is None or isinstance(content, (bytes, str)):
        return content
    if hasattr(content, "__aiter__"):
        return b"".join([chunk async for chunk in content])
    return b"".join(content)


def retry_policy_from_dict(config: Dict[str, Any]) -> RetryPolicy:
    """Parse retry policy from dict, supporting legacy aliases."""
    max_attempts = config.get("max_attempts")
    initial_delay = config.get("initial_delay")
    backoff_multiplier = config.get("backoff_multiplier")

    # Aliases used by older call sites
    if max_attempts is None:
        max_attempts = config.get("max_retries", config.get("retries", 5))
    if initial_delay is None:
        delay_ms = config.get("initial_delay_ms", config.get("initialDelayMs"))
        if delay_ms is not None:
            try:
                initial_delay = float(delay_ms) / 1000.0
            except (TypeError, ValueError):
                initial_delay = None
        if initial_delay is None:
            initial_delay = config.get("retry_delay", config.get("delay", 1.0))
    if backoff_multiplier is None:
        backoff_multiplier = config.get("backoff", 2.0)

    try:
        max_attempts_i = int(max_attempts)
    except (TypeError, ValueError):
        max_attempts_i = 5

    try:
        initial_delay_f = float(initial_delay)
    except (TypeError, ValueError):
        initial_delay_f = 1.0

    try:
        backoff_multiplier_f = float(backoff_multiplier)
    except (TypeError, ValueError):
        backoff_multiplier_f = 2.0

    if max_attempts_i < 1:
        max_attempts_i = 1
    if initial_delay_f < 0:
        initial_delay_f = 0.0
    if backoff_multiplier_f < 1:
        backoff_multiplier_f = 1.0
    if backoff_multiplier_f > 10:
        backoff_multiplier_f = 10.0

    optional: Dict[str, Any] = {}
    if config.get("retryable_body_patterns") is not None:
        optional["retryable_body_patterns"] = tuple(config["retryable_body_patterns"])
    if config.get("retryable_status_codes") is not None:
        optional["retryable_status_codes"] = tuple(int(code) for code in config["retryable_status_codes"])

    return RetryPolicy(
        max_attempts=max_attempts_i,
        initial_delay=initial_delay_f,
        backoff_multiplier=backoff_multiplier_f,
        **optional,
    )


class _FetchCall:
    """One logical request: attempt counter plus its abort conditions."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str,
        options: RequestOptions,
        policy: RetryPolicy,
        cancel_event: Optional[asyncio.Event],
        timeout: Optional[float],
        sleep: Sleep,
    ):
        self.client = client
        self.url = url
        self.options = options
        self.policy = policy
        self.cancel_event = cancel_event
        self.attempts = 0
        self._sleep_fn = sleep
        self._loop = asyncio.get_running_loop()
        self._deadline = None if timeout is None else self._loop.time() + timeout

    async def run(self) -> httpx.Response:
        content = await _buffer_content(self.options.content)
        request_kwargs = self.options.request_kwargs(content)
        retrying = create_retrying(self.policy, url=self.url, sleep=self._sleep)

        try:
            return await retrying(self._attempt, request_kwargs)
        except RetryError as e:
            last_attempt = e.last_attempt
            if last_attempt.failed:
                error = last_attempt.exception()
                logger.error(f"Giving up on {self.url} after {self.attempts} attempts: {error}")
                raise NetworkExhausted(self.url, self.attempts, last_error=error) from error
            status = last_attempt.result().status_code
            logger.error(f"Giving up on {self.url} after {self.attempts} attempts: HTTP {status}")
            raise NetworkExhausted(self.url, self.attempts, last_status=status) from e

    async def _attempt(self, request_kwargs: Dict[str, Any]) -> httpx.Response:
        def _send() -> Awaitable[httpx.Response]:
            self.attempts += 1
            logger.debug(f"HTTP {self.options.method} {self.url} (attempt {self.attempts}/{self.policy.max_attempts})")
            return self.client.request(self.options.method, self.url, **request_kwargs)

        return await self._guarded(_send)

    async def _sleep(self, seconds: float) -> None:
        await self._guarded(lambda: self._sleep_fn(seconds))

    def _remaining(self) -> Optional[float]:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._loop.time())

    def _aborted(self, reason: str) -> FetchCancelled:
        logger.info(f"Fetch of {self.url} aborted ({reason}) after {self.attempts} attempts")
        return FetchCancelled(self.url, self.attempts, reason=reason)

    async def _guarded(self, start: Callable[[], Awaitable[T]]) -> T:
        """Await ``start()`` unless the cancel event fires or the deadline passes first."""
        if self.cancel_event is None and self._deadline is None:
            return await start()
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise self._aborted("cancelled")
        remaining = self._remaining()
        if remaining is not None and remaining <= 0:
            raise self._aborted("timeout")

        task = asyncio.ensure_future(start())
        waiters = {task}
        abort_waiter = None
        if self.cancel_event is not None:
            abort_waiter = asyncio.ensure_future(self.cancel_event.wait())
            waiters.add(abort_waiter)

        try:
            done, _ = await asyncio.wait(waiters, timeout=remaining, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if abort_waiter is not None:
                abort_waiter.cancel()
            if not task.done():
                # Aborts the in-flight request or the pending sleep
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

        if task in done:
            return task.result()
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise self._aborted("cancelled")
        raise self._aborted("timeout")


async def fetch_with_retry(
    url: str,
    options: Optional[RequestOptions] = None,
    policy: Optional[RetryPolicy] = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
    cancel_event: Optional[asyncio.Event] = None,
    timeout: Optional[float] = None,
    sleep: Sleep = asyncio.sleep,
) -> httpx.Response:
    """Perform one logical HTTP request, retrying transient rate limiting.

    Args:
        url: Absolute request URL
        options: Method, headers and body (defaults to a plain GET)
        policy: Retry policy (defaults to RetryPolicy())
        client: Client to send requests with (a short-lived one is created if None)
        cancel_event: Abort signal; setting it stops the call promptly
        timeout: Overall deadline in seconds, backoff sleeps included
        sleep: Awaitable sleep used for backoff

    Returns:
        The first response not classified as retryable. Error responses that are
        not rate limiting are returned as-is for the caller to interpret.

    Raises:
        ValueError: If url is empty
        NetworkExhausted: If every attempt was a transport error or rate limited
        FetchCancelled: If the cancel event fired or the deadline passed
    """
    if not url:
        raise ValueError("url is required")
    options = options or RequestOptions()
    policy = policy or RetryPolicy()

    if client is None:
        async with httpx.AsyncClient() as owned_client:
            return await fetch_with_retry(
                url,
                options,
                policy,
                client=owned_client,
                cancel_event=cancel_event,
                timeout=timeout,
                sleep=sleep,
            )

    call = _FetchCall(client, url, options, policy, cancel_event, timeout, sleep)
    return await call.run()


class ResilientFetcher:
    """Retrying fetcher bound to a shared client and a default retry policy.

    Stateless across calls: the policy is read-only and each fetch keeps its own
    attempt counter, so concurrent fetches do not interact.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        policy: Optional[RetryPolicy] = None,
        *,
        sleep: Sleep = asyncio.sleep,
    ):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient()
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    @classmethod
    def from_config(cls, policy: RetryPolicy, http_config: HttpConfig) -> "ResilientFetcher":
        """Create a fetcher with its own client configured from settings."""
        client = httpx.AsyncClient(
            timeout=http_config.timeout,
            headers={"User-Agent": http_config.user_agent},
        )
        fetcher = cls(client, policy)
        fetcher._owns_client = True
        return fetcher

    async def fetch(
        self,
        url: str,
        options: Optional[RequestOptions] = None,
        *,
        policy: Optional[RetryPolicy] = None,
        cancel_event: Optional[asyncio.Event] = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        """Fetch with the default policy unless one is given for this call."""
        return await fetch_with_retry(
            url,
            options,
            policy or self.policy,
            client=self.client,
            cancel_event=cancel_event,
            timeout=timeout,
            sleep=self._sleep,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "ResilientFetcher":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
