"""Shared fixtures: fetchers backed by httpx.MockTransport"""

from typing import Callable, List

import httpx
import pytest

from journeyscribe.domain.config.retry import RetryPolicy
from journeyscribe.infrastructure.http_client import ResilientFetcher


async def no_sleep(delay: float) -> None:
    return None


class Router:
    """Mock transport handler dispatching on URL path and recording requests"""

    def __init__(self):
        self.routes = {}
        self.requests: List[httpx.Request] = []

    def add(self, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[path] = handler

    def calls(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(request.url.path)
        if handler is None:
            return httpx.Response(404, json={"errors": [{"detail": f"No route for {request.url.path}"}]})
        return handler(request)


@pytest.fixture
def router() -> Router:
    return Router()


@pytest.fixture
def make_fetcher(router):
    """Build a fetcher over the router; call inside a running event loop"""

    def _make(policy: RetryPolicy = None) -> ResilientFetcher:
        client = httpx.AsyncClient(transport=httpx.MockTransport(router))
        fetcher = ResilientFetcher(client, policy or RetryPolicy(max_attempts=3), sleep=no_sleep)
        fetcher._owns_client = True
        return fetcher

    return _make
