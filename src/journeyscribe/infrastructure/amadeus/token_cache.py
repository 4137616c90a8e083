"""OAuth2 client-credentials token cache"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from journeyscribe.infrastructure.errors import AuthenticationError
from journeyscribe.infrastructure.http_client import RequestOptions, ResilientFetcher

logger = logging.getLogger(__name__)


class AccessTokenCache:
    """Caches a client-credentials access token until shortly before it expires.

    The clock is injected so expiry can be tested without waiting; it must be
    monotonic and return seconds.
    """

    def __init__(
        self,
        fetcher: ResilientFetcher,
        token_url: str,
        client_id: Optional[str],
        client_secret: Optional[str],
        *,
        refresh_margin: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.fetcher = fetcher
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_margin = refresh_margin
        self._clock = clock
        self._token: Optional[str] = None
        self._expires_at = 0.0
        self._lock: Optional[asyncio.Lock] = None

    @property
    def is_valid(self) -> bool:
        return self._token is not None and self._clock() < self._expires_at

    async def get_token(self) -> str:
        """Return a valid access token, requesting a new one if needed

        Raises:
            AuthenticationError: If credentials are missing or the token request fails
        """
        if self.is_valid:
            return self._token  # type: ignore[return-value]

        # Concurrent callers wait for a single refresh; the lock is created
        # inside the running loop
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if self.is_valid:
                return self._token  # type: ignore[return-value]
            return await self._refresh()

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = 0.0

    async def _refresh(self) -> str:
        if not self.client_id or not self.client_secret:
            raise AuthenticationError(
                "API credentials are required. "
                "Set AMADEUS_API_KEY and AMADEUS_API_SECRET environment variables or provide them in config."
            )

        logger.debug(f"Requesting access token from {self.token_url}")
        response = await self.fetcher.fetch(
            self.token_url,
            RequestOptions(
                method="POST",
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                },
            ),
        )

        if not response.is_success:
            raise AuthenticationError(f"Token error: {response.text}")

        try:
            payload = response.json()
            token = payload["access_token"]
            expires_in = float(payload.get("expires_in", 0))
        except (ValueError, KeyError, TypeError) as e:
            raise AuthenticationError(f"Malformed token response: {e}") from e

        self._token = token
        self._expires_at = self._clock() + expires_in - self.refresh_margin
        logger.info(f"Access token refreshed, valid for {expires_in:.0f}s")
        return token
