"""Amadeus API access"""

from journeyscribe.infrastructure.amadeus.client import AmadeusClient
from journeyscribe.infrastructure.amadeus.token_cache import AccessTokenCache

__all__ = ["AmadeusClient", "AccessTokenCache"]
