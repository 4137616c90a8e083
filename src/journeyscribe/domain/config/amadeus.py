"""Amadeus configuration model."""

from typing import Optional

from pydantic import BaseModel, Field


class AmadeusConfig(BaseModel):
    """Configuration for the Amadeus self-service APIs.

    Attributes:
        base_url: API host (test environment by default)
        api_key: OAuth client id (None = from AMADEUS_API_KEY env)
        api_secret: OAuth client secret (None = from AMADEUS_API_SECRET env)
        token_refresh_margin: Seconds before expiry at which a token is refreshed
    """

    base_url: str = "https://test.api.amadeus.com"
    api_key: Optional[str] = None
    api_secret: Optional[str] = None
    token_refresh_margin: float = Field(60.0, ge=0.0)
