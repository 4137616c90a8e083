"""Nearby places configuration model."""

from typing import Optional

from pydantic import BaseModel, Field


class PlacesConfig(BaseModel):
    """Configuration for Google Places nearby search.

    Attributes:
        base_url: nearbysearch JSON endpoint
        api_key: API key (None = from GOOGLE_MAPS_API_KEY env)
        radius: Search radius in meters
        default_type: Place type searched when none is given
    """

    base_url: str = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"
    api_key: Optional[str] = None
    radius: int = Field(2000, gt=0, le=50000)
    default_type: str = "restaurant"
