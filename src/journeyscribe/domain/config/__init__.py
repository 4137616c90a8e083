"""Configuration models with Pydantic validation."""

from journeyscribe.domain.config.amadeus import AmadeusConfig
from journeyscribe.domain.config.app import AppConfig
from journeyscribe.domain.config.currency import CurrencyConfig
from journeyscribe.domain.config.http import HttpConfig
from journeyscribe.domain.config.places import PlacesConfig
from journeyscribe.domain.config.retry import RetryPolicy
from journeyscribe.domain.config.timezone import TimezoneConfig

__all__ = [
    "AppConfig",
    "RetryPolicy",
    "HttpConfig",
    "AmadeusConfig",
    "CurrencyConfig",
    "TimezoneConfig",
    "PlacesConfig",
]
