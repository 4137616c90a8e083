"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from journeyscribe.domain.config.amadeus import AmadeusConfig
from journeyscribe.domain.config.currency import CurrencyConfig
from journeyscribe.domain.config.http import HttpConfig
from journeyscribe.domain.config.places import PlacesConfig
from journeyscribe.domain.config.retry import RetryPolicy
from journeyscribe.domain.config.timezone import TimezoneConfig


class AppConfig(BaseModel):
    """Main application configuration.

    This is the root configuration model that aggregates all configuration sections.
    Validation is performed at load time to fail fast on configuration errors.

    Attributes:
        retry: Retry policy shared by all upstream calls
        http: HTTP client configuration
        amadeus: Amadeus API configuration
        currency: Currency conversion configuration
        timezone: Timezone conversion configuration
        places: Nearby places search configuration
    """

    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    http: HttpConfig = Field(default_factory=HttpConfig)
    amadeus: AmadeusConfig = Field(default_factory=AmadeusConfig)
    currency: CurrencyConfig = Field(default_factory=CurrencyConfig)
    timezone: TimezoneConfig = Field(default_factory=TimezoneConfig)
    places: PlacesConfig = Field(default_factory=PlacesConfig)

    model_config = ConfigDict(
        validate_assignment=True,  # Validate on attribute assignment
        extra="forbid",  # Reject unknown fields
        json_schema_extra={
            "example": {
                "retry": {
                    "max_attempts": 5,
                    "initial_delay": 1.0,
                    "backoff_multiplier": 2.0,
                    "retryable_body_patterns": [
                        "Too many requests",
                        "network rate limit is exceeded",
                    ],
                    "retryable_status_codes": [429],
                },
                "http": {
                    "timeout": 30.0,
                },
                "amadeus": {
                    "base_url": "https://test.api.amadeus.com",
                    "api_key": None,
                    "api_secret": None,
                },
                "currency": {
                    "target_currency": "BDT",
                },
                "timezone": {
                    "api_key": None,
                },
                "places": {
                    "api_key": None,
                    "radius": 2000,
                },
            }
        },
    )
