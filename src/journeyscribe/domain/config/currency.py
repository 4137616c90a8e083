"""Currency conversion configuration model."""

from pydantic import BaseModel, Field


class CurrencyConfig(BaseModel):
    """Configuration for currency conversion.

    Attributes:
        base_url: Latest-rates endpoint, the source currency is appended as a path segment
        target_currency: ISO 4217 code prices are converted into
    """

    base_url: str = "https://hexarate.paikama.co/api/rates/latest"
    target_currency: str = Field("BDT", pattern=r"^[A-Z]{3}$")
