"""HTTP transport configuration model."""

from pydantic import BaseModel, Field


class HttpConfig(BaseModel):
    """Configuration for the shared HTTP client.

    Attributes:
        timeout: Per-attempt transport timeout in seconds
        user_agent: User-Agent header sent with every request
    """

    timeout: float = Field(30.0, gt=0.0)
    user_agent: str = "journeyscribe/0.1"
