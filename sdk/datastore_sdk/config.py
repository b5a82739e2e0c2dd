"""
Configuration for the data store SDK.

Uses pydantic-settings for environment variable loading. Every setting
can be overridden with a DATASTORE_ prefixed variable, e.g.
DATASTORE_TIMEOUT_MS=5000.
"""

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_HOST = "https://api-production.creao.ai"
DEFAULT_TIMEOUT_MS = 30000


class ClientSettings(BaseSettings):
    """Client configuration loaded from environment."""

    # Data store connection
    host: str = Field(default=DEFAULT_HOST, description="Base URL of the data store API")
    timeout_ms: int = Field(
        default=DEFAULT_TIMEOUT_MS, gt=0, description="Per-request timeout in milliseconds"
    )

    # Logging
    log_level: str = Field(default="INFO", description="DEBUG, INFO, WARNING or ERROR")
    log_format: str = Field(default="text", description="Log format: text or json")

    model_config = {"env_prefix": "DATASTORE_"}
