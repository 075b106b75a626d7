"""Client configuration loaded from environment variables.

Settings use the ENROLLMENT_ prefix, e.g. ENROLLMENT_API_BASE_URL.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class ClientConfig(BaseSettings):
    """Enrollment client configuration loaded from environment variables.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # Enrollment API
    api_base_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of the activity enrollment API",
    )
    username: str = Field(
        default="",
        description="Username used by the console driver to log in",
    )
    password: str = Field(
        default="",
        description="Password used by the console driver to log in",
    )

    # Banner
    message_hide_delay: float = Field(
        default=5.0,
        ge=0,
        description="Seconds before a shown message is hidden again",
    )

    # Reference behavior: independent hide timers and unguarded roster refreshes
    legacy_races: bool = Field(
        default=False,
        description="Keep stale hide timers and last-response-wins roster refreshes",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "ENROLLMENT_",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton pattern
_config: ClientConfig | None = None


def get_config() -> ClientConfig:
    """Get the client configuration singleton.

    Returns:
        ClientConfig: Client configuration instance
    """
    global _config
    if _config is None:
        _config = ClientConfig()
    return _config


def reset_config() -> None:
    """Drop the cached singleton so the next get_config() re-reads the environment."""
    global _config
    _config = None
