"""Configuration management using Pydantic Settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PIVOTAL_API_BASE = "https://www.pivotaltracker.com/services/v5/"

# Page size used when a paginated call does not specify one
DEFAULT_PAGE_LIMIT = 128


class PivotalSettings(BaseSettings):
    """Pivotal Tracker client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PIVOTAL_",
        extra="ignore",
    )

    api_token: str = Field(default="")
    base_url: str = Field(default=PIVOTAL_API_BASE)
    # Seconds; None disables the timeout
    timeout: float | None = Field(default=None, gt=0)
    page_size: int = Field(default=DEFAULT_PAGE_LIMIT, ge=1)
    status_errors: bool = Field(default=False)

    @property
    def has_token(self) -> bool:
        """Whether an API token is configured."""
        return bool(self.api_token)


_settings: PivotalSettings | None = None


def get_settings() -> PivotalSettings:
    """Get or create the global settings singleton."""
    global _settings
    if _settings is None:
        _settings = PivotalSettings()
    return _settings


def reset_settings() -> None:
    """Reset the global settings (for testing)."""
    global _settings
    _settings = None
