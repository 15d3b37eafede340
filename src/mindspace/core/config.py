"""Client configuration using pydantic-settings."""
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_state_dir() -> Path:
    return Path.home() / ".config" / "mindspace"


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # REST backend
    api_url: str = Field(
        default="http://localhost:5000/api",
        validation_alias="MINDSPACE_API_URL",
    )
    api_timeout: float = Field(default=30.0, validation_alias="MINDSPACE_API_TIMEOUT")

    # Sent as X-Request-Source so the backend can tell clients apart
    request_source: str = Field(
        default="mindspace-client",
        validation_alias="MINDSPACE_REQUEST_SOURCE",
    )

    # Local persistence for the session and theme preference
    state_dir: Path = Field(
        default_factory=_default_state_dir,
        validation_alias="MINDSPACE_STATE_DIR",
    )

    # Seconds a status message stays visible
    notification_ttl: float = Field(
        default=3.0,
        validation_alias="MINDSPACE_NOTIFICATION_TTL",
    )

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so joined paths don't double up slashes."""
        return v.rstrip("/")

    @field_validator("api_timeout", "notification_ttl")
    @classmethod
    def require_positive(cls, v: float) -> float:
        """Reject zero or negative intervals."""
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @field_validator("state_dir")
    @classmethod
    def expand_state_dir(cls, v: Path) -> Path:
        """Expand ~ in the state directory."""
        return Path(v).expanduser()

    @property
    def session_path(self) -> Path:
        """File holding the persisted session."""
        return self.state_dir / "session.json"

    @property
    def preferences_path(self) -> Path:
        """File holding UI preferences (theme)."""
        return self.state_dir / "preferences.json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
