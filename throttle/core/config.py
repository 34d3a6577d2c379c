from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DUPLICATE_ENTRY_MODES = ("raise", "last_wins")


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    The throttling rules themselves are read through a policy provider,
    see throttle.providers.configuration for the environment-backed one.
    """

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    # What to do when two IP or client rules share an entry:
    # "raise" aborts assembly, "last_wins" keeps the later record
    policy_duplicate_entries: Literal["raise", "last_wins"] = "raise"

    @field_validator("policy_duplicate_entries", mode="before")
    @classmethod
    def normalize_duplicate_mode(cls, v: str) -> str:
        """Accept the mode in any case and with dashes ("LAST-WINS")."""
        if isinstance(v, str):
            v = v.strip().lower().replace("-", "_")
        if v not in DUPLICATE_ENTRY_MODES:
            raise ValueError(
                f"policy_duplicate_entries must be one of {DUPLICATE_ENTRY_MODES}"
            )
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format is a known formatter."""
        v = v.lower()
        if v not in ("text", "structured", "json"):
            raise ValueError("log_format must be text, structured or json")
        return v

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Global settings instance
settings = Settings()
