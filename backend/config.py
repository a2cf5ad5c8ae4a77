"""Application configuration using pydantic-settings."""

from decimal import Decimal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    DATABASE_URL: str = "sqlite:///./quotefolio.db"

    # Quote sources
    QUOTE_HTTP_TIMEOUT_SECONDS: float = 10.0
    QUOTE_USER_AGENT: str = DEFAULT_USER_AGENT

    # Refresh orchestration
    REFRESH_PACING_SECONDS: float = 0.5
    DEFAULT_FX_RATE: Decimal = Decimal("150")
    AUTO_REFRESH_ENABLED: bool = True
    AUTO_REFRESH_INTERVAL_MINUTES: int = 10

    # Rebalancing
    REBALANCE_TARGET_DOMESTIC_PCT: int = 50
    REBALANCE_THRESHOLD: Decimal = Decimal("10000")

    # CORS origins for the presentation layer
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # App settings
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize LOG_LEVEL to an uppercase Python logging level."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {valid}, got {v!r}")
        return v.upper()

    @field_validator("REBALANCE_TARGET_DOMESTIC_PCT")
    @classmethod
    def validate_target_pct(cls, v: int) -> int:
        """Target ratio is a whole percentage between 0 and 100."""
        if not 0 <= v <= 100:
            raise ValueError("REBALANCE_TARGET_DOMESTIC_PCT must be between 0 and 100")
        return v

    @field_validator("AUTO_REFRESH_INTERVAL_MINUTES")
    @classmethod
    def validate_refresh_interval(cls, v: int) -> int:
        """Auto refresh runs at most once per minute."""
        if v < 1:
            raise ValueError("AUTO_REFRESH_INTERVAL_MINUTES must be at least 1")
        return v


settings = Settings()
