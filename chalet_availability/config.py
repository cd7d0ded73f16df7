from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from functools import lru_cache
from typing import List, Optional


class Settings(BaseSettings):
    # Environment
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # ==============================================
    # Availability feed
    # ==============================================
    # Remote JSON feed with one entry per property (id, label, records)
    feed_url: str = Field(
        default="http://localhost:8080/data/site/availability/data.json",
        alias="FEED_URL"
    )

    # Local JSON file used instead of FEED_URL when set (offline / fixtures)
    feed_path: Optional[str] = Field(default=None, alias="FEED_PATH")

    # HTTP timeout for the feed request
    feed_timeout_seconds: float = Field(default=20, alias="FEED_TIMEOUT_SECONDS")

    # Fetch the feed once while the app starts
    sync_on_startup: bool = Field(default=True, alias="SYNC_ON_STARTUP")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")

    # CORS - Frontend URLs from environment (comma-separated)
    allowed_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173",
        alias="ALLOWED_ORIGINS"
    )

    @field_validator('feed_timeout_seconds')
    @classmethod
    def validate_feed_timeout(cls, v: float) -> float:
        """Timeout must be a positive number of seconds"""
        if v <= 0:
            raise ValueError("FEED_TIMEOUT_SECONDS must be greater than zero")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def cors_origins(self) -> List[str]:
        """
        Parse allowed origins from comma-separated string.
        Returns a list suitable for CORSMiddleware.
        """
        if not self.allowed_origins:
            return ["http://localhost:5173"]

        origins = []
        for origin in self.allowed_origins.split(","):
            origin = origin.strip().rstrip("/")
            if origin and origin not in origins:
                origins.append(origin)

        return origins if origins else ["http://localhost:5173"]

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Initialize settings on module load
settings = get_settings()
