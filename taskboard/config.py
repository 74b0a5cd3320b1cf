"""Environment-driven settings for the taskboard service."""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Read once at import from the environment and an optional .env file."""

    # Database
    DATABASE_URL: Optional[str] = None

    # JWT
    JWT_SECRET_KEY: str = Field(default="dev-secret-key-change-me")
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440

    # Application
    APP_NAME: str = "Taskboard"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Workflow
    TRANSITION_MAX_RETRIES: int = Field(default=3, ge=1)
    DEPENDENCY_CYCLE_CHECK: bool = False
    DEPENDENCY_CYCLE_MAX_DEPTH: int = Field(default=50, ge=1)

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    @property
    def cors_origins_list(self) -> List[str]:
        """CORS_ORIGINS split on commas, blanks dropped."""
        if not self.CORS_ORIGINS:
            return []

        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


settings = Settings()
