from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Any
import json


def parse_cors_origins(v: Any) -> List[str]:
    """Parse CORS origins from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [origin.strip() for origin in v.split(',') if origin.strip()]
    return []


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "ProjectHub"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 5000

    # ==========================================
    # Database
    # ==========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./projecthub.db"
    DB_ECHO: bool = False

    # ==========================================
    # Authentication
    # ==========================================
    JWT_SECRET_KEY: str = "CHANGE_ME"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    BCRYPT_ROUNDS: int = 12

    # ==========================================
    # HTTP
    # ==========================================
    CORS_ORIGINS_STR: str = "http://localhost:3000,http://localhost:5173"
    MAX_REQUEST_SIZE_MB: int = 1
    RATE_LIMIT_ENABLED: bool = True
    REGISTER_RATE_LIMIT: str = "3/minute"
    SIGNIN_RATE_LIMIT: str = "5/minute"

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Allowed CORS origins as a list"""
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    def is_dev_mode(self) -> bool:
        """Check if running in development mode"""
        return self.ENVIRONMENT == "development" or self.DEBUG


# Create settings instance
settings = Settings()
