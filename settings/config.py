from functools import lru_cache
from typing import List, Optional
from urllib.parse import quote_plus
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application configuration loaded from environment variables.
    Uses Pydantic's BaseSettings for robust env parsing and validation.
    """

    # App
    APP_NAME: str = "Purchase Requests API"
    ENVIRONMENT: str = "development"  # development | staging | production
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    API_PREFIX: str = "/api/v1"

    # Database (support single URL or split parts)
    DATABASE_URL: Optional[str] = None
    DB_SCHEME: str = "postgresql+psycopg"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_NAME: str = "purchase_requests"
    DB_ECHO: bool = False

    # JWT / Auth
    JWT_SECRET_KEY: str = "change-this-secret-in-env"  # MUST be overridden in production
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 8
    REFRESH_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days for refresh tokens
    JWT_ISSUER: str = "purchase-requests"
    JWT_AUDIENCE: str = "purchase-requests-users"
    BCRYPT_ROUNDS: int = 12

    # CORS
    # Comma-separated origins, e.g. "http://localhost:5173,https://compras.example.com"
    ALLOWED_ORIGINS: str = "http://localhost:5173"

    # Security middleware toggles
    ENABLE_RATE_LIMITER: bool = True
    RATE_LIMIT_REQUESTS: int = 100  # requests
    RATE_LIMIT_WINDOW_SECONDS: int = 60  # per this many seconds
    RATE_LIMIT_STORAGE_URI: Optional[str] = None  # e.g., "redis://localhost:6379"

    # Bootstrap admin (development convenience; override in env for production)
    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_PASSWORD: str = "Admin@12345"
    ADMIN_NAME: str = "Administrator"
    ADMIN_SECTOR_NAME: str = "Purchasing"
    SEED_ADMIN: bool = True

    # Storage: S3 when a bucket is configured, local directory otherwise
    AWS_S3_BUCKET: Optional[str] = None
    AWS_REGION: Optional[str] = None
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    UPLOAD_DIR: str = "uploads"

    # Server-sent notifications
    SSE_HEARTBEAT_SECONDS: int = 30
    SSE_QUEUE_SIZE: int = 100

    # Pydantic v2 settings configuration
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @property
    def allowed_origins_list(self) -> List[str]:
        """
        Parses comma-separated origins into a list. Trims spaces, omits empties.
        """
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    def build_database_url(self) -> str:
        """
        Compose a SQLAlchemy URL from individual DB_* parts when DATABASE_URL is not provided.
        """
        if self.DATABASE_URL:
            return str(self.DATABASE_URL)
        return f"{self.DB_SCHEME}://{self.DB_USER}:{quote_plus(self.DB_PASSWORD)}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    @field_validator("DEBUG", mode="before")
    def _normalize_debug(cls, v):
        # Accept "1", "true", "True", etc.
        if isinstance(v, str):
            return v.lower() in ("1", "true", "yes", "on")
        return bool(v)


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance to avoid re-parsing env on each import.
    """
    return Settings()
