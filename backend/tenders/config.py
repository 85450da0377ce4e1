"""Application configuration."""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings."""

    # App
    APP_NAME: str = "Tenders & Bids"
    ENV: str = "development"
    LOG_LEVEL: str = "DEBUG"
    SERVER_ADDRESS: str = "0.0.0.0:8080"
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Database
    DATABASE_URL: str = "postgresql://test:test@db:5432/test"
    # Deployment-provided DSN; wins over DATABASE_URL when set.
    POSTGRES_CONN: str | None = None
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10
    # Create missing tables from ORM metadata on startup.
    AUTO_CREATE_SCHEMA: bool = True

    # Workflow
    # Distinct approvals that finalize a bid (capped by the employee count of the tender's organization).
    APPROVAL_QUORUM: int = 3

    # Pagination
    DEFAULT_PAGE_LIMIT: int = 5
    MAX_PAGE_LIMIT: int = 50

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    @property
    def database_url(self) -> str:
        """Effective SQLAlchemy URL; the legacy ``postgres://`` scheme is normalized."""
        url = self.POSTGRES_CONN or self.DATABASE_URL
        if url.startswith("postgres://"):
            url = "postgresql://" + url[len("postgres://"):]
        return url

    @property
    def server_host(self) -> str:
        return self.SERVER_ADDRESS.rsplit(":", 1)[0]

    @property
    def server_port(self) -> int:
        return int(self.SERVER_ADDRESS.rsplit(":", 1)[1])


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
