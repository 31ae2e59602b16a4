"""Application configuration via Pydantic Settings."""

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """Global application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # Database: either a full URL or the individual parts below
    DATABASE_URL: str = ""
    DB_HOST: str = "localhost"
    DB_PORT: str = "5432"
    DB_USER: str = "quotes_user"
    DB_PASSWORD: str = "quotes_password"
    DB_NAME: str = "quotes_db"
    DB_SSLMODE: str = "disable"

    # Connection pool
    DB_POOL_SIZE: int = 25
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_RECYCLE_SECONDS: int = 300

    # App
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    API_PORT: int = 8080

    # Frontend
    CORS_ORIGIN: str = "http://localhost:3000"
    STATIC_DIR: str = "./frontend/dist"

    @model_validator(mode="after")
    def fix_database_url(self) -> "Settings":
        """Build the URL from DB_* parts if needed; asyncpg needs postgresql+asyncpg://"""
        url = self.DATABASE_URL
        if not url:
            query = {}
            if self.DB_SSLMODE and self.DB_SSLMODE != "disable":
                query["ssl"] = self.DB_SSLMODE
            url = URL.create(
                drivername="postgresql+asyncpg",
                username=self.DB_USER,
                password=self.DB_PASSWORD,
                host=self.DB_HOST,
                port=int(self.DB_PORT),
                database=self.DB_NAME,
                query=query,
            ).render_as_string(hide_password=False)
        elif url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        elif url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql+asyncpg://", 1)
        self.DATABASE_URL = url
        return self

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


settings = Settings()
