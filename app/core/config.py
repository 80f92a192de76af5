from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from app.core.enums import Environment, LogLevel

BASE_DIR = Path(__file__).resolve().parent.parent.parent

MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )
    DATABASE_URL: str | None = "sqlite+aiosqlite:///workspace/database.db"
    ENVIRONMENT: Environment = Environment.DEVELOPMENT
    LOG_LEVEL: LogLevel = LogLevel.INFO

    JWT_SECRET: str | None = None
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_MINUTES: int = 60 * 24
    ENCRYPTION_KEY: str | None = None

    SMTP_HOST: str | None = None
    SMTP_PORT: int | None = None
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_FROM: str | None = None

    RATE_LIMIT_WINDOW_SECONDS: int = 60
    RATE_LIMIT_MAX_REQUESTS: int = 100
    UPSTREAM_TIMEOUT_SECONDS: float = 120.0
    PASSWORD_RESET_TTL_SECONDS: int = 3600
    CACHE_MAX_SIZE: int = 1000
    CACHE_DEFAULT_TTL_SECONDS: int = 300

    @field_validator("DATABASE_URL")
    def make_sqlite_path_absolute(cls, v: str | None) -> str | None: # noqa
        prefix = "sqlite+aiosqlite:///"
        if v and v.startswith(prefix) and ":memory:" not in v:
            path = v.removeprefix(prefix)
            if not Path(path).is_absolute():
                return f"{prefix}{BASE_DIR / path}"
        return v

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == Environment.DEVELOPMENT

    def validate_runtime(self) -> list[str]:
        """
        Returns the configuration problems that make the service unsafe to run.
        An empty list means the configuration is complete.
        """
        problems = []
        if not self.DATABASE_URL:
            problems.append("DATABASE_URL is required.")
        if not self.JWT_SECRET:
            problems.append("JWT_SECRET is required.")
        elif len(self.JWT_SECRET) < MIN_SECRET_LENGTH:
            problems.append(f"JWT_SECRET must be at least {MIN_SECRET_LENGTH} characters.")
        if self.ENCRYPTION_KEY and len(self.ENCRYPTION_KEY) < MIN_SECRET_LENGTH:
            problems.append(f"ENCRYPTION_KEY must be at least {MIN_SECRET_LENGTH} characters.")
        return problems


settings = Settings()
