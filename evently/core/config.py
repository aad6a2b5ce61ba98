# evently/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Values come from the process environment (Docker Compose passes the
    # root .env through), so no env_file is configured here.
    model_config = SettingsConfigDict(extra="ignore")

    # The environment mode: 'local' or 'prod'
    ENV: str = "local"

    # --- Database URLs ---
    DATABASE_URL_PROD: str = "postgresql+psycopg2://evently:evently@db:5432/evently"
    DATABASE_URL_LOCAL: str = "sqlite:///./evently.db"

    # --- Auth ---
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60 * 24 * 7

    # --- HTTP ---
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]
    RATE_LIMIT_ENABLED: bool = True
    RSVP_RATE_LIMIT: str = "10/minute"

    # --- RSVP admission control ---
    COMPENSATION_MAX_ATTEMPTS: int = 3
    COMPENSATION_BACKOFF_SECONDS: float = 0.1
    SQLITE_BUSY_TIMEOUT_SECONDS: int = 30

    # --- Background jobs ---
    ENABLE_SCHEDULER: bool = False
    RECONCILIATION_INTERVAL_MINUTES: int = 15

    # --- Dynamic Properties ---
    # Returns the correct URL based on the ENV
    @property
    def DATABASE_URL(self) -> str:
        return (
            self.DATABASE_URL_LOCAL if self.ENV == "local" else self.DATABASE_URL_PROD
        )


# Create a single instance of the settings
settings = Settings()
