"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    DATABASE_URL: str = "sqlite:///./tokens.db"
    CORS_ORIGINS: str = "http://localhost:3000"

    # Append-only audit trail, one JSON object per line
    AUDIT_LOG_PATH: str = "logs/calendar-audit.jsonl"
    AUDIT_PAGE_DEFAULT: int = 50
    AUDIT_PAGE_MAX: int = 200

    SESSION_LEDGER_MAX: int = 50

    # Google Calendar (OAuth client used to refresh stored tokens)
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_TOKEN_URI: str = "https://oauth2.googleapis.com/token"
    CALENDAR_ID: str = "primary"
    CALENDAR_TIMEOUT_SECONDS: float = 10.0

    class Config:
        env_file = ".env"

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() == "production"


settings = Settings()
