"""
Application configuration.
Values are read from environment variables, falling back to a local .env file
so development works without exporting anything.
"""
import logging
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    APP_ENV: str = "development"
    DATABASE_URL: str = "sqlite+aiosqlite:///./leads.db"
    LOG_LEVEL: str = "INFO"

    # Identity provider (bearer tokens are HS256 JWTs signed with this secret)
    JWT_SECRET_KEY: str = ""
    JWT_AUDIENCE: str = "authenticated"

    # SendGrid Email
    SENDGRID_API_KEY: str = ""
    SENDGRID_FROM_EMAIL: str = "leads@metrowesthome.ai"
    SENDGRID_FROM_NAME: str = "MetroWest Home AI"

    # Links placed in contractor emails
    DASHBOARD_URL: str = "https://metrowesthome.ai"

    # Lead scoring
    SCORE_RECALC_BATCH_SIZE: int = 10

    class Config:
        env_file = ".env"

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() == "production"


settings = Settings()

if not settings.JWT_SECRET_KEY:
    logger.warning(
        "JWT_SECRET_KEY is not set; every authenticated request will be rejected."
    )
