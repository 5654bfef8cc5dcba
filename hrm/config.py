# hrm/config.py
from pydantic_settings import BaseSettings
from typing import Literal, Optional
from pydantic import Field

class Settings(BaseSettings):
    SECRET_KEY: str = Field("change-me-in-production")
    ALGORITHM: str = Field("HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(30)

    DATABASE_URL: str = Field("sqlite+aiosqlite:///./hrm.db")
    SQLALCHEMY_DATABASE_URL: Optional[str] = None
    SQL_ECHO: bool = False

    # Civil timezone that defines week and month boundaries
    HRM_TIMEZONE: str = Field("Asia/Dhaka")

    # Shared secret for the scheduled-trigger endpoints (X-CRON-SECRET header)
    HRM_CRON_SECRET: Optional[str] = None

    # "exclude": weeks without a qualifying result are left out of the monthly mean
    # "zero": they count as 0 against the expected number of weeks
    EMPTY_WEEK_POLICY: Literal["exclude", "zero"] = "exclude"

    DEFAULT_SCALE_MAX: int = Field(10)

    LOG_LEVEL: str = Field("INFO")

    model_config = {
        "env_file": ".env",
        "extra": "allow",
    }

    @property
    def effective_database_url(self) -> str:
        db_url = self.SQLALCHEMY_DATABASE_URL or self.DATABASE_URL
        # Ensure asyncpg is used
        if db_url.startswith("postgresql://"):
            db_url = db_url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return db_url

settings = Settings()
