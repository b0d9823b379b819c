from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    super_admin_email: Optional[str] = Field(None, alias="SUPER_ADMIN_EMAIL")
    super_admin_password: Optional[str] = Field(None, alias="SUPER_ADMIN_PASSWORD")

    # Notifications older than this are removed by the retention sweep
    notification_retention_days: int = Field(30, alias="NOTIFICATION_RETENTION_DAYS")
    # Newest-first feed size returned to a user
    notification_feed_limit: int = Field(50, alias="NOTIFICATION_FEED_LIMIT")
    fee_trend_months: int = Field(6, alias="FEE_TREND_MONTHS")
    upcoming_holiday_days: int = Field(7, alias="UPCOMING_HOLIDAY_DAYS")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_file: Optional[str] = Field(None, alias="LOG_FILE")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], alias="CORS_ORIGINS")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
