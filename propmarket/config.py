from __future__ import annotations
from decimal import Decimal
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # === Storage / DB ===
    DATABASE_URL: str = "sqlite+aiosqlite:///./propmarket.db"
    POSTGRES_DSN: Optional[str] = None
    SQL_ECHO: bool = False
    INIT_DB_ON_START: bool = False  # create_all on boot (dev only)

    # === Auth (tokens are issued elsewhere, we only verify) ===
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"

    # === Razorpay ===
    RAZORPAY_KEY_ID: Optional[str] = None
    RAZORPAY_KEY_SECRET: Optional[str] = None
    RAZORPAY_API_BASE: str = "https://api.razorpay.com/v1"
    RAZORPAY_TIMEOUT_SECONDS: float = 15.0
    PAYMENTS_REQUIRED: bool = Field(
        default=False,
        description="refuse to boot without gateway credentials",
    )
    BASE_CURRENCY: str = "INR"

    # === Business rules ===
    VISIT_FEE: Decimal = Decimal("300")
    EDIT_WINDOW_DAYS: int = 3

    # === Mail ===
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_TIMEOUT_SECONDS: float = 20.0
    SMTP_FROM: str = "no-reply@badabuilder.local"
    EMAIL_FROM_NAME: str = "Bada Builder"

    # === Outbox dispatcher ===
    NOTIFY_INTERVAL_SECONDS: int = 15
    NOTIFY_BATCH_SIZE: int = 20
    NOTIFY_MAX_ATTEMPTS: int = 5

    # === Media ===
    MEDIA_DIR: str = "./media"
    MEDIA_PUBLIC_BASE: str = "/media"
    STORAGE_BACKEND: str = "local"  # local | s3
    S3_ENDPOINT_URL: Optional[str] = None  # unset means AWS
    S3_ACCESS_KEY_ID: Optional[str] = None
    S3_SECRET_ACCESS_KEY: Optional[str] = None
    S3_BUCKET: Optional[str] = None
    S3_REGION: Optional[str] = None
    S3_PUBLIC_BASE_URL: Optional[str] = None

    # === Web ===
    WEBAPP_HOST: str = "0.0.0.0"
    WEBAPP_PORT: int = 8080

    # === Logs ===
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")
    log_sql: str = Field(default="WARNING", alias="LOG_SQL")

    @field_validator("BASE_CURRENCY", mode="before")
    @classmethod
    def _v_currency(cls, v):
        return str(v or "INR").strip().upper()

    @field_validator("RAZORPAY_API_BASE", "MEDIA_PUBLIC_BASE", "S3_PUBLIC_BASE_URL", mode="before")
    @classmethod
    def _v_strip_slash(cls, v):
        return str(v).rstrip("/") if v else v

    @field_validator(
        "RAZORPAY_KEY_ID", "RAZORPAY_KEY_SECRET", "SMTP_HOST",
        "S3_ENDPOINT_URL", "S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY", "S3_BUCKET", "S3_REGION",
        mode="before",
    )
    @classmethod
    def _v_blank_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def model_post_init(self, __context) -> None:
        # POSTGRES_DSN wins over DATABASE_URL when both are set
        if self.POSTGRES_DSN:
            self.DATABASE_URL = self.POSTGRES_DSN

    @property
    def gateway_configured(self) -> bool:
        return bool(self.RAZORPAY_KEY_ID and self.RAZORPAY_KEY_SECRET)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


settings = Settings()
