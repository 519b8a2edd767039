# kartly/core/config.py
from typing import List, Optional, Union
from pathlib import Path
from pydantic_settings import BaseSettings
from pydantic import validator, ConfigDict

# Locate the .env file relative to the project root
BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_FILE = BASE_DIR / ".env"


class Settings(BaseSettings):
    model_config = ConfigDict(env_file=str(ENV_FILE), extra="ignore")

    # Application
    PROJECT_NAME: str = "Kartly"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Security
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    CHANNEL_TOKEN_EXPIRE_MINUTES: int = 60 * 6
    PASSWORD_RESET_EXPIRE_MINUTES: int = 15
    ADMIN_SECRET: Optional[str] = None

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10

    # Celery
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/1"

    # CORS
    # Accepts a JSON list or a comma-separated string
    BACKEND_CORS_ORIGINS: Union[List[str], str] = []

    @validator("BACKEND_CORS_ORIGINS", pre=True)
    def assemble_cors_origins(cls, v):
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        return v

    # Razorpay
    RAZORPAY_KEY_ID: Optional[str] = None
    RAZORPAY_KEY_SECRET: Optional[str] = None
    RAZORPAY_WEBHOOK_SECRET: str
    RAZORPAY_BASE_URL: str = "https://api.razorpay.com"
    GATEWAY_TIMEOUT_SECONDS: float = 15.0
    CURRENCY: str = "INR"

    # Orders
    BUSINESS_TIMEZONE: str = "UTC"
    ABANDONED_ORDER_MINUTES: int = 60
    STRICT_ORDER_TRANSITIONS: bool = True

    # Email
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    FROM_EMAIL: str = "Kartly Support <support@kartly.in>"

    # URL
    FRONTEND_URL: str = "http://localhost:5173"


settings = Settings()
