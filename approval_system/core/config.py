# approval_system/core/config.py
import os
from decimal import Decimal
from pydantic_settings import BaseSettings
from pydantic import validator
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from .env"""

    # === Database ===
    DATABASE_URL: str
    DATABASE_ECHO: bool = False

    @validator("DATABASE_URL")
    def validate_database_url(cls, v):
        """Ensure database URL is safe for current environment"""
        env = os.getenv("ENVIRONMENT", "development").lower()
        if env == "production" and "localhost" in v:
            raise ValueError("Production environment cannot use localhost database!")
        return v

    # === JWT ===
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 120
    REFRESH_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # === CORS ===
    ALLOWED_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]
    ALLOWED_METHODS: List[str] = ["*"]
    ALLOWED_HEADERS: List[str] = ["*"]

    # === System ===
    APP_NAME: str = "Leave & Reimbursement Approval System"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # === Security ===
    BCRYPT_ROUNDS: int = 12
    MAX_FAILED_LOGIN_ATTEMPTS: int = 5
    ACCOUNT_LOCK_MINUTES: int = 60
    LOGIN_RATE_LIMIT_ATTEMPTS: int = 20
    LOGIN_RATE_LIMIT_WINDOW_SECONDS: int = 300

    # === Seed ===
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = "Admin@123456"
    ADMIN_REAL_NAME: str = "系统管理员"
    ROOT_DEPT_NAME: str = "总公司"
    DEFAULT_POST_CODE: str = "EMPLOYEE"

    # === Business Rules ===
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 500
    APP_NO_PREFIX: str = "AP"
    LEAVE_ESCALATION_DAYS: Decimal = Decimal("3")
    REIMBURSE_ESCALATION_AMOUNT: Decimal = Decimal("5000")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Create a global settings instance
settings = Settings()
