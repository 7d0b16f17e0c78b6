from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


ERROR_CODES_FILE = Path(__file__).resolve().parent / "errors.yaml"


class Settings(BaseSettings):
    PROJECT_NAME: str = "Lael Hospital API"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    DATABASE_URL: str = "sqlite+aiosqlite:///./lael_hospital.db"
    DATABASE_ECHO: bool = False
    AUTO_CREATE_TABLES: bool = False

    # Tokens
    SECRET_KEY: str = "change-me-in-production-use-strong-random-key"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    TOKEN_ISSUER: str = "lael-hospital"

    # Password hashing (argon2)
    PASSWORD_MIN_LENGTH: int = 8
    PASSWORD_HASH_TIME_COST: int = 3
    PASSWORD_HASH_MEMORY_COST: int = 65536

    # OTP
    OTP_LENGTH: int = 6
    OTP_EXPIRE_MINUTES: int = 5
    OTP_MAX_RETRIES: int = 0  # 0 disables the cap
    OTP_CLEANUP_INTERVAL_SECONDS: int = 900

    # Email
    EMAIL_ENABLED: bool = True
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_TIMEOUT_SECONDS: int = 10
    FROM_EMAIL: str = "noreply@laelhospital.com"
    FROM_NAME: str = "Lael Hospital"

    ERROR_CODES_PATH: str = str(ERROR_CODES_FILE)
    OPD_ID_PREFIX: str = "LAEL"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
