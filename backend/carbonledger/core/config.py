from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
import os
from typing import List, Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # --- General App Settings ---
    PROJECT_NAME: str = "Carbon Ledger"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = Field("development", description="Environment: development | production")

    # --- Server Settings ---
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False

    # --- Database ---
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "carbon_ledger"
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    SQLALCHEMY_DATABASE_URI: Optional[str] = None

    @property
    def DATABASE_URL(self) -> str:
        if self.SQLALCHEMY_DATABASE_URI:
            return self.SQLALCHEMY_DATABASE_URI
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # --- Redis (dashboard rollup cache) ---
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_MAX_CONNECTIONS: int = int(os.getenv("REDIS_MAX_CONNECTIONS", "10"))
    CACHE_TTL_SECONDS: int = 300

    @property
    def REDIS_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/0"

    # --- JWT Auth ---
    JWT_SECRET_KEY: str = Field(..., description="Secret key for JWT tokens")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 1 day

    # --- Report generation ---
    REPORT_WORKER_CONCURRENCY: int = 4
    REPORT_GENERATION_TIMEOUT_SECONDS: float = 60.0
    REPORT_QUEUE_MAXSIZE: int = 1000
    REPORT_DEFAULT_FILE_SIZE: int = 1024000

    # --- CORS ---
    CORS_ORIGINS: List[str] = ["*"]

    # --- Logging ---
    LOG_DIR: str = os.getenv("LOG_DIR", "logs")
    LOG_TO_FILE: bool = True
    API_LOG_LEVEL: str = os.getenv("API_LOG_LEVEL", "INFO")
    AUTH_LOG_LEVEL: str = os.getenv("AUTH_LOG_LEVEL", "INFO")
    DB_LOG_LEVEL: str = os.getenv("DB_LOG_LEVEL", "INFO")
    REPORT_LOG_LEVEL: str = os.getenv("REPORT_LOG_LEVEL", "INFO")


@lru_cache()
def get_settings():
    return Settings()


settings = get_settings()
