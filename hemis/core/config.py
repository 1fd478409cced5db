"""
Application configuration using Pydantic Settings
"""
import os
import socket
from pathlib import Path
from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


def _default_server_id() -> str:
    return f"{socket.gethostname()}-{os.getpid()}"


class Settings(BaseSettings):
    """Application settings"""

    # App
    APP_NAME: str = "HEMIS i18n"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    # Database
    DATABASE_URL: str = Field(..., env="DATABASE_URL")

    # Redis
    REDIS_URL: str = Field(default="redis://localhost:6379", env="REDIS_URL")

    # Security
    SECRET_KEY: str = Field(..., env="SECRET_KEY")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    ADMIN_USERNAME: str = Field(default="admin", env="ADMIN_USERNAME")
    ADMIN_PASSWORD: str = Field(default="admin", env="ADMIN_PASSWORD")
    ADMIN_PASSWORD_HASH: Optional[str] = Field(default=None, env="ADMIN_PASSWORD_HASH")

    # Instance identity (pod name in k8s)
    SERVER_ID: str = Field(default_factory=_default_server_id)
    PORT: int = Field(default=8000, env="PORT")

    # i18n
    I18N_SUPPORTED_LANGUAGES: List[str] = ["uz-UZ", "oz-UZ", "ru-RU", "en-US"]
    I18N_DEFAULT_LOCALE: str = "uz-UZ"
    I18N_CACHE_TTL_SECONDS: int = 1800  # safety net, versioning does the real invalidation
    I18N_LOCAL_CACHE_TTL_SECONDS: int = 1800
    I18N_LEADER_LOCK_TTL_SECONDS: int = 30
    I18N_FOLLOWER_POLL_INTERVAL_SECONDS: float = 0.2
    I18N_FOLLOWER_MAX_ATTEMPTS: int = 25
    I18N_RESOURCE_DIR: str = str(Path(__file__).resolve().parent.parent / "resources" / "i18n")

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
