import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "False") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class Settings:
    # Application settings
    app_name: str = os.getenv("APP_NAME", "Library Circulation")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = _env_flag("DEBUG")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # API settings
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_key: str = os.getenv("API_KEY", "super-secret-key")

    # Database settings
    database_file: str = os.getenv("LIBRARY_DB_FILE", "library.db")

    # Review lookup: "sqlite" reads the local reviews table, "http" calls a review API
    review_backend: str = os.getenv("REVIEW_BACKEND", "sqlite")
    review_api_url: str = os.getenv("REVIEW_API_URL", "http://localhost:8001")
    review_timeout: float = float(os.getenv("REVIEW_TIMEOUT", "10"))

    # Notifications: console output unless a webhook is configured
    notification_webhook_url: Optional[str] = os.getenv("NOTIFICATION_WEBHOOK_URL")
    notification_timeout: float = float(os.getenv("NOTIFICATION_TIMEOUT", "5"))


settings = Settings()
