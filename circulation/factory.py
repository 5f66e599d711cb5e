import logging
from typing import Optional

from circulation.config import Settings, settings as default_settings
from circulation.database import SQLiteDatabaseService
from circulation.library import Library
from circulation.services.notification_service import ConsoleNotificationService, WebhookNotificationService
from circulation.services.review_service import HttpReviewService, SQLiteReviewService

logger = logging.getLogger(__name__)


def build_notification_service(settings: Settings):
    if settings.notification_webhook_url:
        return WebhookNotificationService(settings.notification_webhook_url, settings.notification_timeout)
    return ConsoleNotificationService()


def build_review_service(settings: Settings):
    backend = settings.review_backend.lower()
    if backend == "http":
        return HttpReviewService(settings.review_api_url, settings.review_timeout)
    if backend == "sqlite":
        return SQLiteReviewService(settings.database_file)
    raise ValueError(f"Unknown review backend: {settings.review_backend!r}")


def build_library(settings: Optional[Settings] = None) -> Library:
    """Wire the configured collaborators into a Library."""
    settings = settings or default_settings
    notification_service = build_notification_service(settings)
    database_service = SQLiteDatabaseService(settings.database_file, notification_service)
    review_service = build_review_service(settings)
    logger.debug(
        "Library wired: db=%s reviews=%s notifications=%s",
        settings.database_file, settings.review_backend, type(notification_service).__name__,
    )
    return Library(database_service, review_service)
