"""Library Circulation - Core Package

This package contains:
- Circulation rules and orchestration (library.py)
- Entities (book.py, user.py)
- Input validation (validators.py)
- Error types (errors.py)
- SQLite persistence (database.py)
- External collaborators (services/)
- CLI (main.py) and HTTP API (api.py)
"""

from circulation.book import Book
from circulation.errors import (
    BookAlreadyBorrowedError,
    BookNotBorrowedError,
    BookNotFoundError,
    ExternalServiceError,
    InvalidArgumentError,
    LibraryError,
    NoReviewsFoundError,
    NotificationError,
    PersistenceError,
    ReviewError,
    ReviewServiceUnavailableError,
    UserNotRegisteredError,
)
from circulation.library import MAX_NOTIFICATION_ATTEMPTS, Library
from circulation.user import User

__all__ = [
    "Book",
    "User",
    "Library",
    "MAX_NOTIFICATION_ATTEMPTS",
    "LibraryError",
    "InvalidArgumentError",
    "BookNotFoundError",
    "BookAlreadyBorrowedError",
    "BookNotBorrowedError",
    "UserNotRegisteredError",
    "NoReviewsFoundError",
    "ReviewServiceUnavailableError",
    "NotificationError",
    "ExternalServiceError",
    "PersistenceError",
    "ReviewError",
]
