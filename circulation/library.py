import logging
from contextlib import closing
from typing import List, Optional

from circulation.book import Book
from circulation.errors import (
    BookAlreadyBorrowedError,
    BookNotBorrowedError,
    BookNotFoundError,
    InvalidArgumentError,
    LibraryError,
    NoReviewsFoundError,
    NotificationError,
    ReviewError,
    ReviewServiceUnavailableError,
    UserNotRegisteredError,
)
from circulation.services.interfaces import DatabaseService, ReviewService
from circulation.user import User
from circulation.validators import ISBNValidator, TextValidator, UserIdValidator

logger = logging.getLogger(__name__)

# Total delivery attempts for a review notification, including the first one.
MAX_NOTIFICATION_ATTEMPTS = 5


class Library:
    """Validates circulation requests and coordinates the collaborators.

    The library keeps no state of its own: books and users live in the
    database service, reviews come from the review service, and each user
    carries the notification service used to reach them.
    """

    def __init__(self, database_service: DatabaseService, review_service: ReviewService) -> None:
        self.database_service = database_service
        self.review_service = review_service

    # ------------------------- Registration ------------------------- #
    def register_user(self, user: Optional[User]) -> None:
        """Register a new user. Duplicate ids are rejected."""
        if user is None:
            raise InvalidArgumentError("User cannot be None.")
        self._validate_user_id(user.user_id)
        if not TextValidator.validate_name(user.name):
            raise InvalidArgumentError("User name cannot be empty.")
        if user.notification_service is None:
            raise InvalidArgumentError("User must have a notification service.")

        if self.database_service.get_user_by_id(user.user_id) is not None:
            raise InvalidArgumentError(f"User with id {user.user_id} already exists.")

        self.database_service.register_user(user.user_id, user)
        logger.info("Registered user %s", user.user_id)

    def add_book(self, book: Optional[Book]) -> None:
        """Add a new, available book. Duplicate ISBNs are rejected."""
        if book is None:
            raise InvalidArgumentError("Book cannot be None.")
        if book.is_borrowed():
            raise InvalidArgumentError("A newly added book cannot be borrowed.")
        self._validate_isbn(book.isbn)
        if not TextValidator.validate_title(book.title):
            raise InvalidArgumentError("Book title cannot be empty.")
        if not TextValidator.validate_author(book.author):
            raise InvalidArgumentError(f"Invalid author name: {book.author!r}")

        if self.database_service.get_book_by_isbn(book.isbn) is not None:
            raise InvalidArgumentError(f"Book with ISBN {book.isbn} already exists.")

        self.database_service.add_book(book.isbn, book)
        logger.info("Added book %s (%s)", book.isbn, book.title)

    # ------------------------- Circulation ------------------------- #
    def borrow_book(self, isbn: Optional[str], user_id: Optional[str]) -> None:
        self._validate_isbn(isbn)
        self._validate_user_id(user_id)

        book = self._require_book(isbn)
        self._require_user(user_id)
        if book.is_borrowed():
            raise BookAlreadyBorrowedError(f"Book with ISBN {isbn} is already borrowed.")

        book.borrow()
        self.database_service.borrow_book(isbn, user_id)
        logger.info("Book %s borrowed by user %s", isbn, user_id)

    def return_book(self, isbn: Optional[str]) -> None:
        self._validate_isbn(isbn)

        book = self._require_book(isbn)
        if not book.is_borrowed():
            raise BookNotBorrowedError(f"Book with ISBN {isbn} is not borrowed.")

        book.return_book()
        self.database_service.return_book(isbn)
        logger.info("Book %s returned", isbn)

    # ------------------------- Reviews & notifications ------------------------- #
    def notify_user_with_book_reviews(self, isbn: Optional[str], user_id: Optional[str]) -> None:
        """Send the user the reviews of a book.

        The review service is closed exactly once on every path, before any
        error derived from the lookup is raised. Delivery is attempted up to
        MAX_NOTIFICATION_ATTEMPTS times; the last NotificationError is
        re-raised when every attempt fails.
        """
        self._validate_isbn(isbn)
        self._validate_user_id(user_id)

        book = self._require_book(isbn)
        user = self._require_user(user_id)

        try:
            with closing(self.review_service):
                reviews = self.review_service.get_reviews_for_book(isbn)
        except ReviewError as exc:
            raise ReviewServiceUnavailableError(f"Review service unavailable for ISBN {isbn}.") from exc

        if not reviews:
            raise NoReviewsFoundError(f"No reviews found for ISBN {isbn}.")

        message = self.compose_review_message(book, reviews)
        self._deliver(user, message)

    def get_book_by_isbn(self, isbn: Optional[str], user_id: Optional[str]) -> Book:
        """Fetch an available book and, best effort, send the user its reviews."""
        self._validate_isbn(isbn)
        self._validate_user_id(user_id)

        book = self._require_book(isbn)
        if book.is_borrowed():
            raise BookAlreadyBorrowedError(f"Book with ISBN {isbn} is already borrowed.")

        try:
            self.notify_user_with_book_reviews(isbn, user_id)
        except LibraryError as exc:
            logger.warning("Review notification for %s to user %s skipped: %s", isbn, user_id, exc)
        return book

    @staticmethod
    def compose_review_message(book: Book, reviews: List[str]) -> str:
        lines = [f"Reviews for '{book.title}':"]
        lines.extend(reviews)
        return "\n".join(lines)

    # ------------------------- Helpers ------------------------- #
    def _deliver(self, user: User, message: str) -> None:
        last_error: Optional[NotificationError] = None
        for attempt in range(1, MAX_NOTIFICATION_ATTEMPTS + 1):
            try:
                user.send_notification(message)
            except NotificationError as exc:
                last_error = exc
                logger.warning(
                    "Notification attempt %d/%d to user %s failed: %s",
                    attempt, MAX_NOTIFICATION_ATTEMPTS, user.user_id, exc,
                )
                continue
            logger.info("Notified user %s after %d attempt(s)", user.user_id, attempt)
            return

        logger.error("Giving up notifying user %s after %d attempts", user.user_id, MAX_NOTIFICATION_ATTEMPTS)
        raise last_error

    def _require_book(self, isbn: str) -> Book:
        book = self.database_service.get_book_by_isbn(isbn)
        if book is None:
            raise BookNotFoundError(f"Book with ISBN {isbn} not found.")
        return book

    def _require_user(self, user_id: str) -> User:
        user = self.database_service.get_user_by_id(user_id)
        if user is None:
            raise UserNotRegisteredError(f"User with id {user_id} is not registered.")
        return user

    @staticmethod
    def _validate_isbn(isbn: Optional[str]) -> None:
        if not ISBNValidator.is_valid_isbn(isbn):
            raise InvalidArgumentError(f"Invalid ISBN: {isbn!r}")

    @staticmethod
    def _validate_user_id(user_id: Optional[str]) -> None:
        if not UserIdValidator.is_valid_user_id(user_id):
            raise InvalidArgumentError(f"Invalid user id: {user_id!r}")
