"""Capability interfaces the Library depends on.

Any object providing these methods can be injected into ``Library``; the
concrete SQLite/HTTP/console implementations in this package are one
choice, test doubles are another.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from circulation.book import Book
    from circulation.user import User


@runtime_checkable
class DatabaseService(Protocol):
    """Durable storage of books, users and loan events.

    Every method may raise PersistenceError (or any backend failure); the
    library lets those propagate untouched.
    """

    def get_book_by_isbn(self, isbn: str) -> Optional["Book"]: ...

    def add_book(self, isbn: str, book: "Book") -> None: ...

    def get_user_by_id(self, user_id: str) -> Optional["User"]: ...

    def register_user(self, user_id: str, user: "User") -> None: ...

    def borrow_book(self, isbn: str, user_id: str) -> None: ...

    def return_book(self, isbn: str) -> None: ...


@runtime_checkable
class ReviewService(Protocol):
    """Scoped review lookup. ``close`` must be called after every lookup."""

    def get_reviews_for_book(self, isbn: str) -> Optional[List[str]]: ...

    def close(self) -> None: ...


@runtime_checkable
class NotificationService(Protocol):
    """Delivers a message to one user; raises NotificationError on failure."""

    def notify_user(self, user_id: str, message: str) -> None: ...
