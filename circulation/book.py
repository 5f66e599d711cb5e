from __future__ import annotations

from circulation.errors import BookAlreadyBorrowedError, BookNotBorrowedError


class Book:
    """Represents a single book in the library catalog."""

    def __init__(self, isbn: str | None, title: str | None, author: str | None,
                 borrowed: bool = False, created_at: str | None = None) -> None:
        self.isbn = isbn
        self.title = title
        self.author = author
        self.created_at = created_at
        self._borrowed = bool(borrowed)

    @property
    def borrowed(self) -> bool:
        return self._borrowed

    def is_borrowed(self) -> bool:
        return self._borrowed

    def borrow(self) -> None:
        if self._borrowed:
            raise BookAlreadyBorrowedError(f"Book with ISBN {self.isbn} is already borrowed.")
        self._borrowed = True

    def return_book(self) -> None:
        if not self._borrowed:
            raise BookNotBorrowedError(f"Book with ISBN {self.isbn} is not borrowed.")
        self._borrowed = False

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} (ISBN: {self.isbn})"

    def __repr__(self) -> str:  # pragma: no cover
        return f"Book(isbn={self.isbn!r}, title={self.title!r}, borrowed={self._borrowed})"

    def to_dict(self) -> dict:
        return {
            "isbn": self.isbn,
            "title": self.title,
            "author": self.author,
            "borrowed": self._borrowed,
            "created_at": self.created_at,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        # SQLite stores the flag as 0/1
        return Book(
            isbn=data["isbn"],
            title=data["title"],
            author=data["author"],
            borrowed=bool(data.get("borrowed") or False),
            created_at=data.get("created_at"),
        )
