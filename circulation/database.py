import logging
import sqlite3
from typing import Any, Dict, List, Optional

from circulation.book import Book
from circulation.errors import PersistenceError
from circulation.services.interfaces import NotificationService
from circulation.user import User

logger = logging.getLogger(__name__)


def get_db_connection(db_file: str) -> sqlite3.Connection:
    """Open a connection to the SQLite database with dict-like rows."""
    conn = sqlite3.connect(db_file)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def create_tables(conn: sqlite3.Connection) -> None:
    """Create the circulation tables if they do not exist yet."""
    cursor = conn.cursor()
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS books (
            isbn TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            author TEXT NOT NULL,
            borrowed INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS users (
            user_id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)

    # One row per borrow; returned_at stays NULL while the loan is open
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS loans (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            isbn TEXT NOT NULL,
            user_id TEXT NOT NULL,
            borrowed_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            returned_at TIMESTAMP,
            FOREIGN KEY (isbn) REFERENCES books(isbn) ON DELETE CASCADE,
            FOREIGN KEY (user_id) REFERENCES users(user_id) ON DELETE CASCADE
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS reviews (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            isbn TEXT NOT NULL,
            user_name TEXT NOT NULL,
            rating INTEGER NOT NULL CHECK(rating >= 1 AND rating <= 5),
            comment TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)

    cursor.execute("CREATE INDEX IF NOT EXISTS idx_loans_isbn ON loans(isbn)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_reviews_isbn ON reviews(isbn)")

    # Older catalog databases lack the circulation columns
    cursor.execute("PRAGMA table_info(books)")
    columns = [column[1] for column in cursor.fetchall()]
    if "created_at" not in columns:
        # ALTER TABLE cannot add a column with a non-constant default
        cursor.execute("ALTER TABLE books ADD COLUMN created_at TIMESTAMP")
        cursor.execute("UPDATE books SET created_at = CURRENT_TIMESTAMP WHERE created_at IS NULL")
    if "borrowed" not in columns:
        cursor.execute("ALTER TABLE books ADD COLUMN borrowed INTEGER NOT NULL DEFAULT 0")

    conn.commit()


def initialize_database(db_file: str) -> None:
    """Create the database file and its tables if needed."""
    logger.debug("Initializing database at %s", db_file)
    conn = get_db_connection(db_file)
    try:
        create_tables(conn)
    finally:
        conn.close()


class SQLiteDatabaseService:
    """Stores books, users and loans in a SQLite file.

    Users only persist their id and name. When a user is read back it is
    bound to ``notification_service``, the channel this deployment uses.
    """

    def __init__(self, db_file: str, notification_service: NotificationService) -> None:
        self.db_file = db_file
        self.notification_service = notification_service
        initialize_database(db_file)

    # ------------------------- Books ------------------------- #
    def get_book_by_isbn(self, isbn: str) -> Optional[Book]:
        row = self._fetch_one(
            "SELECT isbn, title, author, borrowed, created_at FROM books WHERE isbn = ?", (isbn,)
        )
        return Book.from_dict(dict(row)) if row else None

    def add_book(self, isbn: str, book: Book) -> None:
        conn = get_db_connection(self.db_file)
        try:
            conn.execute(
                "INSERT INTO books (isbn, title, author, borrowed) VALUES (?, ?, ?, ?)",
                (isbn, book.title, book.author, int(book.is_borrowed())),
            )
            conn.commit()
        except sqlite3.IntegrityError as e:
            raise PersistenceError(f"Book with ISBN {isbn} already exists.") from e
        finally:
            conn.close()

    def list_books(self) -> List[Book]:
        conn = get_db_connection(self.db_file)
        try:
            rows = conn.execute(
                "SELECT isbn, title, author, borrowed, created_at FROM books ORDER BY title"
            ).fetchall()
            return [Book.from_dict(dict(row)) for row in rows]
        finally:
            conn.close()

    # ------------------------- Users ------------------------- #
    def get_user_by_id(self, user_id: str) -> Optional[User]:
        row = self._fetch_one("SELECT user_id, name FROM users WHERE user_id = ?", (user_id,))
        if not row:
            return None
        return User(row["name"], row["user_id"], self.notification_service)

    def register_user(self, user_id: str, user: User) -> None:
        conn = get_db_connection(self.db_file)
        try:
            conn.execute("INSERT INTO users (user_id, name) VALUES (?, ?)", (user_id, user.name))
            conn.commit()
        except sqlite3.IntegrityError as e:
            raise PersistenceError(f"User with id {user_id} already exists.") from e
        finally:
            conn.close()

    # ------------------------- Loans ------------------------- #
    def borrow_book(self, isbn: str, user_id: str) -> None:
        conn = get_db_connection(self.db_file)
        try:
            cursor = conn.execute("UPDATE books SET borrowed = 1 WHERE isbn = ? AND borrowed = 0", (isbn,))
            if cursor.rowcount == 0:
                conn.rollback()
                raise PersistenceError(f"Book with ISBN {isbn} is missing or already borrowed.")
            conn.execute("INSERT INTO loans (isbn, user_id) VALUES (?, ?)", (isbn, user_id))
            conn.commit()
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise PersistenceError(f"Could not record loan of {isbn} to {user_id}.") from e
        finally:
            conn.close()

    def return_book(self, isbn: str) -> None:
        conn = get_db_connection(self.db_file)
        try:
            cursor = conn.execute("UPDATE books SET borrowed = 0 WHERE isbn = ? AND borrowed = 1", (isbn,))
            if cursor.rowcount == 0:
                conn.rollback()
                raise PersistenceError(f"Book with ISBN {isbn} is missing or not borrowed.")
            conn.execute(
                "UPDATE loans SET returned_at = CURRENT_TIMESTAMP WHERE isbn = ? AND returned_at IS NULL",
                (isbn,),
            )
            conn.commit()
        finally:
            conn.close()

    def list_loans(self, isbn: Optional[str] = None) -> List[Dict[str, Any]]:
        """Loan history, oldest first, optionally for a single book."""
        query = "SELECT id, isbn, user_id, borrowed_at, returned_at FROM loans"
        params: tuple = ()
        if isbn is not None:
            query += " WHERE isbn = ?"
            params = (isbn,)
        query += " ORDER BY id"
        conn = get_db_connection(self.db_file)
        try:
            return [dict(row) for row in conn.execute(query, params).fetchall()]
        finally:
            conn.close()

    def _fetch_one(self, query: str, params: tuple) -> Optional[sqlite3.Row]:
        conn = get_db_connection(self.db_file)
        try:
            return conn.execute(query, params).fetchone()
        finally:
            conn.close()

    def close(self) -> None:
        """Connections are opened per operation, so there is nothing to release."""
        return None
