from unittest.mock import MagicMock

import pytest

from circulation.book import Book
from circulation.database import SQLiteDatabaseService, get_db_connection
from circulation.errors import PersistenceError
from circulation.library import Library
from circulation.services.interfaces import DatabaseService, NotificationService, ReviewService
from circulation.user import User

ISBN = "9780306406157"
USER_ID = "123456789012"


@pytest.fixture
def notifier():
    return MagicMock(spec=NotificationService)


@pytest.fixture
def db(db_file, notifier):
    return SQLiteDatabaseService(db_file, notifier)


def test_satisfies_database_protocol(db):
    assert isinstance(db, DatabaseService)


def test_add_and_get_book(db):
    assert db.get_book_by_isbn(ISBN) is None

    db.add_book(ISBN, Book(ISBN, "Clean Code", "Robert Martin"))

    found = db.get_book_by_isbn(ISBN)
    assert found.title == "Clean Code"
    assert found.author == "Robert Martin"
    assert not found.is_borrowed()


def test_add_duplicate_book_raises_persistence_error(db):
    db.add_book(ISBN, Book(ISBN, "Clean Code", "Robert Martin"))
    with pytest.raises(PersistenceError):
        db.add_book(ISBN, Book(ISBN, "Other", "Someone Else"))


def test_register_and_get_user_rebinds_notification_service(db, notifier):
    db.register_user(USER_ID, User("Alice", USER_ID, MagicMock(spec=NotificationService)))

    user = db.get_user_by_id(USER_ID)

    assert user.name == "Alice"
    assert user.user_id == USER_ID
    assert user.notification_service is notifier
    assert db.get_user_by_id("999999999999") is None


def test_borrow_and_return_record_loans(db):
    db.add_book(ISBN, Book(ISBN, "Clean Code", "Robert Martin"))
    db.register_user(USER_ID, User("Alice", USER_ID, MagicMock()))

    db.borrow_book(ISBN, USER_ID)
    assert db.get_book_by_isbn(ISBN).is_borrowed()
    loans = db.list_loans(ISBN)
    assert len(loans) == 1
    assert loans[0]["returned_at"] is None

    db.return_book(ISBN)
    assert not db.get_book_by_isbn(ISBN).is_borrowed()
    assert db.list_loans(ISBN)[0]["returned_at"] is not None


def test_borrow_twice_raises_persistence_error(db):
    db.add_book(ISBN, Book(ISBN, "Clean Code", "Robert Martin"))
    db.register_user(USER_ID, User("Alice", USER_ID, MagicMock()))
    db.borrow_book(ISBN, USER_ID)

    with pytest.raises(PersistenceError):
        db.borrow_book(ISBN, USER_ID)
    assert len(db.list_loans()) == 1


def test_return_unborrowed_raises_persistence_error(db):
    db.add_book(ISBN, Book(ISBN, "Clean Code", "Robert Martin"))
    with pytest.raises(PersistenceError):
        db.return_book(ISBN)


def test_list_books_sorted_by_title(db):
    db.add_book("9780132350884", Book("9780132350884", "Clean Code", "Robert Martin"))
    db.add_book("9780441172719", Book("9780441172719", "Dune", "Frank Herbert"))

    assert [b.title for b in db.list_books()] == ["Clean Code", "Dune"]


def test_persistence_across_instances(db_file, notifier):
    SQLiteDatabaseService(db_file, notifier).add_book(ISBN, Book(ISBN, "Sapiens", "Yuval Noah Harari"))

    assert SQLiteDatabaseService(db_file, notifier).get_book_by_isbn(ISBN).title == "Sapiens"


def test_migrates_books_table_without_borrowed_column(db_file, notifier):
    conn = get_db_connection(db_file)
    conn.execute("CREATE TABLE books (isbn TEXT PRIMARY KEY, title TEXT NOT NULL, author TEXT NOT NULL)")
    conn.execute("INSERT INTO books VALUES (?, ?, ?)", (ISBN, "Clean Code", "Robert Martin"))
    conn.commit()
    conn.close()

    db = SQLiteDatabaseService(db_file, notifier)

    assert db.get_book_by_isbn(ISBN).is_borrowed() is False


def test_library_lifecycle_against_sqlite(db):
    library = Library(db, MagicMock(spec=ReviewService))
    library.register_user(User("Alice", USER_ID, MagicMock(spec=NotificationService)))
    library.add_book(Book(ISBN, "Clean Code", "Robert Martin"))

    library.borrow_book(ISBN, USER_ID)
    assert db.get_book_by_isbn(ISBN).is_borrowed()

    library.return_book(ISBN)
    assert not db.get_book_by_isbn(ISBN).is_borrowed()
    assert len(db.list_loans(ISBN)) == 1
