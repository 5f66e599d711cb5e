from unittest.mock import MagicMock

import pytest

from circulation.book import Book
from circulation.library import Library
from circulation.services.interfaces import DatabaseService, NotificationService, ReviewService
from circulation.user import User

VALID_ISBN = "9780306406157"
VALID_TITLE = "Clean Code"
VALID_AUTHOR = "Robert Martin"
VALID_USER_ID = "123456789012"
VALID_USER_NAME = "Alice"


@pytest.fixture
def db_file(tmp_path, request):
    # A separate database file per test
    return str(tmp_path / f"test_{request.node.name}.db")


@pytest.fixture
def database_service():
    return MagicMock(spec=DatabaseService)


@pytest.fixture
def review_service():
    return MagicMock(spec=ReviewService)


@pytest.fixture
def library(database_service, review_service):
    return Library(database_service, review_service)


@pytest.fixture
def valid_book():
    return Book(VALID_ISBN, VALID_TITLE, VALID_AUTHOR)


@pytest.fixture
def valid_user():
    return User(VALID_USER_NAME, VALID_USER_ID, MagicMock(spec=NotificationService))
