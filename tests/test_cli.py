import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from circulation.main import app
from circulation.ui_helpers import OUTPUT_MODE_ENV

runner = CliRunner()

ISBN = "9780306406157"
USER_ID = "123456789012"


@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    monkeypatch.delenv(OUTPUT_MODE_ENV, raising=False)


def invoke(db_file, *args):
    return runner.invoke(app, ["--db", db_file, *args])


def _seed(db_file):
    invoke(db_file, "add-book", ISBN, "Clean Code", "Robert Martin")
    invoke(db_file, "register-user", USER_ID, "Alice")


def test_list_no_books(db_file):
    result = invoke(db_file, "list")
    assert result.exit_code == 0
    assert "No books in library." in result.stdout


def test_add_book_success(db_file):
    result = invoke(db_file, "add-book", ISBN, "Clean Code", "Robert Martin")
    assert result.exit_code == 0
    assert "Successfully added: Clean Code by Robert Martin" in result.stdout

    listing = invoke(db_file, "list")
    assert f"{ISBN} - Clean Code by Robert Martin (available)" in listing.stdout


def test_add_book_invalid_author(db_file):
    result = invoke(db_file, "add-book", ISBN, "Clean Code", "John--Doe")
    assert result.exit_code == 1
    assert "Error: Invalid author name" in result.stdout


def test_add_book_duplicate(db_file):
    invoke(db_file, "add-book", ISBN, "Clean Code", "Robert Martin")
    result = invoke(db_file, "add-book", ISBN, "Clean Code", "Robert Martin")
    assert result.exit_code == 1
    assert "already exists" in result.stdout


def test_register_user_twice(db_file):
    first = invoke(db_file, "register-user", USER_ID, "Alice")
    second = invoke(db_file, "register-user", USER_ID, "Alice")
    assert first.exit_code == 0
    assert "Registered user: Alice" in first.stdout
    assert second.exit_code == 1


def test_borrow_and_return(db_file):
    _seed(db_file)

    borrowed = invoke(db_file, "borrow", ISBN, USER_ID)
    assert borrowed.exit_code == 0
    assert f"Book {ISBN} borrowed by {USER_ID}." in borrowed.stdout
    assert "(borrowed)" in invoke(db_file, "list").stdout

    again = invoke(db_file, "borrow", ISBN, USER_ID)
    assert again.exit_code == 1
    assert "already borrowed" in again.stdout

    returned = invoke(db_file, "return", ISBN)
    assert returned.exit_code == 0
    assert "(available)" in invoke(db_file, "list").stdout

    loans = invoke(db_file, "loans", ISBN)
    assert f"{ISBN} -> {USER_ID}" in loans.stdout


def test_borrow_unregistered_user(db_file):
    invoke(db_file, "add-book", ISBN, "Clean Code", "Robert Martin")
    result = invoke(db_file, "borrow", ISBN, USER_ID)
    assert result.exit_code == 1
    assert "not registered" in result.stdout


def test_notify_prints_reviews(db_file):
    _seed(db_file)
    assert invoke(db_file, "add-review", ISBN, "bob", "5", "Great read").exit_code == 0

    result = invoke(db_file, "notify", ISBN, USER_ID)

    assert result.exit_code == 0
    assert "Great read" in result.stdout
    assert f"User {USER_ID} notified about {ISBN}." in result.stdout


def test_notify_without_reviews_fails(db_file):
    _seed(db_file)
    result = invoke(db_file, "notify", ISBN, USER_ID)
    assert result.exit_code == 1
    assert "No reviews found" in result.stdout


def test_get_shows_book_even_without_reviews(db_file):
    _seed(db_file)
    result = invoke(db_file, "get", ISBN, USER_ID)
    assert result.exit_code == 0
    assert "Book Found" in result.stdout
    assert "Title: Clean Code" in result.stdout


def test_add_review_rating_out_of_range(db_file):
    result = invoke(db_file, "add-review", ISBN, "bob", "6", "Too good")
    assert result.exit_code != 0


def test_json_output(db_file):
    invoke(db_file, "add-book", ISBN, "Clean Code", "Robert Martin")
    result = invoke(db_file, "-o", "json", "list")
    assert result.exit_code == 0
    payload = json.loads(result.stdout.strip().splitlines()[-1])
    assert payload[0]["isbn"] == ISBN
    assert payload[0]["borrowed"] is False


@patch("subprocess.run")
def test_serve_command(mock_subprocess_run, db_file):
    result = invoke(db_file, "serve")
    assert result.exit_code == 0
    assert "Starting API on" in result.stdout
    mock_subprocess_run.assert_called_once()
    args = mock_subprocess_run.call_args[0][0]
    assert "uvicorn" in args
    assert "circulation.api:app" in args
    assert "--host" in args
    assert "--port" in args


@patch("subprocess.run")
def test_serve_uses_selected_database(mock_subprocess_run, db_file):
    result = invoke(db_file, "serve", "--port", "8123")
    assert result.exit_code == 0
    args = mock_subprocess_run.call_args[0][0]
    assert args[args.index("--port") + 1] == "8123"
    env = mock_subprocess_run.call_args[1]["env"]
    assert env["LIBRARY_DB_FILE"] == db_file
