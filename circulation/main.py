import dataclasses
import os
import subprocess
import sys
from typing import Optional

import typer
from rich.console import Console

from circulation.book import Book
from circulation.config import settings
from circulation.errors import ExternalServiceError, LibraryError
from circulation.factory import build_library
from circulation.library import Library
from circulation.logging_config import configure_logging
from circulation.services.review_service import SQLiteReviewService
from circulation.ui_helpers import print_book, print_book_list, print_loans, set_output_mode
from circulation.user import User
from circulation.validators import ISBNValidator

console = Console()

app = typer.Typer(help="Library circulation CLI")

# Settings for the current invocation; the --db option replaces the database file
_state = {"settings": settings}


def _settings():
    return _state["settings"]


def get_library() -> Library:
    return build_library(_settings())


def _fail(error: Exception) -> None:
    print(f"Error: {error}")
    raise typer.Exit(code=1)


@app.callback()
def _global_options(
    db: Optional[str] = typer.Option(None, "--db", help="SQLite database file (default: LIBRARY_DB_FILE)"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output format: plain | json | rich"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log to stderr at DEBUG level"),
):
    """Global options shared by every command."""
    current = settings
    if db:
        current = dataclasses.replace(current, database_file=db)
    _state["settings"] = current
    if output:
        set_output_mode(output)
    if verbose:
        configure_logging("DEBUG")


@app.command("register-user")
def cli_register_user(user_id: str, name: str):
    """Register a user with a 12-digit id."""
    lib = get_library()
    user = User(name, user_id, lib.database_service.notification_service)
    try:
        lib.register_user(user)
    except (LibraryError, ExternalServiceError) as e:
        _fail(e)
    print(f"Registered user: {name} ({user_id})")


@app.command("add-book")
def cli_add_book(isbn: str, title: str, author: str):
    """Add a new book to the catalog."""
    lib = get_library()
    try:
        lib.add_book(Book(isbn, title, author))
    except (LibraryError, ExternalServiceError) as e:
        _fail(e)
    print(f"Successfully added: {title} by {author}")


@app.command("borrow")
def cli_borrow(isbn: str, user_id: str):
    """Lend a book to a registered user."""
    try:
        get_library().borrow_book(isbn, user_id)
    except (LibraryError, ExternalServiceError) as e:
        _fail(e)
    print(f"Book {isbn} borrowed by {user_id}.")


@app.command("return")
def cli_return(isbn: str):
    """Return a borrowed book."""
    try:
        get_library().return_book(isbn)
    except (LibraryError, ExternalServiceError) as e:
        _fail(e)
    print(f"Book {isbn} returned.")


@app.command("get")
def cli_get(isbn: str, user_id: str):
    """Show an available book and send the user its reviews when possible."""
    try:
        book = get_library().get_book_by_isbn(isbn, user_id)
    except (LibraryError, ExternalServiceError) as e:
        _fail(e)
    print_book(book)


@app.command("notify")
def cli_notify(isbn: str, user_id: str):
    """Send the user the reviews of a book."""
    try:
        get_library().notify_user_with_book_reviews(isbn, user_id)
    except (LibraryError, ExternalServiceError) as e:
        _fail(e)
    print(f"User {user_id} notified about {isbn}.")


@app.command("add-review")
def cli_add_review(
    isbn: str,
    user_name: str,
    rating: int = typer.Argument(..., min=1, max=5),
    comment: str = typer.Argument(...),
):
    """Store a review in the local reviews table."""
    if not ISBNValidator.is_valid_isbn(isbn):
        _fail(ValueError(f"Invalid ISBN: {isbn!r}"))
    service = SQLiteReviewService(_settings().database_file)
    try:
        service.add_review(isbn, user_name, rating, comment)
    except ValueError as e:
        _fail(e)
    print(f"Review added for {isbn}.")


@app.command("list")
def cli_list():
    """List every book with its circulation status."""
    lib = get_library()
    print_book_list(lib.database_service.list_books())


@app.command("loans")
def cli_loans(isbn: Optional[str] = typer.Argument(None)):
    """Show the loan history, optionally for one book."""
    lib = get_library()
    print_loans(lib.database_service.list_loans(isbn))


@app.command("serve")
def cli_serve(
    host: Optional[str] = typer.Option(None, "--host"),
    port: Optional[int] = typer.Option(None, "--port"),
):
    """Start the HTTP API with uvicorn."""
    current = _settings()
    host = host or current.api_host
    port = int(port or current.api_port)
    print(f"Starting API on http://{host}:{port}/")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "circulation.api:app",
        "--host", host,
        "--port", str(port),
    ]
    # The API process reads its settings from the environment
    env = {**os.environ, "LIBRARY_DB_FILE": current.database_file}
    try:
        subprocess.run(args, env=env)
    except FileNotFoundError:
        console.print("[bold red]Error:[/] could not launch uvicorn. Make sure it is installed.")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
