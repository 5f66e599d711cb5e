import json
import os
from typing import Any, Dict, List

from rich.console import Console
from rich.table import Table

# Controls CLI output: 'plain' (default), 'json' or 'rich'
OUTPUT_MODE_ENV = "CIRCULATION_CLI_OUTPUT"

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def _status(book: Any) -> str:
    return "borrowed" if book.is_borrowed() else "available"


def print_book_list(books: List[Any]) -> None:
    """Print books in the current output mode.
    - plain: 'ISBN - Title by Author (status)' lines, or 'No books in library.'
    - json: array of book dicts
    - rich: table
    """
    mode = get_output_mode()

    if not books:
        print("No books in library.")
        return

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
    elif mode == "rich":
        table = Table(title="Books", show_lines=True, header_style="bold cyan")
        table.add_column("ISBN", style="magenta", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("Status", style="green")
        for b in books:
            table.add_row(b.isbn, b.title, b.author, _status(b))
        _console.print(table)
    else:
        for b in books:
            print(f"{b.isbn} - {b.title} by {b.author} ({_status(b)})")


def print_book(book: Any) -> None:
    mode = get_output_mode()
    if mode == "json":
        print(json.dumps(book.to_dict(), ensure_ascii=False))
        return
    print("Book Found")
    print(f"Title: {book.title}")
    print(f"Author: {book.author}")
    print(f"ISBN: {book.isbn}")
    print(f"Status: {_status(book)}")


def print_loans(loans: List[Dict[str, Any]]) -> None:
    if not loans:
        print("No loans recorded.")
        return
    if get_output_mode() == "json":
        print(json.dumps(loans, ensure_ascii=False, default=str))
        return
    for loan in loans:
        returned = loan.get("returned_at") or "open"
        print(f"{loan['isbn']} -> {loan['user_id']} borrowed {loan['borrowed_at']} returned {returned}")
