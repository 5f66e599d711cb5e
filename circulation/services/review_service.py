import logging
import sqlite3
from typing import Any, List, Optional

import httpx

from circulation.database import get_db_connection, initialize_database
from circulation.errors import ReviewError
from circulation.services.http_client import build_http_client

logger = logging.getLogger(__name__)


class SQLiteReviewService:
    """Reads review comments from the local ``reviews`` table.

    Each lookup opens and closes its own connection, so one instance can be
    shared by request threads.
    """

    def __init__(self, db_file: str) -> None:
        self.db_file = db_file
        initialize_database(db_file)

    def get_reviews_for_book(self, isbn: str) -> Optional[List[str]]:
        conn = None
        try:
            conn = get_db_connection(self.db_file)
            rows = conn.execute(
                "SELECT comment FROM reviews WHERE isbn = ? ORDER BY id", (isbn,)
            ).fetchall()
        except sqlite3.Error as e:
            raise ReviewError(f"Could not read reviews for {isbn}: {e}") from e
        finally:
            if conn is not None:
                conn.close()

        if not rows:
            return None
        return [row["comment"] for row in rows if row["comment"]]

    def add_review(self, isbn: str, user_name: str, rating: int, comment: str) -> None:
        conn = get_db_connection(self.db_file)
        try:
            conn.execute(
                "INSERT INTO reviews (isbn, user_name, rating, comment) VALUES (?, ?, ?, ?)",
                (isbn, user_name, rating, comment),
            )
            conn.commit()
        except sqlite3.IntegrityError as e:
            raise ValueError(f"Invalid review: {e}") from e
        finally:
            conn.close()

    def close(self) -> None:
        """Connections are opened per lookup, so there is nothing to release."""
        return None


class HttpReviewService:
    """Fetches reviews from a remote review API.

    ``GET {base_url}/books/{isbn}/reviews`` must answer with a JSON list of
    strings, or of objects carrying the text under ``text`` or ``comment``.
    A 404 means the book has no reviews.
    """

    def __init__(self, base_url: str, timeout: float = 10.0,
                 transport: Optional[httpx.BaseTransport] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def get_reviews_for_book(self, isbn: str) -> Optional[List[str]]:
        if self._client is None:
            self._client = build_http_client(self.timeout, self.base_url, self._transport)
        try:
            resp = self._client.get(f"/books/{isbn}/reviews")
        except httpx.HTTPError as exc:
            raise ReviewError(f"Review API unreachable: {exc}") from exc

        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise ReviewError(f"Review API returned HTTP {resp.status_code} for {isbn}")

        try:
            payload = resp.json()
        except ValueError as exc:
            raise ReviewError("Review API returned invalid JSON") from exc
        if payload is None:
            return None
        if not isinstance(payload, list):
            raise ReviewError("Review API returned an unexpected payload")
        return [text for text in (self._review_text(item) for item in payload) if text]

    @staticmethod
    def _review_text(item: Any) -> Optional[str]:
        if isinstance(item, str):
            return item
        if isinstance(item, dict):
            return item.get("text") or item.get("comment")
        return None

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
