import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from functools import lru_cache
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Security
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from pydantic import BaseModel, Field

from circulation.book import Book
from circulation.config import settings
from circulation.errors import (
    BookAlreadyBorrowedError,
    BookNotBorrowedError,
    BookNotFoundError,
    ExternalServiceError,
    InvalidArgumentError,
    NoReviewsFoundError,
    NotificationError,
    ReviewServiceUnavailableError,
    UserNotRegisteredError,
)
from circulation.factory import build_library
from circulation.library import Library
from circulation.logging_config import configure_logging
from circulation.user import User

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    logger.info("%s %s starting", settings.app_name, settings.app_version)
    yield


app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)


@lru_cache(maxsize=1)
def get_library() -> Library:
    """Library shared by all requests; overridden in tests."""
    return build_library(settings)


# --- Security ---
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def get_api_key(api_key: Optional[str] = Security(api_key_header)):
    """Dependency that checks the X-API-Key header."""
    if api_key == settings.api_key:
        return api_key
    raise HTTPException(status_code=403, detail="Could not validate credentials")


# --- Error mapping ---
_STATUS_BY_ERROR = [
    (InvalidArgumentError, 400),
    (BookNotFoundError, 404),
    (UserNotRegisteredError, 404),
    (NoReviewsFoundError, 404),
    (BookAlreadyBorrowedError, 409),
    (BookNotBorrowedError, 409),
    (ReviewServiceUnavailableError, 503),
    (NotificationError, 502),
    (ExternalServiceError, 502),
]


def _make_handler(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status_code,
            content={"detail": str(exc), "error": type(exc).__name__},
        )
    return handler


for _error_type, _status in _STATUS_BY_ERROR:
    app.add_exception_handler(_error_type, _make_handler(_status))


# --- Models ---
class BookModel(BaseModel):
    isbn: str
    title: str
    author: str
    borrowed: bool = False


class BookCreateModel(BaseModel):
    isbn: str
    title: str
    author: str


class UserCreateModel(BaseModel):
    user_id: str = Field(..., description="12-digit user id")
    name: str


class UserRequestModel(BaseModel):
    user_id: str


def _book_model(book: Book) -> BookModel:
    return BookModel(isbn=book.isbn, title=book.title, author=book.author, borrowed=book.is_borrowed())


# --- Endpoints ---
@app.get("/health")
def health():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.app_version,
    }


@app.get("/books", response_model=List[BookModel])
def list_books(library: Library = Depends(get_library)):
    list_all = getattr(library.database_service, "list_books", None)
    if list_all is None:
        raise HTTPException(status_code=501, detail="Listing is not supported by this backend.")
    return [_book_model(b) for b in list_all()]


@app.post("/books", response_model=BookModel, status_code=201, dependencies=[Depends(get_api_key)])
def add_book(payload: BookCreateModel, library: Library = Depends(get_library)):
    book = Book(payload.isbn, payload.title, payload.author)
    library.add_book(book)
    return _book_model(book)


@app.post("/users", status_code=201, dependencies=[Depends(get_api_key)])
def register_user(payload: UserCreateModel, library: Library = Depends(get_library)):
    notification_service = getattr(library.database_service, "notification_service", None)
    user = User(payload.name, payload.user_id, notification_service)
    library.register_user(user)
    return user.to_dict()


@app.get("/books/{isbn}", response_model=BookModel)
def get_book(isbn: str, user_id: str = Query(...), library: Library = Depends(get_library)):
    """Fetch an available book; the user is sent its reviews when possible."""
    return _book_model(library.get_book_by_isbn(isbn, user_id))


@app.post("/books/{isbn}/borrow", dependencies=[Depends(get_api_key)])
def borrow_book(isbn: str, payload: UserRequestModel, library: Library = Depends(get_library)):
    library.borrow_book(isbn, payload.user_id)
    return {"isbn": isbn, "user_id": payload.user_id, "borrowed": True}


@app.post("/books/{isbn}/return", dependencies=[Depends(get_api_key)])
def return_book(isbn: str, library: Library = Depends(get_library)):
    library.return_book(isbn)
    return {"isbn": isbn, "borrowed": False}


@app.post("/books/{isbn}/notify", dependencies=[Depends(get_api_key)])
def notify_user(isbn: str, payload: UserRequestModel, library: Library = Depends(get_library)):
    library.notify_user_with_book_reviews(isbn, payload.user_id)
    return {"isbn": isbn, "user_id": payload.user_id, "notified": True}
