"""Exception types raised by the circulation core and its collaborators."""


class LibraryError(Exception):
    """Base class for failures reported by the Library orchestrator."""


class InvalidArgumentError(LibraryError, ValueError):
    """Caller-supplied data is missing or malformed."""


class BookNotFoundError(LibraryError, LookupError):
    """No book with the requested ISBN exists."""


class BookAlreadyBorrowedError(LibraryError):
    """The book is currently borrowed."""


class BookNotBorrowedError(LibraryError):
    """The book is not borrowed, so it cannot be returned."""


class UserNotRegisteredError(LibraryError, LookupError):
    """No user with the requested id is registered."""


class NoReviewsFoundError(LibraryError):
    """The review service returned nothing for the book."""


class ReviewServiceUnavailableError(LibraryError):
    """The review service failed while looking up reviews."""


class NotificationError(LibraryError):
    """A notification could not be delivered to the user."""


class ExternalServiceError(Exception):
    """Raised when an external collaborator (database, HTTP service) fails."""


class PersistenceError(ExternalServiceError):
    """The persistence backend rejected or failed an operation."""


class ReviewError(ExternalServiceError):
    """The review backend failed to answer a lookup."""
