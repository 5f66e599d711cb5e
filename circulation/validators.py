import re
from typing import Optional

_ISBN13_PATTERN = re.compile(r"[0-9]{13}")
_USER_ID_PATTERN = re.compile(r"[0-9]{12}")
# Unicode letters separated by single spaces or hyphens, starting and ending with a letter.
_AUTHOR_PATTERN = re.compile(r"[^\W\d_]+(?:[ -][^\W\d_]+)*")


class ISBNValidator:
    """Strict ISBN-13 (EAN-13) validation.

    Unlike a lenient catalog lookup, no normalisation is applied: the value
    must already be exactly 13 ASCII digits with a matching check digit.
    """

    @staticmethod
    def check_digit(first_twelve: str) -> int:
        total = 0
        for i, ch in enumerate(first_twelve):
            factor = 1 if i % 2 == 0 else 3
            total += factor * int(ch)
        return (10 - (total % 10)) % 10

    @staticmethod
    def is_valid_isbn(isbn: Optional[str]) -> bool:
        if not isinstance(isbn, str) or not _ISBN13_PATTERN.fullmatch(isbn):
            return False
        return ISBNValidator.check_digit(isbn[:12]) == int(isbn[12])


class UserIdValidator:
    """User ids are 12 ASCII digits."""

    @staticmethod
    def is_valid_user_id(user_id: Optional[str]) -> bool:
        return isinstance(user_id, str) and _USER_ID_PATTERN.fullmatch(user_id) is not None


class TextValidator:
    """Presence checks for free text and the author-name grammar."""

    @staticmethod
    def is_non_empty(text: Optional[str]) -> bool:
        return isinstance(text, str) and text != ""

    @staticmethod
    def validate_title(title: Optional[str]) -> bool:
        return TextValidator.is_non_empty(title)

    @staticmethod
    def validate_name(name: Optional[str]) -> bool:
        return TextValidator.is_non_empty(name)

    @staticmethod
    def validate_author(author: Optional[str]) -> bool:
        # "Robert Martin" and "Jean-Paul Sartre" pass; "John--Doe", "1John" do not
        if not TextValidator.is_non_empty(author):
            return False
        return _AUTHOR_PATTERN.fullmatch(author) is not None
