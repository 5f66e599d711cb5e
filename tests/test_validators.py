import pytest

from circulation.validators import ISBNValidator, TextValidator, UserIdValidator


@pytest.mark.parametrize("isbn", ["9780306406157", "9780132350884", "9780441172719", "0000000000000"])
def test_valid_isbn13(isbn):
    assert ISBNValidator.is_valid_isbn(isbn)


@pytest.mark.parametrize("isbn", [
    None,
    "",
    "9780306406158",   # wrong check digit
    "978030640615",    # 12 digits
    "97803064061577",  # 14 digits
    "97803064061AB",
    "978-0306406157",
    "978030640615٧",  # non-ASCII digit
    "0306406152",      # ISBN-10
])
def test_invalid_isbn13(isbn):
    assert not ISBNValidator.is_valid_isbn(isbn)


def test_isbn_validity_tracks_check_digit():
    prefix = "978030640615"
    expected = ISBNValidator.check_digit(prefix)
    assert expected == 7
    for digit in range(10):
        assert ISBNValidator.is_valid_isbn(prefix + str(digit)) is (digit == expected)


@pytest.mark.parametrize("user_id,expected", [
    ("123456789012", True),
    ("000000000000", True),
    ("12345678901", False),
    ("1234567890123", False),
    ("12345678901a", False),
    ("", False),
    (None, False),
])
def test_user_id(user_id, expected):
    assert UserIdValidator.is_valid_user_id(user_id) is expected


@pytest.mark.parametrize("author", [
    "Robert Martin", "Jean-Paul Sartre", "Plato", "Ursula K Le Guin",
    "Gabriel García Márquez", "Jöhn Doe", "Лев Толстой",
])
def test_valid_author(author):
    assert TextValidator.validate_author(author)


@pytest.mark.parametrize("author", [
    None, "", "1John Doe", "John Doe1", "John@Doe", "John--Doe", "John  Doe",
    "John -Doe", " John", "John ", "-John", "J. R. R. Tolkien", "Jöhn Doe٣", "John_Doe",
])
def test_invalid_author(author):
    assert not TextValidator.validate_author(author)


@pytest.mark.parametrize("text,expected", [("Clean Code", True), (" ", True), ("", False), (None, False)])
def test_title_and_name_presence(text, expected):
    assert TextValidator.validate_title(text) is expected
    assert TextValidator.validate_name(text) is expected
