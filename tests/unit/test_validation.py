import pytest

from soluly.utils.validation import parse_integer, parse_number, validate_email, validate_slug


@pytest.mark.parametrize(
    "slug, message",
    [
        ("ab", "URL must be at least 3 characters"),
        ("a" * 51, "URL must be less than 50 characters"),
        ("Acme", "URL can only contain lowercase letters, numbers, and hyphens"),
        ("-acme", "URL cannot start or end with a hyphen"),
        ("acme-studio", None),
    ],
)
def test_validate_slug(slug, message):
    assert validate_slug(slug) == message


def test_validate_email():
    assert validate_email("dana@example.com")
    assert not validate_email("dana@example")
    assert not validate_email("")
    assert not validate_email(None)
    assert not validate_email("dana@@example.com")
    # reserved for testing, never deliverable
    assert not validate_email("dana@acme.test")


def test_parse_number_is_lenient():
    assert parse_number("12.5") == 12.5
    assert parse_number("12px") == 12
    assert parse_number("abc", default=3) == 3
    assert parse_number(None) == 0
    assert parse_number("nan", default=1) == 1


def test_parse_number_clamps():
    assert parse_number("150", minimum=0, maximum=100) == 100
    assert parse_number("-5", minimum=0) == 0


def test_parse_integer():
    assert parse_integer("7.9") == 7
    assert parse_integer(7.9) == 7
    assert parse_integer("0", minimum=1, maximum=120, default=12) == 1
    assert parse_integer("", default=12) == 12
    assert parse_integer(True, default=12) == 12
