from __future__ import annotations

import pytest

from app.domain.validation import is_valid_email, validate_account


@pytest.mark.parametrize(
    "email",
    [
        "john@example.com",
        "john.doe@example.com",
        "JOHN.DOE@EXAMPLE.COM",
        "first+tag@mail.example.org",
        "o'brien@example.co.uk",
        "user_name-1@sub-domain.example.io",
        '"quoted name"@example.com',
    ],
)
def test_accepts_practical_addresses(email):
    assert is_valid_email(email)


@pytest.mark.parametrize(
    "email",
    [
        "",
        "   ",
        None,
        "plainaddress",
        "@example.com",
        ".john@example.com",
        "john.@example.com",
        "jo..hn@example.com",
        "john@example",
        "john@example.c",
        "john@example.c0m",
        "john@-example.com",
        "john doe@example.com",
        "john@example.com\n",
    ],
)
def test_rejects_malformed_addresses(email):
    assert not is_valid_email(email)


def test_valid_candidate_has_no_violations():
    assert validate_account("John", "Doe", "john@example.com") == []


def test_missing_fields_are_required():
    violations = validate_account(None, "  ", "")

    assert [(v.kind, v.field) for v in violations] == [
        ("required", "firstName"),
        ("required", "lastName"),
        ("required", "emailAddress"),
    ]


def test_name_length_bounds_are_inclusive():
    assert validate_account("Jo", "D" * 100, "jo@example.com") == []

    violations = validate_account("J", "D" * 101, "j@example.com")

    assert [(v.kind, v.field) for v in violations] == [
        ("length", "firstName"),
        ("length", "lastName"),
    ]
    assert "minimum length of 2" in violations[0].message


def test_email_length_and_format_reported_separately():
    long_email = "a" * 95 + "@example.com"

    violations = validate_account("John", "Doe", long_email)

    assert [(v.kind, v.field) for v in violations] == [("length", "emailAddress")]

    violations = validate_account("John", "Doe", "not-an-email")
    assert [(v.kind, v.field) for v in violations] == [("format", "emailAddress")]
