from __future__ import annotations

import pytest

from app.domain.contracts import AccountInput, FieldInput, Presence, parse_account_id
from app.domain.errors import MalformedInputError, NotFoundError


def test_field_input_tracks_three_states():
    assert FieldInput.absent().presence is Presence.absent
    assert FieldInput.of(None).presence is Presence.empty
    assert FieldInput.of("   ").presence is Presence.empty
    assert FieldInput.of("Smith") == FieldInput(Presence.value, "Smith")
    assert not FieldInput.of("").is_set
    assert FieldInput.of("Smith").is_set


def test_from_payload_distinguishes_missing_null_and_empty():
    candidate = AccountInput.from_payload({"firstName": None, "lastName": ""})

    assert candidate.first_name.presence is Presence.empty
    assert candidate.last_name.presence is Presence.empty
    assert candidate.email_address.presence is Presence.absent


def test_from_payload_ignores_unknown_keys():
    candidate = AccountInput.from_payload(
        {"id": 5, "firstName": "John", "lastName": "Doe", "emailAddress": "john@example.com"}
    )

    assert candidate.raw("first_name") == "John"
    assert candidate.raw("email_address") == "john@example.com"


@pytest.mark.parametrize("payload", [None, [], "text", 12])
def test_from_payload_requires_an_object(payload):
    with pytest.raises(MalformedInputError):
        AccountInput.from_payload(payload)


def test_from_payload_rejects_non_string_fields():
    with pytest.raises(MalformedInputError, match="lastName"):
        AccountInput.from_payload({"lastName": 42})


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("101", 101), (" 7 ", 7), ("+12", 12), ("-3", -3), (250, 250)],
)
def test_parse_account_id_accepts_integers(raw, expected):
    assert parse_account_id(raw) == expected


@pytest.mark.parametrize("raw", ["200a", "", "1.5", "1_000", "abc", "99999999999", True])
def test_parse_account_id_rejects_everything_else(raw):
    with pytest.raises(NotFoundError) as excinfo:
        parse_account_id(raw)
    assert excinfo.value.message == f"'{raw}' is not a valid account Id"
