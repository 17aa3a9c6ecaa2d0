"""Field-level checks applied to every account before it is persisted."""

from __future__ import annotations

import re
from dataclasses import dataclass

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
EMAIL_MIN_LENGTH = 4
EMAIL_MAX_LENGTH = 100

# Quoted local part, or dot-separated atoms without leading/trailing/double dots,
# then a dotted domain ending in at least two letters.
_EMAIL_PATTERN = re.compile(
    r"^(?!\.)"
    r"(\"([^\"\r\\]|\\[\"\r\\])*\"|([-a-z0-9!#$%&'*+/=?^_`{|}~]|(?<!\.)\.)+)"
    r"(?<!\.)"
    r"@[a-z0-9][\w.-]*[a-z0-9]\.[a-z][a-z.]*[a-z]$",
    re.IGNORECASE,
)


@dataclass(frozen=True, slots=True)
class Violation:
    """A single failed rule for one field."""

    kind: str
    field: str
    message: str


def is_valid_email(email: str | None) -> bool:
    """Return ``True`` when ``email`` matches the accepted address syntax."""
    if email is None or not email.strip():
        return False
    return _EMAIL_PATTERN.fullmatch(email) is not None


def _check_length(field: str, value: str, minimum: int, maximum: int) -> Violation | None:
    if minimum <= len(value) <= maximum:
        return None
    return Violation(
        kind="length",
        field=field,
        message=(
            f"The field {field} must be a string with a minimum length of {minimum} "
            f"and a maximum length of {maximum}."
        ),
    )


def _check_name(field: str, value: str | None) -> list[Violation]:
    if value is None or not value.strip():
        return [Violation("required", field, f"The {field} field is required.")]
    violation = _check_length(field, value, NAME_MIN_LENGTH, NAME_MAX_LENGTH)
    return [violation] if violation else []


def _check_email(field: str, value: str | None) -> list[Violation]:
    if value is None or not value.strip():
        return [Violation("required", field, f"The {field} field is required.")]
    violations: list[Violation] = []
    violation = _check_length(field, value, EMAIL_MIN_LENGTH, EMAIL_MAX_LENGTH)
    if violation:
        violations.append(violation)
    if not is_valid_email(value):
        violations.append(
            Violation("format", field, f"The {field} field is not a valid e-mail address.")
        )
    return violations


def validate_account(
    first_name: str | None,
    last_name: str | None,
    email_address: str | None,
) -> list[Violation]:
    """Return every rule the candidate breaks; an empty list means it is valid.

    Field names in the returned violations use the wire names
    (``firstName``, ``lastName``, ``emailAddress``).
    """
    return [
        *_check_name("firstName", first_name),
        *_check_name("lastName", last_name),
        *_check_email("emailAddress", email_address),
    ]
