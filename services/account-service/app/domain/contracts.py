"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Mapping, TypeVar

from .errors import MalformedInputError, NotFoundError

T = TypeVar("T")

_ID_PATTERN = re.compile(r"^\s*[+-]?[0-9]+\s*$")
_ID_MIN = -(2**31)
_ID_MAX = 2**31 - 1


class Presence(str, Enum):
    absent = "absent"
    empty = "empty"
    value = "value"


@dataclass(frozen=True, slots=True)
class FieldInput(Generic[T]):
    """One optional input field: absent, present but empty, or present with a value."""

    presence: Presence = Presence.absent
    value: T | None = None

    @classmethod
    def absent(cls) -> "FieldInput[T]":
        return cls(Presence.absent)

    @classmethod
    def empty(cls) -> "FieldInput[T]":
        return cls(Presence.empty)

    @classmethod
    def of(cls, value: T | None) -> "FieldInput[T]":
        """Wrap a raw value; ``None`` and blank strings count as empty."""
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls(Presence.empty)
        return cls(Presence.value, value)

    @property
    def is_set(self) -> bool:
        return self.presence is Presence.value


@dataclass(frozen=True, slots=True)
class AccountInput:
    """Candidate account fields supplied by a caller, full or partial."""

    first_name: FieldInput[str] = FieldInput()
    last_name: FieldInput[str] = FieldInput()
    email_address: FieldInput[str] = FieldInput()

    @classmethod
    def from_values(
        cls,
        first_name: str | None = None,
        last_name: str | None = None,
        email_address: str | None = None,
    ) -> "AccountInput":
        return cls(
            first_name=FieldInput.of(first_name),
            last_name=FieldInput.of(last_name),
            email_address=FieldInput.of(email_address),
        )

    @classmethod
    def from_payload(cls, payload: Any) -> "AccountInput":
        """Build an input from a decoded JSON body.

        Only ``firstName``, ``lastName`` and ``emailAddress`` are read; other
        keys such as ``id`` are ignored. Each of them may be missing, ``null``
        or a string.
        """
        if not isinstance(payload, Mapping):
            raise MalformedInputError("Malformed JSON in request body")
        return cls(
            first_name=_read_field(payload, "firstName"),
            last_name=_read_field(payload, "lastName"),
            email_address=_read_field(payload, "emailAddress"),
        )

    def raw(self, name: str) -> str | None:
        """Return the value behind ``name`` or ``None`` when it is unset."""
        field_input: FieldInput[str] = getattr(self, name)
        return field_input.value if field_input.is_set else None


def _read_field(payload: Mapping[str, Any], key: str) -> FieldInput[str]:
    if key not in payload:
        return FieldInput.absent()
    value = payload[key]
    if value is not None and not isinstance(value, str):
        raise MalformedInputError(f"'{key}' must be a string")
    return FieldInput.of(value)


def parse_account_id(raw_id: str | int) -> int:
    """Convert a path parameter into an account id or raise ``NotFoundError``."""
    if isinstance(raw_id, bool):
        raise NotFoundError.invalid_id(raw_id)
    if isinstance(raw_id, int):
        parsed = raw_id
    elif isinstance(raw_id, str) and _ID_PATTERN.match(raw_id):
        parsed = int(raw_id.strip())
    else:
        raise NotFoundError.invalid_id(raw_id)
    if not _ID_MIN <= parsed <= _ID_MAX:
        raise NotFoundError.invalid_id(raw_id)
    return parsed
