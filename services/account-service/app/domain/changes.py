"""Per-field change detection for partial account updates.

Unset input (missing, ``null`` or blank) never overwrites stored data: it
means "leave alone", not "clear the field". A set value is applied only
when it differs from what is stored.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from .account import Account
from .contracts import AccountInput, FieldInput

T = TypeVar("T")

ChangeSet = dict[str, object]


def diff(current: T, candidate: FieldInput[T]) -> tuple[bool, T]:
    """Return ``(changed, value_to_store)`` for a single field."""
    if not candidate.is_set:
        return False, current
    value = candidate.value
    if current == value:
        return False, current
    return True, value  # type: ignore[return-value]


@dataclass(frozen=True, slots=True)
class TrackedField(Generic[T]):
    """How to read and write one mutable account field."""

    name: str
    attribute: str
    read_input: Callable[[AccountInput], FieldInput[T]]

    def current(self, account: Account) -> T:
        return getattr(account, self.attribute)


TRACKED_FIELDS: tuple[TrackedField[str], ...] = (
    TrackedField("firstName", "first_name", lambda candidate: candidate.first_name),
    TrackedField("lastName", "last_name", lambda candidate: candidate.last_name),
    TrackedField("emailAddress", "email_address", lambda candidate: candidate.email_address),
)


def apply_changes(account: Account, candidate: AccountInput) -> tuple[Account, ChangeSet]:
    """Merge ``candidate`` into a copy of ``account``.

    Returns the merged copy and an ordered mapping of wire field name to the
    new value for every field that was actually applied.
    """
    changes: ChangeSet = {}
    updates: dict[str, object] = {}
    for tracked in TRACKED_FIELDS:
        changed, value = diff(tracked.current(account), tracked.read_input(candidate))
        if changed:
            updates[tracked.attribute] = value
            changes[tracked.name] = value
    return dataclasses.replace(account, **updates), changes
