"""Account service orchestrating validation, conflict checks and persistence."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, Protocol

from .account import Account
from .changes import ChangeSet, apply_changes
from .contracts import AccountInput, parse_account_id
from .errors import (
    ConflictError,
    ForbiddenError,
    IdentityCollisionError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from .validation import validate_account

logger = logging.getLogger(__name__)

DEFAULT_ID_SEED = 100
DEFAULT_RESTRICTED_IDS = frozenset({200, 201, 202, 203})
MAX_ID_ATTEMPTS = 3


class AccountStore(Protocol):
    """Record store operations the service depends on."""

    def find_by_id(self, account_id: int) -> Account | None: ...

    def find_by_email(self, email_address: str) -> Account | None: ...

    def find_by_email_fragment(self, fragment: str) -> list[Account]: ...

    def find_all(self) -> list[Account]: ...

    def max_id(self) -> int | None: ...

    def insert(self, account: Account) -> Account: ...

    def update(self, account: Account) -> Account: ...

    def remove(self, account_id: int) -> None: ...


@dataclass(slots=True)
class SearchResult:
    """Accounts matched by a search; an empty result is still a success."""

    accounts: list[Account]

    @property
    def count(self) -> int:
        return len(self.accounts)


@dataclass(slots=True)
class UpdateResult:
    """Outcome of a partial update."""

    account: Account
    changes: ChangeSet

    @property
    def modified(self) -> bool:
        return bool(self.changes)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccountService:
    """Create, search, update and delete workflows over an account store."""

    def __init__(
        self,
        repository: AccountStore,
        *,
        restricted_ids: Iterable[int] = DEFAULT_RESTRICTED_IDS,
        id_seed: int = DEFAULT_ID_SEED,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Store the repository and the fixed id policy used by every workflow."""
        self._repository = repository
        self._restricted_ids = frozenset(restricted_ids)
        self._id_seed = id_seed
        self._clock = clock

    @property
    def restricted_ids(self) -> frozenset[int]:
        return self._restricted_ids

    def search_all(self) -> SearchResult:
        return SearchResult(self._repository.find_all())

    def search_by_id(self, raw_id: str | int) -> SearchResult:
        """Look up a single account; a malformed id raises ``NotFoundError``."""
        account_id = parse_account_id(raw_id)
        account = self._repository.find_by_id(account_id)
        return SearchResult([account] if account else [])

    def search_by_email(self, fragment: str) -> SearchResult:
        """Return every account whose email contains ``fragment``."""
        return SearchResult(self._repository.find_by_email_fragment(fragment))

    def create_account(self, candidate: AccountInput) -> Account:
        """Validate and persist a new account under the next free id.

        Raises
        ------
        ValidationError
            A required field is missing or breaks a syntactic rule.
        ConflictError
            Another account already uses the email address.
        StorageError
            The store failed, or ids kept colliding with concurrent creates.
        """
        first_name = candidate.raw("first_name")
        last_name = candidate.raw("last_name")
        email_address = candidate.raw("email_address")

        violations = validate_account(first_name, last_name, email_address)
        if violations:
            raise ValidationError(violations)

        for attempt in range(1, MAX_ID_ATTEMPTS + 1):
            new_id = self._next_id()
            if self._repository.find_by_email(email_address) is not None:
                logger.info("create rejected: email already registered")
                raise ConflictError()

            now = self._clock()
            try:
                account = self._repository.insert(
                    Account(
                        id=new_id,
                        first_name=first_name,
                        last_name=last_name,
                        email_address=email_address,
                        created_at=now,
                        updated_at=now,
                    )
                )
            except IdentityCollisionError:
                logger.warning("account id %s taken concurrently (attempt %s)", new_id, attempt)
                continue
            logger.info("account %s created", account.id)
            return account

        raise StorageError("Unable to allocate an account id")

    def update_account(self, raw_id: str | int, candidate: AccountInput) -> UpdateResult:
        """Apply the set fields of ``candidate`` to an existing account.

        ``updated_at`` is stamped and persisted even when no field changes.
        """
        account_id = parse_account_id(raw_id)
        if account_id in self._restricted_ids:
            logger.info("update rejected: account %s is restricted", account_id)
            raise ForbiddenError(f"Account ID '{raw_id}' is restricted and cannot be updated")

        current = self._repository.find_by_id(account_id)
        if current is None:
            raise NotFoundError.invalid_id(raw_id)

        new_email = candidate.raw("email_address")
        if new_email is not None and new_email != current.email_address:
            holder = self._repository.find_by_email(new_email)
            if holder is not None and holder.id != current.id:
                logger.info("update of account %s rejected: email already registered", account_id)
                raise ConflictError()

        merged, changes = apply_changes(current, candidate)
        violations = validate_account(merged.first_name, merged.last_name, merged.email_address)
        if violations:
            raise ValidationError(violations)

        merged.updated_at = self._clock()
        persisted = self._repository.update(merged)
        if changes:
            logger.info("account %s updated: %s", account_id, ", ".join(changes))
        else:
            logger.info("account %s touched without field changes", account_id)
        return UpdateResult(account=persisted, changes=changes)

    def delete_account(self, raw_id: str | int) -> Account:
        """Remove an account and return the record as it was before deletion."""
        account_id = parse_account_id(raw_id)
        if account_id in self._restricted_ids:
            logger.info("delete rejected: account %s is restricted", account_id)
            raise ForbiddenError(f"Account ID '{raw_id}' is restricted and cannot be deleted")

        account = self._repository.find_by_id(account_id)
        if account is None:
            raise NotFoundError.invalid_id(raw_id)

        self._repository.remove(account_id)
        logger.info("account %s deleted", account_id)
        return account

    def _next_id(self) -> int:
        highest = self._repository.max_id()
        return (self._id_seed if highest is None else highest) + 1
