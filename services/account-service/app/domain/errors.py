"""Typed failures raised by the account workflows."""

from __future__ import annotations

from .validation import Violation


class AccountError(Exception):
    """Base class for every outcome that is not a success."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AccountError):
    """One or more fields failed the syntactic checks."""

    def __init__(self, violations: list[Violation]) -> None:
        self.violations = list(violations)
        details = "; ".join(violation.message for violation in self.violations)
        super().__init__(f"Validation failed: {details}")


class MalformedInputError(AccountError):
    """The request body is not a usable account object."""


class ConflictError(AccountError):
    """The email address already belongs to another account."""

    def __init__(
        self, message: str = "This email address is already registered to an existing account"
    ) -> None:
        super().__init__(message)


class NotFoundError(AccountError):
    """The account id is malformed or no account holds it."""

    @classmethod
    def invalid_id(cls, raw_id: object) -> "NotFoundError":
        return cls(f"'{raw_id}' is not a valid account Id")


class ForbiddenError(AccountError):
    """The account id is restricted."""


class StorageError(AccountError):
    """The record store failed; details stay in the logs."""

    def __init__(self, message: str = "The account store is unavailable") -> None:
        super().__init__(message)


class IdentityCollisionError(StorageError):
    """Another writer committed the same account id first."""

    def __init__(self, account_id: int) -> None:
        super().__init__(f"account id {account_id} is already taken")
        self.account_id = account_id
