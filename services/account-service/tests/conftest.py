from __future__ import annotations

import dataclasses
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api import routes
from app.api.errors import install_error_handlers
from app.domain.account import Account
from app.domain.errors import ConflictError, IdentityCollisionError, NotFoundError, StorageError
from app.domain.service import AccountService

RESTRICTED_IDS = frozenset({200, 201, 202, 203})


class FakeRepository:
    """In-memory repository mimicking Postgres-backed behaviors."""

    def __init__(self) -> None:
        self._accounts: dict[int, Account] = {}
        self._watermark: int | None = None
        self.racing_ids: set[int] = set()
        self.racing_emails: set[str] = set()
        self.unavailable = False
        self.writes = 0

    def add(self, account: Account) -> Account:
        """Seed a record directly, bypassing the service."""
        self._accounts[account.id] = dataclasses.replace(account)
        self._watermark = max(self._watermark or account.id, account.id)
        return account

    def _check_available(self) -> None:
        if self.unavailable:
            raise StorageError()

    def find_by_id(self, account_id: int) -> Account | None:
        self._check_available()
        account = self._accounts.get(account_id)
        return dataclasses.replace(account) if account else None

    def find_by_email(self, email_address: str) -> Account | None:
        self._check_available()
        for account in self._accounts.values():
            if account.email_address == email_address:
                return dataclasses.replace(account)
        return None

    def find_by_email_fragment(self, fragment: str) -> list[Account]:
        self._check_available()
        return [
            dataclasses.replace(account)
            for account in sorted(self._accounts.values(), key=lambda a: a.id)
            if fragment in account.email_address
        ]

    def find_all(self) -> list[Account]:
        self._check_available()
        return [dataclasses.replace(a) for a in sorted(self._accounts.values(), key=lambda a: a.id)]

    def max_id(self) -> int | None:
        self._check_available()
        candidates = [*self._accounts, *([self._watermark] if self._watermark is not None else [])]
        return max(candidates) if candidates else None

    def insert(self, account: Account) -> Account:
        self._check_available()
        if account.id in self.racing_ids:
            # another writer commits this id first
            self.racing_ids.discard(account.id)
            self.add(
                Account(
                    id=account.id,
                    first_name="Racing",
                    last_name="Writer",
                    email_address=f"racer{account.id}@example.com",
                )
            )
            raise IdentityCollisionError(account.id)
        if account.email_address in self.racing_emails:
            # another writer commits this email between the check and the insert
            self.racing_emails.discard(account.email_address)
            racer_id = max(self._accounts, default=account.id) + 50
            self.add(
                Account(
                    id=racer_id,
                    first_name="Racing",
                    last_name="Writer",
                    email_address=account.email_address,
                )
            )
            raise ConflictError()
        if account.id in self._accounts:
            raise IdentityCollisionError(account.id)
        if any(a.email_address == account.email_address for a in self._accounts.values()):
            raise ConflictError()
        self.writes += 1
        return dataclasses.replace(self.add(account))

    def update(self, account: Account) -> Account:
        self._check_available()
        if account.id not in self._accounts:
            raise NotFoundError.invalid_id(account.id)
        for other in self._accounts.values():
            if other.id != account.id and other.email_address == account.email_address:
                raise ConflictError()
        self.writes += 1
        self._accounts[account.id] = dataclasses.replace(account)
        return dataclasses.replace(account)

    def remove(self, account_id: int) -> None:
        self._check_available()
        if account_id not in self._accounts:
            raise NotFoundError.invalid_id(account_id)
        self.writes += 1
        del self._accounts[account_id]


class FakeClock:
    """Deterministic clock advancing one second per reading."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 2, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def service(repository: FakeRepository, clock: FakeClock) -> AccountService:
    return AccountService(repository, restricted_ids=RESTRICTED_IDS, id_seed=100, clock=clock)


@pytest.fixture
def api_client(service: AccountService):
    """Provide a FastAPI test client with isolated state."""
    app = FastAPI()
    app.include_router(routes.router)
    install_error_handlers(app)
    app.state.account_service = service

    with TestClient(app, raise_server_exceptions=False) as client:
        yield client, service
