"""Database repository for customer account records."""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from typing import Iterator

import psycopg
from psycopg import errors
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool

from .domain.account import Account
from .domain.errors import ConflictError, IdentityCollisionError, NotFoundError, StorageError

logger = logging.getLogger(__name__)

EMAIL_CONSTRAINT = "account_email_address_key"
PRIMARY_KEY_CONSTRAINT = "account_pkey"

_COLUMNS = "id, first_name, last_name, email_address, created_at, updated_at"
_CONSTRAINT_IN_MESSAGE = re.compile(r'constraint "([^"]+)"')

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS account (
        id INTEGER NOT NULL,
        first_name VARCHAR(100) NOT NULL,
        last_name VARCHAR(100) NOT NULL,
        email_address VARCHAR(100) NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ,
        CONSTRAINT account_pkey PRIMARY KEY (id),
        CONSTRAINT account_email_address_key UNIQUE (email_address)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS account_id_watermark (
        singleton BOOLEAN PRIMARY KEY DEFAULT TRUE CHECK (singleton),
        last_id INTEGER NOT NULL
    )
    """,
)


def _constraint_name(exc: psycopg.Error) -> str | None:
    """Return the violated constraint, from diagnostics or the server message."""
    name = exc.diag.constraint_name
    if name:
        return name
    match = _CONSTRAINT_IN_MESSAGE.search(str(exc))
    return match.group(1) if match else None


class AccountRepository:
    """Postgres-backed account persistence.

    Reads are point-in-time snapshots. Writes commit one record at a time and
    rely on the table constraints to reject duplicate emails and ids.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    @contextmanager
    def _translate_errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except psycopg.Error as exc:
            logger.error("account store %s failed: %s", operation, exc)
            raise StorageError() from exc

    def ensure_schema(self) -> None:
        """Create the account tables when they do not exist yet."""
        with self._translate_errors("schema bootstrap"):
            with self._pool.connection() as conn:
                with conn.cursor() as cur:
                    for statement in SCHEMA_STATEMENTS:
                        cur.execute(statement)
                conn.commit()
        logger.info("account schema ready")

    def find_by_id(self, account_id: int) -> Account | None:
        """Fetch the account holding ``account_id`` or return ``None``."""
        rows = self._select(f"SELECT {_COLUMNS} FROM account WHERE id = %s", (account_id,))
        return rows[0] if rows else None

    def find_by_email(self, email_address: str) -> Account | None:
        """Fetch the account registered with exactly ``email_address``."""
        rows = self._select(
            f"SELECT {_COLUMNS} FROM account WHERE email_address = %s", (email_address,)
        )
        return rows[0] if rows else None

    def find_by_email_fragment(self, fragment: str) -> list[Account]:
        """Return accounts whose email contains ``fragment`` (case-sensitive)."""
        return self._select(
            f"SELECT {_COLUMNS} FROM account WHERE strpos(email_address, %s) > 0 ORDER BY id",
            (fragment,),
        )

    def find_all(self) -> list[Account]:
        return self._select(f"SELECT {_COLUMNS} FROM account ORDER BY id", ())

    def max_id(self) -> int | None:
        """Return the highest id ever assigned, or ``None`` for a fresh store."""
        with self._translate_errors("max id"):
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(
                        """
                        SELECT GREATEST(
                            (SELECT MAX(id) FROM account),
                            (SELECT last_id FROM account_id_watermark WHERE singleton)
                        )
                        """
                    )
                    row = cur.fetchone()
        return row[0] if row else None

    def insert(self, account: Account) -> Account:
        """Persist a new account and advance the id watermark in one commit."""
        with self._translate_errors("insert"):
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    try:
                        cur.execute(
                            f"""
                            INSERT INTO account ({_COLUMNS})
                            VALUES (%s, %s, %s, %s, %s, %s)
                            RETURNING {_COLUMNS}
                            """,
                            (
                                account.id,
                                account.first_name,
                                account.last_name,
                                account.email_address,
                                account.created_at,
                                account.updated_at,
                            ),
                        )
                    except errors.UniqueViolation as exc:
                        conn.rollback()
                        if _constraint_name(exc) == PRIMARY_KEY_CONSTRAINT:
                            raise IdentityCollisionError(account.id) from exc
                        raise ConflictError() from exc
                    record = cur.fetchone()
                    cur.execute(
                        """
                        INSERT INTO account_id_watermark (singleton, last_id)
                        VALUES (TRUE, %s)
                        ON CONFLICT (singleton)
                        DO UPDATE SET last_id = GREATEST(account_id_watermark.last_id, EXCLUDED.last_id)
                        """,
                        (account.id,),
                    )
                conn.commit()
        return self._map_record(record)

    def update(self, account: Account) -> Account:
        """Write the mutable fields and ``updated_at`` of an existing account."""
        with self._translate_errors("update"):
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    try:
                        cur.execute(
                            f"""
                            UPDATE account
                            SET first_name = %s, last_name = %s, email_address = %s, updated_at = %s
                            WHERE id = %s
                            RETURNING {_COLUMNS}
                            """,
                            (
                                account.first_name,
                                account.last_name,
                                account.email_address,
                                account.updated_at,
                                account.id,
                            ),
                        )
                    except errors.UniqueViolation as exc:
                        conn.rollback()
                        raise ConflictError() from exc
                    record = cur.fetchone()
                    if record is None:
                        conn.rollback()
                        raise NotFoundError.invalid_id(account.id)
                conn.commit()
        return self._map_record(record)

    def remove(self, account_id: int) -> None:
        """Delete the account holding ``account_id``."""
        with self._translate_errors("remove"):
            with self._pool.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("DELETE FROM account WHERE id = %s", (account_id,))
                    deleted = cur.rowcount
                if not deleted:
                    conn.rollback()
                    raise NotFoundError.invalid_id(account_id)
                conn.commit()

    def _select(self, query: str, params: tuple) -> list[Account]:
        with self._translate_errors("read"):
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(query, params)
                    rows = cur.fetchall()
        return [self._map_record(row) for row in rows]

    def _map_record(self, row: tuple) -> Account:
        """Convert a raw database tuple into the domain ``Account`` dataclass."""
        return Account(
            id=row[0],
            first_name=row[1],
            last_name=row[2],
            email_address=row[3],
            created_at=row[4],
            updated_at=row[5],
        )
