"""SQLite-backed persistence for accounts, party memberships and pending links."""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from .models import AccountCore, PartyMembership, PendingPartyLink, parse_role
from .service import AccountNotFoundError, PendingLinkNotFoundError

_SCHEMA = """
CREATE TABLE IF NOT EXISTS account_cores (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    roles TEXT NOT NULL DEFAULT '[]',
    must_set_password INTEGER NOT NULL DEFAULT 0,
    currently_active_organization_id TEXT,
    currently_active_party_id TEXT,
    created_at TEXT
);
CREATE TABLE IF NOT EXISTS account_party_memberships (
    account_id TEXT NOT NULL,
    party_id TEXT NOT NULL,
    org_id TEXT NOT NULL,
    created_at TEXT,
    PRIMARY KEY (account_id, party_id)
);
CREATE TABLE IF NOT EXISTS account_party_pending_links (
    id TEXT PRIMARY KEY,
    invitation_id TEXT NOT NULL,
    party_id TEXT NOT NULL,
    org_id TEXT NOT NULL,
    created_at TEXT
);
"""

_ACCOUNT_COLUMNS = (
    "id, email, password_hash, roles, must_set_password, "
    "currently_active_organization_id, currently_active_party_id, created_at"
)


def _to_text(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _from_text(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _none_if_empty(value: str) -> str | None:
    return value or None


def _scan_account(row: tuple[Any, ...]) -> AccountCore:
    (account_id, email, password_hash, roles_json, must_set, org_id, party_id, created_at) = row
    roles = [role for role in map(parse_role, json.loads(roles_json)) if role is not None]
    return AccountCore(
        id=account_id,
        email=email,
        password_hash=password_hash,
        roles=roles,
        must_set_password=bool(must_set),
        currently_active_organization_id=org_id or "",
        currently_active_party_id=party_id or "",
        created_at=_from_text(created_at),
    )


class SqliteAccountRepository:
    """Account repository over an sqlite3 connection."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._conn = connection
        self._in_tx = False

    def create_schema(self) -> None:
        """Create the account tables if they do not exist."""
        self._conn.executescript(_SCHEMA)

    @contextmanager
    def transaction(self) -> Iterator[SqliteAccountRepository]:
        """Run the enclosed operations in one transaction, rolling back on error."""
        if self._in_tx:
            yield self
            return
        self._in_tx = True
        try:
            yield self
        except BaseException:
            self._conn.rollback()
            raise
        else:
            self._conn.commit()
        finally:
            self._in_tx = False

    def _write(self, sql: str, params: tuple[Any, ...]) -> None:
        self._conn.execute(sql, params)
        if not self._in_tx:
            self._conn.commit()

    def _find_one(self, column: str, value: str) -> AccountCore:
        row = self._conn.execute(
            f"SELECT {_ACCOUNT_COLUMNS} FROM account_cores WHERE {column} = ?", (value,)
        ).fetchone()
        if row is None:
            raise AccountNotFoundError()
        return _scan_account(row)

    def find_by_id(self, account_id: str) -> AccountCore:
        return self._find_one("id", account_id)

    def find_by_email(self, email: str) -> AccountCore:
        return self._find_one("email", email)

    def create(self, account: AccountCore) -> None:
        self._write(
            f"INSERT INTO account_cores ({_ACCOUNT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                account.id,
                account.email,
                account.password_hash,
                json.dumps(account.role_strings()),
                int(account.must_set_password),
                _none_if_empty(account.currently_active_organization_id),
                _none_if_empty(account.currently_active_party_id),
                _to_text(account.created_at),
            ),
        )

    def update(self, account: AccountCore) -> None:
        self._write(
            "UPDATE account_cores SET email = ?, password_hash = ?, roles = ?, "
            "must_set_password = ?, currently_active_organization_id = ?, "
            "currently_active_party_id = ? WHERE id = ?",
            (
                account.email,
                account.password_hash,
                json.dumps(account.role_strings()),
                int(account.must_set_password),
                _none_if_empty(account.currently_active_organization_id),
                _none_if_empty(account.currently_active_party_id),
                account.id,
            ),
        )

    def _exists(self, sql: str, params: tuple[Any, ...]) -> bool:
        return self._conn.execute(sql, params).fetchone() is not None

    def exists_by_email(self, email: str) -> bool:
        return self._exists("SELECT 1 FROM account_cores WHERE email = ?", (email,))

    def exists_by_id(self, account_id: str) -> bool:
        return self._exists("SELECT 1 FROM account_cores WHERE id = ?", (account_id,))

    def find_by_ids(self, ids: list[str]) -> list[AccountCore]:
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        rows = self._conn.execute(
            f"SELECT {_ACCOUNT_COLUMNS} FROM account_cores WHERE id IN ({placeholders})",
            tuple(ids),
        ).fetchall()
        return [_scan_account(row) for row in rows]

    def create_party_membership(self, membership: PartyMembership) -> None:
        """Insert a membership; an existing (account, party) pair is left as it is."""
        self._write(
            "INSERT INTO account_party_memberships (account_id, party_id, org_id, created_at) "
            "VALUES (?, ?, ?, ?) ON CONFLICT (account_id, party_id) DO NOTHING",
            (
                membership.account_id,
                membership.party_id,
                membership.org_id,
                _to_text(membership.created_at),
            ),
        )

    def find_party_memberships_by_account_and_org(
        self, account_id: str, org_id: str
    ) -> list[PartyMembership]:
        rows = self._conn.execute(
            "SELECT account_id, party_id, org_id, created_at FROM account_party_memberships "
            "WHERE account_id = ? AND org_id = ?",
            (account_id, org_id),
        ).fetchall()
        return [
            PartyMembership(account_id=a, party_id=p, org_id=o, created_at=_from_text(c))
            for a, p, o, c in rows
        ]

    def exists_party_membership(self, account_id: str, party_id: str) -> bool:
        return self._exists(
            "SELECT 1 FROM account_party_memberships WHERE account_id = ? AND party_id = ?",
            (account_id, party_id),
        )

    def find_account_ids_by_party_id(self, party_id: str) -> list[str]:
        rows = self._conn.execute(
            "SELECT account_id FROM account_party_memberships WHERE party_id = ?", (party_id,)
        ).fetchall()
        return [account_id for (account_id,) in rows]

    def create_pending_party_link(self, link: PendingPartyLink) -> None:
        self._write(
            "INSERT INTO account_party_pending_links (id, invitation_id, party_id, org_id, created_at) "
            "VALUES (?, ?, ?, ?, ?)",
            (link.id, link.invitation_id, link.party_id, link.org_id, _to_text(link.created_at)),
        )

    def find_pending_party_link_by_invitation_id(self, invitation_id: str) -> PendingPartyLink:
        row = self._conn.execute(
            "SELECT id, invitation_id, party_id, org_id, created_at "
            "FROM account_party_pending_links WHERE invitation_id = ?",
            (invitation_id,),
        ).fetchone()
        if row is None:
            raise PendingLinkNotFoundError()
        link_id, inv_id, party_id, org_id, created_at = row
        return PendingPartyLink(
            id=link_id,
            invitation_id=inv_id,
            party_id=party_id,
            org_id=org_id,
            created_at=_from_text(created_at),
        )

    def delete_pending_party_link(self, link_id: str) -> None:
        self._write("DELETE FROM account_party_pending_links WHERE id = ?", (link_id,))