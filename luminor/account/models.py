"""Account entities, roles and party links."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    """A role an account can hold."""

    USER = "user"
    ADMIN = "admin"

    def __str__(self) -> str:
        return self.value


def parse_role(value: str) -> Role | None:
    """Return the role named by ``value``, or None if there is no such role."""
    try:
        return Role(value)
    except ValueError:
        return None


@dataclass
class AccountCore:
    """The core entity representing a user account."""

    id: str
    email: str
    password_hash: str
    roles: list[Role] = field(default_factory=list)
    must_set_password: bool = False
    currently_active_organization_id: str = ""
    currently_active_party_id: str = ""
    created_at: datetime | None = None

    def has_role(self, role: Role) -> bool:
        """Whether the account holds ``role``."""
        return role in self.roles

    def add_role(self, role: Role) -> None:
        """Add ``role`` unless the account already holds it."""
        if not self.has_role(role):
            self.roles.append(role)

    def remove_role(self, role: Role) -> None:
        """Remove every occurrence of ``role``."""
        self.roles = [r for r in self.roles if r != role]

    def is_admin(self) -> bool:
        """Whether the account holds the admin role."""
        return self.has_role(Role.ADMIN)

    def role_strings(self) -> list[str]:
        """The roles as plain strings, in order."""
        return [str(r) for r in self.roles]

    def display_name(self) -> str:
        """A display-friendly name; currently the e-mail address."""
        return self.email


def new_account(email: str, password_hash: str, now: datetime) -> AccountCore:
    """Create an account with a fresh UUID, a normalized e-mail and the user role."""
    return AccountCore(
        id=str(uuid.uuid4()),
        email=email.strip().lower(),
        password_hash=password_hash,
        roles=[Role.USER],
        created_at=now,
    )


@dataclass(frozen=True)
class PartyMembership:
    """Links an account to a party within an organization."""

    account_id: str
    party_id: str
    org_id: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class PendingPartyLink:
    """A deferred party-account link held for an invitation."""

    id: str
    invitation_id: str
    party_id: str
    org_id: str
    created_at: datetime | None = None