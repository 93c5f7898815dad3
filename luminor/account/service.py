"""Account business logic: registration, authentication and party links."""

from __future__ import annotations

import dataclasses
import uuid
from datetime import datetime
from typing import Protocol

import bcrypt

from .models import AccountCore, PartyMembership, PendingPartyLink, new_account

MIN_PASSWORD_LENGTH = 8
DEFAULT_BCRYPT_ROUNDS = 10


class AccountError(Exception):
    """Base class for account errors."""

    default_message = "account error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class EmailAlreadyTakenError(AccountError):
    default_message = "email already taken"


class InvalidCredentialsError(AccountError):
    default_message = "invalid credentials"


class AccountNotFoundError(AccountError):
    default_message = "account not found"


class PasswordTooShortError(AccountError):
    default_message = "password must be at least 8 characters"


class AlreadyLinkedError(AccountError):
    default_message = "account already linked to this party"


class PendingLinkNotFoundError(AccountError):
    default_message = "pending party link not found"


class ValidationError(AccountError):
    """A user-facing validation failure carrying a translation key."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key


class Clock(Protocol):
    def now(self) -> datetime: ...


class Repository(Protocol):
    def find_by_id(self, account_id: str) -> AccountCore: ...
    def find_by_email(self, email: str) -> AccountCore: ...
    def create(self, account: AccountCore) -> None: ...
    def update(self, account: AccountCore) -> None: ...
    def exists_by_email(self, email: str) -> bool: ...
    def exists_by_id(self, account_id: str) -> bool: ...
    def find_by_ids(self, ids: list[str]) -> list[AccountCore]: ...
    def create_party_membership(self, membership: PartyMembership) -> None: ...
    def find_party_memberships_by_account_and_org(
        self, account_id: str, org_id: str
    ) -> list[PartyMembership]: ...
    def exists_party_membership(self, account_id: str, party_id: str) -> bool: ...
    def find_account_ids_by_party_id(self, party_id: str) -> list[str]: ...
    def create_pending_party_link(self, link: PendingPartyLink) -> None: ...
    def find_pending_party_link_by_invitation_id(self, invitation_id: str) -> PendingPartyLink: ...
    def delete_pending_party_link(self, link_id: str) -> None: ...


def _check_length(plain_password: str) -> None:
    if len(plain_password.encode("utf-8")) < MIN_PASSWORD_LENGTH:
        raise PasswordTooShortError()


class AccountService:
    """Core account operations over a repository."""

    def __init__(self, repo: Repository, clock: Clock, bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        self.repo = repo
        self.clock = clock
        self.bcrypt_rounds = bcrypt_rounds

    def _hash(self, plain_password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.bcrypt_rounds)
        return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("ascii")

    def register(self, email: str, plain_password: str) -> AccountCore:
        """Create an account with a hashed password."""
        _check_length(plain_password)
        if self.repo.exists_by_email(email):
            raise EmailAlreadyTakenError()
        account = new_account(email, self._hash(plain_password), self.clock.now())
        self.repo.create(account)
        return account

    def authenticate(self, email: str, plain_password: str) -> AccountCore:
        """Verify credentials and return the account."""
        try:
            account = self.repo.find_by_email(email)
        except AccountNotFoundError:
            raise InvalidCredentialsError() from None
        try:
            ok = bcrypt.checkpw(plain_password.encode("utf-8"), account.password_hash.encode("utf-8"))
        except ValueError:
            ok = False
        if not ok:
            raise InvalidCredentialsError()
        return account

    def set_password(self, account_id: str, new_plain_password: str) -> None:
        """Replace the password and clear the must-set-password flag."""
        _check_length(new_plain_password)
        account = self.repo.find_by_id(account_id)
        self.repo.update(
            dataclasses.replace(
                account, password_hash=self._hash(new_plain_password), must_set_password=False
            )
        )

    def set_active_organization(self, account_id: str, org_id: str) -> None:
        account = self.repo.find_by_id(account_id)
        self.repo.update(dataclasses.replace(account, currently_active_organization_id=org_id))

    def find_by_id(self, account_id: str) -> AccountCore:
        return self.repo.find_by_id(account_id)

    def find_by_email(self, email: str) -> AccountCore:
        return self.repo.find_by_email(email)

    def find_by_ids(self, ids: list[str]) -> list[AccountCore]:
        return self.repo.find_by_ids(ids)

    def set_active_party(self, account_id: str, party_id: str) -> None:
        account = self.repo.find_by_id(account_id)
        self.repo.update(dataclasses.replace(account, currently_active_party_id=party_id))

    def link_party_to_account(self, account_id: str, party_id: str, org_id: str) -> None:
        """Create a membership linking an account to a party."""
        self.repo.create_party_membership(
            PartyMembership(
                account_id=account_id,
                party_id=party_id,
                org_id=org_id,
                created_at=self.clock.now(),
            )
        )

    def get_party_memberships_for_account(self, account_id: str, org_id: str) -> list[PartyMembership]:
        return self.repo.find_party_memberships_by_account_and_org(account_id, org_id)

    def get_account_ids_for_party(self, party_id: str) -> list[str]:
        return self.repo.find_account_ids_by_party_id(party_id)

    def create_pending_party_link(self, invitation_id: str, party_id: str, org_id: str) -> PendingPartyLink:
        """Store a deferred party link for an invitation."""
        link = PendingPartyLink(
            id=str(uuid.uuid4()),
            invitation_id=invitation_id,
            party_id=party_id,
            org_id=org_id,
            created_at=self.clock.now(),
        )
        self.repo.create_pending_party_link(link)
        return link

    def resolve_pending_party_link(self, invitation_id: str, account_id: str) -> None:
        """Link the invitation's party to the account and drop the pending link."""
        link = self.repo.find_pending_party_link_by_invitation_id(invitation_id)
        self.link_party_to_account(account_id, link.party_id, link.org_id)
        self.repo.delete_pending_party_link(link.id)