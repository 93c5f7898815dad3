"""Cross-module entry point for account operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Protocol

from .models import AccountCore, PartyMembership, PendingPartyLink
from .service import EmailAlreadyTakenError, PasswordTooShortError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountInfoDTO:
    """Account data shared with other modules."""

    id: str
    email: str
    roles: tuple[str, ...] = ()
    created_at: datetime | None = None
    currently_active_organization_id: str = ""
    currently_active_party_id: str = ""

    def display_name(self) -> str:
        return self.email


@dataclass(frozen=True)
class PartyMembershipDTO:
    account_id: str
    party_id: str
    org_id: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class RegistrationDTO:
    email: str
    plain_password: str
    must_set_password: bool = False


@dataclass(frozen=True)
class AccountCreatedEvent:
    """Published when a new account is registered."""

    account_id: str
    email: str


class EventPublishError(Exception):
    """Publishing an account event failed and could not be queued."""


class AccountServiceProtocol(Protocol):
    def register(self, email: str, plain_password: str) -> AccountCore: ...
    def authenticate(self, email: str, plain_password: str) -> AccountCore: ...
    def find_by_email(self, email: str) -> AccountCore: ...
    def find_by_id(self, account_id: str) -> AccountCore: ...
    def find_by_ids(self, ids: list[str]) -> list[AccountCore]: ...
    def set_active_organization(self, account_id: str, org_id: str) -> None: ...
    def set_password(self, account_id: str, new_plain_password: str) -> None: ...
    def set_active_party(self, account_id: str, party_id: str) -> None: ...
    def link_party_to_account(self, account_id: str, party_id: str, org_id: str) -> None: ...
    def get_party_memberships_for_account(self, account_id: str, org_id: str) -> list[PartyMembership]: ...
    def get_account_ids_for_party(self, party_id: str) -> list[str]: ...
    def create_pending_party_link(self, invitation_id: str, party_id: str, org_id: str) -> PendingPartyLink: ...
    def resolve_pending_party_link(self, invitation_id: str, account_id: str) -> None: ...


def _to_info(account: AccountCore) -> AccountInfoDTO:
    return AccountInfoDTO(
        id=account.id,
        email=account.email,
        roles=tuple(account.role_strings()),
        created_at=account.created_at,
        currently_active_organization_id=account.currently_active_organization_id,
        currently_active_party_id=account.currently_active_party_id,
    )


class AccountFacade:
    """Account use cases exposed to the rest of the application.

    ``publish`` dispatches an event synchronously and raises on failure;
    ``enqueue`` stores an event for later delivery when publishing fails.
    """

    def __init__(
        self,
        service: AccountServiceProtocol,
        publish: Callable[[AccountCreatedEvent], None] | None = None,
        enqueue: Callable[[AccountCreatedEvent], None] | None = None,
    ) -> None:
        self.service = service
        self.publish = publish
        self.enqueue = enqueue

    def register(self, dto: RegistrationDTO) -> str:
        """Register an account, announce it, and return its id."""
        try:
            account = self.service.register(dto.email, dto.plain_password)
        except EmailAlreadyTakenError:
            raise ValidationError("auth.validation.emailTaken") from None
        except PasswordTooShortError:
            raise ValidationError("auth.validation.passwordTooShort") from None

        event = AccountCreatedEvent(account_id=account.id, email=account.email)
        if self.publish is not None:
            try:
                self.publish(event)
            except Exception as err:
                self._fall_back_to_outbox(event, err)
        return account.id

    def _fall_back_to_outbox(self, event: AccountCreatedEvent, err: Exception) -> None:
        if self.enqueue is None:
            raise EventPublishError(f"publish AccountCreatedEvent: {err}") from err
        try:
            self.enqueue(event)
        except Exception as outbox_err:
            raise EventPublishError(
                f"publish AccountCreatedEvent: {err} (outbox enqueue failed: {outbox_err})"
            ) from err
        logger.warning(
            "account created event publish failed; enqueued to outbox (error=%s, account_id=%s)",
            err,
            event.account_id,
        )

    def authenticate(self, email: str, password: str) -> AccountInfoDTO:
        return _to_info(self.service.authenticate(email, password))

    def must_set_password(self, email: str) -> bool:
        return self.service.find_by_email(email).must_set_password

    def get_account_info_by_id(self, account_id: str) -> AccountInfoDTO:
        return _to_info(self.service.find_by_id(account_id))

    def get_account_info_by_ids(self, ids: list[str]) -> list[AccountInfoDTO]:
        return [_to_info(a) for a in self.service.find_by_ids(ids)]

    def get_active_org_id(self, account_id: str) -> str:
        return self.service.find_by_id(account_id).currently_active_organization_id

    def get_account_email_by_id(self, account_id: str) -> str:
        return self.service.find_by_id(account_id).email

    def set_active_organization(self, account_id: str, org_id: str) -> None:
        self.service.set_active_organization(account_id, org_id)

    def set_password(self, account_id: str, new_password: str) -> None:
        self.service.set_password(account_id, new_password)

    def set_active_party(self, account_id: str, party_id: str) -> None:
        self.service.set_active_party(account_id, party_id)

    def link_party_to_account(self, account_id: str, party_id: str, org_id: str) -> None:
        self.service.link_party_to_account(account_id, party_id, org_id)

    def get_party_memberships_for_account(self, account_id: str, org_id: str) -> list[PartyMembershipDTO]:
        return [
            PartyMembershipDTO(
                account_id=m.account_id,
                party_id=m.party_id,
                org_id=m.org_id,
                created_at=m.created_at,
            )
            for m in self.service.get_party_memberships_for_account(account_id, org_id)
        ]

    def get_account_ids_for_party(self, party_id: str) -> list[str]:
        return self.service.get_account_ids_for_party(party_id)

    def create_pending_party_link(self, invitation_id: str, party_id: str, org_id: str) -> str:
        return self.service.create_pending_party_link(invitation_id, party_id, org_id).id

    def resolve_pending_party_link(self, invitation_id: str, account_id: str) -> None:
        self.service.resolve_pending_party_link(invitation_id, account_id)