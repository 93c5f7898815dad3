from datetime import datetime, timezone
from unittest.mock import Mock, call

import pytest

from luminor.account.facade import (
    AccountCreatedEvent,
    AccountFacade,
    AccountInfoDTO,
    EventPublishError,
    RegistrationDTO,
)
from luminor.account.models import AccountCore, PartyMembership, PendingPartyLink, Role
from luminor.account.service import (
    AlreadyLinkedError,
    EmailAlreadyTakenError,
    PasswordTooShortError,
    PendingLinkNotFoundError,
    ValidationError,
)

NOW = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_account(**overrides):
    values = dict(
        id="acct-1",
        email="user@example.com",
        password_hash="placeholder",
        roles=[Role.USER],
        created_at=NOW,
    )
    values.update(overrides)
    return AccountCore(**values)


def test_set_active_party_delegates_to_service():
    svc = Mock()
    fac = AccountFacade(svc)
    assert fac.set_active_party("acct-1", "party-1") is None
    assert svc.set_active_party.call_args == call("acct-1", "party-1")


def test_link_party_to_account_delegates_to_service():
    svc = Mock()
    fac = AccountFacade(svc)
    fac.link_party_to_account("acct-1", "party-1", "org-1")
    assert svc.link_party_to_account.call_args == call("acct-1", "party-1", "org-1")


def test_link_party_to_account_already_linked():
    svc = Mock()
    svc.link_party_to_account.side_effect = AlreadyLinkedError()
    fac = AccountFacade(svc)
    with pytest.raises(AlreadyLinkedError):
        fac.link_party_to_account("acct-1", "party-1", "org-1")


def test_get_party_memberships_maps_correctly():
    svc = Mock()
    svc.get_party_memberships_for_account.return_value = [
        PartyMembership(account_id="acct-1", party_id="party-1", org_id="org-1", created_at=NOW)
    ]
    fac = AccountFacade(svc)
    memberships = fac.get_party_memberships_for_account("acct-1", "org-1")
    assert len(memberships) == 1
    assert memberships[0].party_id == "party-1"
    assert memberships[0].account_id == "acct-1"
    assert memberships[0].org_id == "org-1"
    assert memberships[0].created_at == NOW


def test_create_pending_party_link_delegates_to_service():
    svc = Mock()
    svc.create_pending_party_link.side_effect = lambda inv, party, org: PendingPartyLink(
        id="link-1", invitation_id=inv, party_id=party, org_id=org
    )
    fac = AccountFacade(svc)
    assert fac.create_pending_party_link("inv-1", "party-1", "org-1") == "link-1"
    assert svc.create_pending_party_link.call_args == call("inv-1", "party-1", "org-1")


def test_resolve_pending_party_link_delegates_to_service():
    svc = Mock()
    fac = AccountFacade(svc)
    fac.resolve_pending_party_link("inv-1", "acct-1")
    assert svc.resolve_pending_party_link.call_args == call("inv-1", "acct-1")


def test_resolve_pending_party_link_not_found():
    svc = Mock()
    svc.resolve_pending_party_link.side_effect = PendingLinkNotFoundError()
    fac = AccountFacade(svc)
    with pytest.raises(PendingLinkNotFoundError):
        fac.resolve_pending_party_link("inv-x", "acct-1")


def test_register_publishes_created_event():
    svc = Mock()
    svc.register.return_value = make_account()
    published = []
    fac = AccountFacade(svc, publish=published.append)
    password = "password"
    account_id = fac.register(RegistrationDTO(email="user@example.com", plain_password=password))
    assert account_id == "acct-1"
    assert published == [AccountCreatedEvent(account_id="acct-1", email="user@example.com")]
    assert svc.register.call_args == call("user@example.com", password)


def test_register_email_taken_becomes_validation_error():
    svc = Mock()
    svc.register.side_effect = EmailAlreadyTakenError()
    fac = AccountFacade(svc)
    with pytest.raises(ValidationError) as info:
        fac.register(RegistrationDTO(email="taken@example.com", plain_password="password"))
    assert info.value.key == "auth.validation.emailTaken"


def test_register_short_password_becomes_validation_error():
    svc = Mock()
    svc.register.side_effect = PasswordTooShortError()
    fac = AccountFacade(svc)
    with pytest.raises(ValidationError) as info:
        fac.register(RegistrationDTO(email="user@example.com", plain_password="password"))
    assert info.value.key == "auth.validation.passwordTooShort"


def test_register_falls_back_to_outbox_when_publish_fails():
    svc = Mock()
    svc.register.return_value = make_account()
    queued = []

    def failing_publish(event):
        raise RuntimeError("bus down")

    fac = AccountFacade(svc, publish=failing_publish, enqueue=queued.append)
    assert fac.register(RegistrationDTO(email="user@example.com", plain_password="password")) == "acct-1"
    assert queued == [AccountCreatedEvent(account_id="acct-1", email="user@example.com")]


def test_register_raises_when_publish_and_outbox_fail():
    svc = Mock()
    svc.register.return_value = make_account()

    def failing(event):
        raise RuntimeError("down")

    fac = AccountFacade(svc, publish=failing, enqueue=failing)
    with pytest.raises(EventPublishError, match="outbox enqueue failed"):
        fac.register(RegistrationDTO(email="user@example.com", plain_password="password"))


def test_register_raises_when_publish_fails_without_outbox():
    svc = Mock()
    svc.register.return_value = make_account()

    def failing(event):
        raise RuntimeError("down")

    fac = AccountFacade(svc, publish=failing)
    with pytest.raises(EventPublishError, match="publish AccountCreatedEvent"):
        fac.register(RegistrationDTO(email="user@example.com", plain_password="password"))


def test_account_info_lookups():
    svc = Mock()
    account = make_account(
        roles=[Role.USER, Role.ADMIN],
        currently_active_organization_id="org-9",
        currently_active_party_id="party-9",
        must_set_password=True,
    )
    svc.find_by_id.return_value = account
    svc.find_by_email.return_value = account
    svc.find_by_ids.return_value = [account]
    fac = AccountFacade(svc)
    expected = AccountInfoDTO(
        id="acct-1",
        email="user@example.com",
        roles=("user", "admin"),
        created_at=NOW,
        currently_active_organization_id="org-9",
        currently_active_party_id="party-9",
    )
    assert fac.get_account_info_by_id("acct-1") == expected
    assert fac.get_account_info_by_ids(["acct-1"]) == [expected]
    assert fac.get_active_org_id("acct-1") == "org-9"
    assert fac.get_account_email_by_id("acct-1") == "user@example.com"
    assert fac.must_set_password("user@example.com") is True
    assert expected.display_name() == "user@example.com"


def test_authenticate_maps_to_info():
    svc = Mock()
    svc.authenticate.return_value = make_account()
    fac = AccountFacade(svc)
    info = fac.authenticate("user@example.com", "password")
    assert info.id == "acct-1"
    assert info.roles == ("user",)


def test_set_organization_and_password_delegate():
    svc = Mock()
    fac = AccountFacade(svc)
    fac.set_active_organization("acct-1", "org-1")
    fac.set_password("acct-1", "password")
    assert svc.set_active_organization.call_args == call("acct-1", "org-1")
    assert svc.set_password.call_args == call("acct-1", "password")


def test_get_account_ids_for_party_delegates():
    svc = Mock()
    svc.get_account_ids_for_party.return_value = ["acct-1", "acct-2"]
    fac = AccountFacade(svc)
    assert fac.get_account_ids_for_party("party-1") == ["acct-1", "acct-2"]