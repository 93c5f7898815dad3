import sqlite3
from datetime import datetime, timezone

import pytest

from luminor.account.models import (
    AccountCore,
    PartyMembership,
    PendingPartyLink,
    Role,
    new_account,
)
from luminor.account.repository import SqliteAccountRepository
from luminor.account.service import (
    AccountNotFoundError,
    AccountService,
    InvalidCredentialsError,
    PendingLinkNotFoundError,
)

NOW = datetime(2025, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


class FixedClock:
    def now(self):
        return NOW


@pytest.fixture
def repo():
    conn = sqlite3.connect(":memory:")
    r = SqliteAccountRepository(conn)
    r.create_schema()
    yield r
    conn.close()


def test_create_and_find_by_id_round_trip(repo):
    account = new_account("test@example.com", "hash", NOW)
    account.add_role(Role.ADMIN)
    repo.create(account)

    found = repo.find_by_id(account.id)
    assert found == account
    assert found.currently_active_organization_id == ""
    assert found.roles == [Role.USER, Role.ADMIN]


def test_find_by_email(repo):
    account = new_account("a@example.com", "hash", NOW)
    repo.create(account)
    assert repo.find_by_email("a@example.com").id == account.id


def test_missing_account_raises(repo):
    with pytest.raises(AccountNotFoundError):
        repo.find_by_id("nope")
    with pytest.raises(AccountNotFoundError):
        repo.find_by_email("nobody@example.com")


def test_update_persists_fields(repo):
    account = new_account("a@example.com", "hash", NOW)
    repo.create(account)
    account.currently_active_organization_id = "org-123"
    account.currently_active_party_id = "party-42"
    account.must_set_password = True
    repo.update(account)

    found = repo.find_by_id(account.id)
    assert found.currently_active_organization_id == "org-123"
    assert found.currently_active_party_id == "party-42"
    assert found.must_set_password is True


def test_exists_checks(repo):
    account = new_account("a@example.com", "hash", NOW)
    repo.create(account)
    assert repo.exists_by_email("a@example.com") is True
    assert repo.exists_by_email("b@example.com") is False
    assert repo.exists_by_id(account.id) is True
    assert repo.exists_by_id("other") is False


def test_find_by_ids_returns_only_known(repo):
    a = new_account("a@example.com", "hash", NOW)
    b = new_account("b@example.com", "hash", NOW)
    repo.create(a)
    repo.create(b)
    found = repo.find_by_ids([a.id, "missing"])
    assert [x.id for x in found] == [a.id]
    assert repo.find_by_ids([]) == []


def test_unknown_roles_are_skipped(repo):
    repo._conn.execute(
        "INSERT INTO account_cores (id, email, password_hash, roles) VALUES (?, ?, ?, ?)",
        ("acct-1", "a@example.com", "hash", '["user", "superhero"]'),
    )
    assert repo.find_by_id("acct-1").roles == [Role.USER]


def test_party_memberships(repo):
    repo.create_party_membership(PartyMembership("acct-1", "party-1", "org-1", NOW))
    repo.create_party_membership(PartyMembership("acct-1", "party-1", "org-1", NOW))
    repo.create_party_membership(PartyMembership("acct-1", "party-2", "org-2", NOW))
    repo.create_party_membership(PartyMembership("acct-2", "party-1", "org-1", NOW))

    in_org1 = repo.find_party_memberships_by_account_and_org("acct-1", "org-1")
    assert in_org1 == [PartyMembership("acct-1", "party-1", "org-1", NOW)]
    assert repo.exists_party_membership("acct-1", "party-2") is True
    assert repo.exists_party_membership("acct-2", "party-2") is False
    assert sorted(repo.find_account_ids_by_party_id("party-1")) == ["acct-1", "acct-2"]


def test_pending_links(repo):
    link = PendingPartyLink("link-1", "inv-1", "party-1", "org-1", NOW)
    repo.create_pending_party_link(link)
    assert repo.find_pending_party_link_by_invitation_id("inv-1") == link

    repo.delete_pending_party_link("link-1")
    with pytest.raises(PendingLinkNotFoundError):
        repo.find_pending_party_link_by_invitation_id("inv-1")


def test_transaction_rolls_back_on_error(repo):
    account = new_account("a@example.com", "hash", NOW)
    with pytest.raises(RuntimeError):
        with repo.transaction() as tx:
            tx.create(account)
            raise RuntimeError("boom")
    assert repo.exists_by_id(account.id) is False


def test_transaction_commits(repo):
    account = new_account("a@example.com", "hash", NOW)
    with repo.transaction() as tx:
        tx.create(account)
    assert isinstance(repo.find_by_id(account.id), AccountCore)
    assert repo.find_by_id(account.id).email == "a@example.com"


def test_service_over_repository(repo):
    svc = AccountService(repo, FixedClock(), bcrypt_rounds=4)
    password = "password"
    account = svc.register("Test@Example.com", password)
    assert svc.authenticate("test@example.com", password).id == account.id
    with pytest.raises(InvalidCredentialsError):
        svc.authenticate("test@example.com", "secret")