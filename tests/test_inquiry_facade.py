from dataclasses import dataclass

import pytest

from luminor.inquiry.facade import InquiryFacade, NoRentalFoundError, SubmitInquiryDTO


@dataclass
class Rental:
    id: str
    subject_id: str
    tenant_party_id: str
    org_id: str


@dataclass
class Party:
    id: str
    party_kind: str


class FakeRentals:
    def __init__(self, rentals):
        self.rentals = rentals

    def list_rentals_by_tenant(self, tenant_party_id):
        return self.rentals


class FakeCases:
    def __init__(self):
        self.calls = 0
        self.last_dto = None

    def handle_inbound_inquiry(self, dto):
        self.calls += 1
        self.last_dto = dto
        return "workitem-1"


class FakeParties:
    def __init__(self, parties):
        self.parties = parties

    def list_parties_by_org_and_kind(self, org_id, kind):
        return [p for p in self.parties if p.party_kind == kind]


class FailingParties:
    def list_parties_by_org_and_kind(self, org_id, kind):
        raise RuntimeError("unavailable")


def rentals():
    return FakeRentals([Rental("rental-1", "subject-1", "tenant-1", "org-1")])


def dto():
    return SubmitInquiryDTO(tenant_party_id="tenant-1", org_id="org-1", body="My heating is broken")


def test_submit_inquiry_resolves_rental_and_creates_work_item():
    cases = FakeCases()
    parties = FakeParties([Party("pm-1", "property_manager"), Party("agent-1", "assistant")])
    facade = InquiryFacade(rentals(), cases, parties)

    assert facade.submit_inquiry(dto()) == "workitem-1"
    assert cases.calls == 1
    assert cases.last_dto.sender_party_id == "tenant-1"
    assert cases.last_dto.subject_id == "subject-1"
    assert cases.last_dto.body == "My heating is broken"
    assert cases.last_dto.operator_party_id == "pm-1"
    assert cases.last_dto.agent_party_id == "agent-1"


def test_missing_parties_leave_ids_empty():
    cases = FakeCases()
    InquiryFacade(rentals(), cases, FailingParties()).submit_inquiry(dto())
    assert cases.last_dto.operator_party_id == ""
    assert cases.last_dto.agent_party_id == ""


def test_no_rental_raises():
    cases = FakeCases()
    facade = InquiryFacade(FakeRentals([]), cases, FakeParties([]))
    with pytest.raises(NoRentalFoundError, match="tenant-1"):
        facade.submit_inquiry(dto())
    assert cases.calls == 0