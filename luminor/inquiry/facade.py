"""Tenant inquiries: route a tenant's message into case handling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from luminor.casehandling.facade import InquiryDTO

PARTY_KIND_PROPERTY_MANAGER = "property_manager"
PARTY_KIND_ASSISTANT = "assistant"


@dataclass(frozen=True)
class SubmitInquiryDTO:
    """A tenant's inquiry."""

    tenant_party_id: str
    org_id: str
    body: str


class NoRentalFoundError(LookupError):
    """The tenant has no rental to attach an inquiry to."""


class _Rentals(Protocol):
    def list_rentals_by_tenant(self, tenant_party_id: str) -> list[Any]: ...


class _Cases(Protocol):
    def handle_inbound_inquiry(self, dto: InquiryDTO) -> str: ...


class _Parties(Protocol):
    def list_parties_by_org_and_kind(self, org_id: str, kind: str) -> list[Any]: ...


class InquiryFacade:
    """Resolves a tenant's rental and parties and opens a case."""

    def __init__(self, rentals: _Rentals, cases: _Cases, parties: _Parties) -> None:
        self.rentals = rentals
        self.cases = cases
        self.parties = parties

    def _first_party_id(self, org_id: str, kind: str) -> str:
        try:
            found = self.parties.list_parties_by_org_and_kind(org_id, kind)
        except Exception:
            return ""
        return found[0].id if found else ""

    def submit_inquiry(self, dto: SubmitInquiryDTO) -> str:
        """Open a case for the tenant's first rental and return the work item id."""
        rentals = self.rentals.list_rentals_by_tenant(dto.tenant_party_id)
        if not rentals:
            raise NoRentalFoundError(f"no rental found for tenant {dto.tenant_party_id}")
        rental = rentals[0]

        return self.cases.handle_inbound_inquiry(
            InquiryDTO(
                sender_party_id=dto.tenant_party_id,
                operator_party_id=self._first_party_id(dto.org_id, PARTY_KIND_PROPERTY_MANAGER),
                agent_party_id=self._first_party_id(dto.org_id, PARTY_KIND_ASSISTANT),
                subject_id=rental.subject_id,
                body=dto.body,
            )
        )