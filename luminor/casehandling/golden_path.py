"""Demo scenarios that seed cases through the case handling flow."""

from __future__ import annotations

import logging
from typing import Protocol

from .facade import CaseHandlingError, InquiryDTO

logger = logging.getLogger(__name__)

_SENDER = "party-anna-schmidt"
_OPERATOR = "party-sarah"
_AGENT = "party-ki-assistent"
_SUBJECT = "subject-flussufer-12a"

_RENEWAL_INQUIRY = (
    "Ich möchte meinen Mietvertrag für die Einheit 12A in den Flussufer Apartments "
    "verlängern. Können Sie mir die aktuellen Konditionen mitteilen?"
)
_PARKING_INQUIRY = (
    "Gibt es die Möglichkeit, einen Stellplatz in der Tiefgarage zusätzlich "
    "zu meinem Mietvertrag zu buchen?"
)
_RENEWAL_REPLY = (
    "Sehr geehrte Frau Schmidt,\n\nvielen Dank für Ihre Anfrage zur "
    "Mietvertragsverlängerung für die Einheit 12A in den Flussufer Apartments.\n\n"
    "Nach Prüfung Ihres Vertrags können wir Ihnen eine Verlängerung zu den aktualisierten "
    "Konditionen anbieten. Die angepasste Miete beträgt 1.496 EUR/Monat "
    "(Marktanpassung +3,2%).\n\nBitte bestätigen Sie, ob Sie mit den neuen "
    "Konditionen einverstanden sind.\n\nMit freundlichen Grüßen,\nIhr Verwaltungsteam"
)


class _Cases(Protocol):
    def handle_inbound_inquiry(self, dto: InquiryDTO) -> str: ...


class _WorkItems(Protocol):
    def confirm_outbound_message(
        self, work_item_id: str, *, confirmed_by_party_id: str, body: str
    ) -> None: ...


def _inquiry(body: str) -> InquiryDTO:
    return InquiryDTO(
        sender_party_id=_SENDER,
        operator_party_id=_OPERATOR,
        agent_party_id=_AGENT,
        subject_id=_SUBJECT,
        body=body,
    )


def seed_golden_path(cases: _Cases, workitems: _WorkItems) -> None:
    """A lease renewal request that the assistant drafts and the operator confirms."""
    logger.info("seeding golden path: FALL-2024-1842")
    try:
        work_item_id = cases.handle_inbound_inquiry(_inquiry(_RENEWAL_INQUIRY))
    except Exception as err:
        raise CaseHandlingError(f"handle inbound inquiry: {err}") from err

    logger.info("golden path: work item created (work_item_id=%s)", work_item_id)

    try:
        workitems.confirm_outbound_message(
            work_item_id, confirmed_by_party_id=_OPERATOR, body=_RENEWAL_REPLY
        )
    except Exception as err:
        raise CaseHandlingError(f"confirm and send: {err}", work_item_id) from err

    logger.info("golden path: case resolved (work_item_id=%s)", work_item_id)


def seed_pending_case(cases: _Cases) -> str:
    """A case left awaiting confirmation; returns its work item id."""
    logger.info("seeding pending case")
    try:
        work_item_id = cases.handle_inbound_inquiry(_inquiry(_PARKING_INQUIRY))
    except Exception as err:
        raise CaseHandlingError(f"handle inbound inquiry (pending): {err}") from err
    logger.info("pending case seeded (work_item_id=%s)", work_item_id)
    return work_item_id