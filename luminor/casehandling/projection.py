"""Projection of work item events into the case dashboard read model."""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from .dashboard import CaseDashboardRow, TimelineEntry, TimelineNote

logger = logging.getLogger(__name__)

_SENDER_ROLE = "sender"


class CaseStatus(str, Enum):
    """The status of a case as shown on the dashboard."""

    NEW = "new"
    IN_PROGRESS = "in_progress"
    PENDING_CONFIRMATION = "pending_confirmation"
    RESOLVED = "resolved"

    def __str__(self) -> str:
        return self.value


def _text(value: Any) -> str:
    return str(getattr(value, "value", value))


class _Store(Protocol):
    def upsert(self, row: CaseDashboardRow) -> None: ...
    def append_timeline(self, work_item_id: str, entry: TimelineEntry) -> None: ...
    def update_status(self, work_item_id: str, status: str) -> None: ...
    def add_note_to_timeline(self, work_item_id: str, entry_index: int, note: TimelineNote) -> None: ...
    def edit_note_on_timeline(
        self, work_item_id: str, note_id: str, body: str, edited_at: datetime
    ) -> None: ...
    def delete_note_on_timeline(self, work_item_id: str, note_id: str) -> None: ...


class _Parties(Protocol):
    def get_party_info(self, party_id: str) -> Any: ...


class _Subjects(Protocol):
    def get_subject_info(self, subject_id: str) -> Any: ...


class CaseProjection:
    """Applies work item events to the dashboard store."""

    def __init__(self, store: _Store, parties: _Parties, subjects: _Subjects) -> None:
        self.store = store
        self.parties = parties
        self.subjects = subjects

    def _resolve_party(self, party_id: str) -> tuple[str, str]:
        try:
            info = self.parties.get_party_info(party_id)
        except Exception as err:
            logger.warning("party lookup failed for timeline (party_id=%s, error=%s)", party_id, err)
            return party_id, "unknown"
        return info.name, _text(info.actor_kind)

    def on_work_item_created(self, work_item_id: str, created_at: datetime) -> None:
        logger.info("projecting WorkItemCreatedEvent (work_item_id=%s)", work_item_id)
        self.store.upsert(
            CaseDashboardRow(
                work_item_id=work_item_id, status=CaseStatus.NEW.value, created_at=created_at
            )
        )

    def on_party_linked(self, work_item_id: str, party_id: str, role: str) -> None:
        """Record the sender's name and kind; other roles are ignored."""
        if _text(role) != _SENDER_ROLE:
            return
        logger.info(
            "projecting PartyLinkedEvent (sender) (work_item_id=%s, party_id=%s)",
            work_item_id,
            party_id,
        )
        try:
            info = self.parties.get_party_info(party_id)
        except Exception as err:
            raise LookupError(f"lookup party {party_id}: {err}") from err
        self.store.upsert(
            CaseDashboardRow(
                work_item_id=work_item_id,
                party_name=info.name,
                party_actor_kind=_text(info.actor_kind),
            )
        )

    def on_subject_linked(self, work_item_id: str, subject_id: str) -> None:
        logger.info(
            "projecting SubjectLinkedEvent (work_item_id=%s, subject_id=%s)", work_item_id, subject_id
        )
        try:
            info = self.subjects.get_subject_info(subject_id)
        except Exception as err:
            raise LookupError(f"lookup subject {subject_id}: {err}") from err
        self.store.upsert(
            CaseDashboardRow(
                work_item_id=work_item_id, subject_name=info.name, subject_detail=info.detail
            )
        )

    def on_status_changed(self, work_item_id: str, new_status: str) -> None:
        logger.info(
            "projecting WorkItemStatusChangedEvent (work_item_id=%s, new_status=%s)",
            work_item_id,
            new_status,
        )
        self.store.update_status(work_item_id, _text(new_status))

    def on_inbound_message(
        self, work_item_id: str, sender_id: str, body: str, recorded_at: datetime
    ) -> None:
        logger.info("projecting InboundMessageRecordedEvent (work_item_id=%s)", work_item_id)
        name, kind = self._resolve_party(sender_id)
        self.store.append_timeline(
            work_item_id,
            TimelineEntry(
                event_type="inbound_message",
                actor_name=name,
                actor_kind=kind,
                content=body,
                recorded_at=recorded_at,
            ),
        )

    def on_assistant_action(
        self,
        work_item_id: str,
        actor_id: str,
        action_kind: str,
        output: str,
        draft_status: str,
        recorded_at: datetime,
    ) -> None:
        logger.info(
            "projecting AssistantActionRecordedEvent (work_item_id=%s, action_kind=%s)",
            work_item_id,
            action_kind,
        )
        name, kind = self._resolve_party(actor_id)
        self.store.append_timeline(
            work_item_id,
            TimelineEntry(
                event_type="assistant_action_" + _text(action_kind),
                actor_name=name,
                actor_kind=kind,
                content=output,
                draft_status=_text(draft_status),
                recorded_at=recorded_at,
            ),
        )

    def on_outbound_message(
        self, work_item_id: str, confirmed_by: str, body: str, recorded_at: datetime
    ) -> None:
        """Append the sent message and mark the case resolved."""
        logger.info("projecting OutboundMessageRecordedEvent (work_item_id=%s)", work_item_id)
        name, kind = self._resolve_party(confirmed_by)
        self.store.append_timeline(
            work_item_id,
            TimelineEntry(
                event_type="outbound_message",
                actor_name=name,
                actor_kind=kind,
                content=body,
                recorded_at=recorded_at,
            ),
        )
        self.store.update_status(work_item_id, CaseStatus.RESOLVED.value)

    def on_note_added(
        self,
        work_item_id: str,
        entry_index: int,
        note_id: str,
        author_id: str,
        body: str,
        created_at: datetime,
    ) -> None:
        logger.info(
            "projecting NoteAddedToTimelineEntryEvent (work_item_id=%s, note_id=%s, entry_index=%s)",
            work_item_id,
            note_id,
            entry_index,
        )
        author_name, _ = self._resolve_party(author_id)
        self.store.add_note_to_timeline(
            work_item_id,
            entry_index,
            TimelineNote(
                note_id=note_id,
                author_id=author_id,
                author_name=author_name,
                body=body,
                created_at=created_at,
            ),
        )

    def on_note_edited(
        self, work_item_id: str, note_id: str, body: str, edited_at: datetime
    ) -> None:
        logger.info(
            "projecting NoteEditedOnTimelineEntryEvent (work_item_id=%s, note_id=%s)",
            work_item_id,
            note_id,
        )
        self.store.edit_note_on_timeline(work_item_id, note_id, body, edited_at)

    def on_note_deleted(self, work_item_id: str, note_id: str) -> None:
        logger.info(
            "projecting NoteDeletedFromTimelineEntryEvent (work_item_id=%s, note_id=%s)",
            work_item_id,
            note_id,
        )
        self.store.delete_note_on_timeline(work_item_id, note_id)