"""Read model for the case dashboard, stored in SQLite."""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

_SCHEMA = """
CREATE TABLE IF NOT EXISTS case_dashboard (
    work_item_id TEXT PRIMARY KEY,
    status TEXT NOT NULL DEFAULT '',
    party_name TEXT NOT NULL DEFAULT '',
    party_actor_kind TEXT NOT NULL DEFAULT '',
    subject_name TEXT NOT NULL DEFAULT '',
    subject_detail TEXT NOT NULL DEFAULT '',
    timeline_json TEXT NOT NULL DEFAULT '[]',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""

_COLUMNS = (
    "work_item_id, status, party_name, party_actor_kind, subject_name, "
    "subject_detail, timeline_json, created_at, updated_at"
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _format_time(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


@dataclass
class TimelineNote:
    """A note attached to a timeline entry."""

    note_id: str
    author_id: str = ""
    author_name: str = ""
    body: str = ""
    created_at: datetime | None = None
    edited_at: datetime | None = None
    deleted: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "note_id": self.note_id,
            "author_id": self.author_id,
            "author_name": self.author_name,
            "body": self.body,
            "created_at": _format_time(self.created_at),
        }
        if self.edited_at is not None:
            data["edited_at"] = _format_time(self.edited_at)
        if self.deleted:
            data["deleted"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TimelineNote:
        return cls(
            note_id=data.get("note_id", ""),
            author_id=data.get("author_id", ""),
            author_name=data.get("author_name", ""),
            body=data.get("body", ""),
            created_at=_parse_time(data.get("created_at")),
            edited_at=_parse_time(data.get("edited_at")),
            deleted=bool(data.get("deleted", False)),
        )


@dataclass
class TimelineEntry:
    """A single entry in a case timeline."""

    event_type: str
    actor_name: str = ""
    actor_kind: str = ""
    content: str = ""
    draft_status: str = ""
    recorded_at: datetime | None = None
    notes: list[TimelineNote] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "event_type": self.event_type,
            "actor_name": self.actor_name,
            "actor_kind": self.actor_kind,
            "content": self.content,
        }
        if self.draft_status:
            data["draft_status"] = self.draft_status
        data["recorded_at"] = _format_time(self.recorded_at)
        if self.notes:
            data["notes"] = [n.to_dict() for n in self.notes]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TimelineEntry:
        return cls(
            event_type=data.get("event_type", ""),
            actor_name=data.get("actor_name", ""),
            actor_kind=data.get("actor_kind", ""),
            content=data.get("content", ""),
            draft_status=data.get("draft_status", ""),
            recorded_at=_parse_time(data.get("recorded_at")),
            notes=[TimelineNote.from_dict(n) for n in data.get("notes") or []],
        )


@dataclass
class CaseDashboardRow:
    """One row of the case dashboard read model."""

    work_item_id: str
    status: str = ""
    party_name: str = ""
    party_actor_kind: str = ""
    subject_name: str = ""
    subject_detail: str = ""
    timeline: list[TimelineEntry] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CaseNotFoundError(LookupError):
    """No dashboard row exists for the work item."""


def _load_timeline(raw: str | None) -> list[TimelineEntry]:
    return [TimelineEntry.from_dict(e) for e in json.loads(raw or "[]") or []]


def _dump_timeline(timeline: list[TimelineEntry]) -> str:
    return json.dumps([e.to_dict() for e in timeline])


def _scan_row(row: tuple[Any, ...]) -> CaseDashboardRow:
    (wid, status, party_name, actor_kind, subject_name, subject_detail, tl, created, updated) = row
    return CaseDashboardRow(
        work_item_id=wid,
        status=status,
        party_name=party_name,
        party_actor_kind=actor_kind,
        subject_name=subject_name,
        subject_detail=subject_detail,
        timeline=_load_timeline(tl),
        created_at=_parse_time(created),
        updated_at=_parse_time(updated),
    )


def _find_note(timeline: list[TimelineEntry], note_id: str) -> TimelineNote:
    for entry in timeline:
        for note in entry.notes:
            if note.note_id == note_id:
                return note
    raise LookupError(f"note {note_id} not found")


class DashboardStore:
    """Read-model operations for the case dashboard."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._conn = connection

    def create_schema(self) -> None:
        self._conn.executescript(_SCHEMA)

    def upsert(self, row: CaseDashboardRow) -> None:
        """Insert a row, or overwrite every column but the creation time."""
        now = _format_time(_now())
        with self._conn:
            self._conn.execute(
                f"INSERT INTO case_dashboard ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?) "
                "ON CONFLICT (work_item_id) DO UPDATE SET "
                "status = excluded.status, party_name = excluded.party_name, "
                "party_actor_kind = excluded.party_actor_kind, "
                "subject_name = excluded.subject_name, subject_detail = excluded.subject_detail, "
                "timeline_json = excluded.timeline_json, updated_at = excluded.updated_at",
                (
                    row.work_item_id,
                    row.status,
                    row.party_name,
                    row.party_actor_kind,
                    row.subject_name,
                    row.subject_detail,
                    _dump_timeline(row.timeline),
                    _format_time(row.created_at) or now,
                    now,
                ),
            )

    def _read_timeline(self, work_item_id: str) -> list[TimelineEntry] | None:
        found = self._conn.execute(
            "SELECT timeline_json FROM case_dashboard WHERE work_item_id = ?", (work_item_id,)
        ).fetchone()
        return None if found is None else _load_timeline(found[0])

    def _save_timeline(self, work_item_id: str, timeline: list[TimelineEntry]) -> None:
        self._conn.execute(
            "UPDATE case_dashboard SET timeline_json = ?, updated_at = ? WHERE work_item_id = ?",
            (_dump_timeline(timeline), _format_time(_now()), work_item_id),
        )

    def append_timeline(self, work_item_id: str, entry: TimelineEntry) -> None:
        """Append an entry to the row's timeline; a missing row is left alone."""
        with self._conn:
            timeline = self._read_timeline(work_item_id)
            if timeline is None:
                return
            timeline.append(entry)
            self._save_timeline(work_item_id, timeline)

    def update_status(self, work_item_id: str, status: str) -> None:
        with self._conn:
            self._conn.execute(
                "UPDATE case_dashboard SET status = ?, updated_at = ? WHERE work_item_id = ?",
                (status, _format_time(_now()), work_item_id),
            )

    def find_all(self) -> list[CaseDashboardRow]:
        """All rows, newest first."""
        rows = self._conn.execute(
            f"SELECT {_COLUMNS} FROM case_dashboard ORDER BY created_at DESC, rowid DESC"
        ).fetchall()
        return [_scan_row(r) for r in rows]

    def find_by_id(self, work_item_id: str) -> CaseDashboardRow:
        found = self._conn.execute(
            f"SELECT {_COLUMNS} FROM case_dashboard WHERE work_item_id = ?", (work_item_id,)
        ).fetchone()
        if found is None:
            raise CaseNotFoundError(f"case not found: {work_item_id}")
        return _scan_row(found)

    def delete_all(self) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM case_dashboard")

    def _modify_timeline(
        self, work_item_id: str, change: Callable[[list[TimelineEntry]], None]
    ) -> None:
        with self._conn:
            timeline = self._read_timeline(work_item_id)
            if timeline is None:
                raise CaseNotFoundError(f"case not found: {work_item_id}")
            change(timeline)
            self._save_timeline(work_item_id, timeline)

    def add_note_to_timeline(self, work_item_id: str, entry_index: int, note: TimelineNote) -> None:
        def change(timeline: list[TimelineEntry]) -> None:
            if not 0 <= entry_index < len(timeline):
                raise IndexError(
                    f"entry index {entry_index} out of range (len={len(timeline)})"
                )
            timeline[entry_index].notes.append(note)

        self._modify_timeline(work_item_id, change)

    def edit_note_on_timeline(
        self, work_item_id: str, note_id: str, body: str, edited_at: datetime
    ) -> None:
        def change(timeline: list[TimelineEntry]) -> None:
            note = _find_note(timeline, note_id)
            note.body = body
            note.edited_at = edited_at

        self._modify_timeline(work_item_id, change)

    def delete_note_on_timeline(self, work_item_id: str, note_id: str) -> None:
        def change(timeline: list[TimelineEntry]) -> None:
            _find_note(timeline, note_id).deleted = True

        self._modify_timeline(work_item_id, change)

    def find_notes_by_entry_index(self, work_item_id: str, entry_index: int) -> list[TimelineNote]:
        """The entry's notes that have not been deleted."""
        case = self.find_by_id(work_item_id)
        if not 0 <= entry_index < len(case.timeline):
            raise IndexError(f"entry index {entry_index} out of range")
        return [n for n in case.timeline[entry_index].notes if not n.deleted]