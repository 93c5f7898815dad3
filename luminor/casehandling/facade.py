"""Orchestration of an inbound inquiry: intake plus assistant lookup and draft."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Protocol, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ActionKind(str, Enum):
    """The kind of action an assistant performs on a work item."""

    LOOKUP = "lookup"
    DRAFT = "draft"

    def __str__(self) -> str:
        return self.value


class DraftStatus(str, Enum):
    """The state of a drafted reply."""

    NONE = "none"
    PENDING = "pending"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class InquiryDTO:
    """The data needed to handle an inbound inquiry."""

    sender_party_id: str
    operator_party_id: str
    agent_party_id: str
    subject_id: str
    body: str


class CaseHandlingError(Exception):
    """A step of case handling failed.

    ``work_item_id`` holds the work item created before the failure, if any.
    """

    def __init__(self, message: str, work_item_id: str | None = None) -> None:
        super().__init__(message)
        self.work_item_id = work_item_id


class _WorkItems(Protocol):
    def intake_inbound_message(
        self,
        *,
        sender_party_id: str,
        subject_id: str,
        body: str,
        handler_party_id: str,
        agent_party_id: str,
    ) -> str: ...

    def record_assistant_action(
        self,
        work_item_id: str,
        *,
        actor_id: str,
        action_kind: ActionKind,
        output: str,
        draft_status: DraftStatus,
    ) -> None: ...


class _Agent(Protocol):
    def execute(
        self, *, work_item_id: str, action_kind: ActionKind, context: dict[str, str]
    ) -> str: ...


class _SubjectInfo(Protocol):
    name: str
    detail: str


class _Subjects(Protocol):
    def get_subject_info(self, subject_id: str) -> _SubjectInfo: ...


def _step(work_item_id: str, label: str, fn: Callable[..., T], **kwargs: Any) -> T:
    try:
        return fn(**kwargs)
    except Exception as err:
        raise CaseHandlingError(f"{label}: {err}", work_item_id) from err


class CaseHandlingFacade:
    """Runs the intake and assistant support flow for inbound inquiries."""

    def __init__(self, workitems: _WorkItems, agent: _Agent, subjects: _Subjects) -> None:
        self.workitems = workitems
        self.agent = agent
        self.subjects = subjects

    def handle_inbound_inquiry(self, dto: InquiryDTO) -> str:
        """Create a work item, let the assistant look up and draft, and return its id."""
        try:
            work_item_id = self.workitems.intake_inbound_message(
                sender_party_id=dto.sender_party_id,
                subject_id=dto.subject_id,
                body=dto.body,
                handler_party_id=dto.operator_party_id,
                agent_party_id=dto.agent_party_id,
            )
        except Exception as err:
            raise CaseHandlingError(f"intake inbound message: {err}") from err

        logger.info("work item created (work_item_id=%s)", work_item_id)

        lookup_context = {"subject_id": dto.subject_id}
        try:
            subject = self.subjects.get_subject_info(dto.subject_id)
        except Exception:
            pass
        else:
            lookup_context["subject_name"] = subject.name
            lookup_context["subject_detail"] = subject.detail

        lookup_output = _step(
            work_item_id,
            "agent lookup",
            self.agent.execute,
            work_item_id=work_item_id,
            action_kind=ActionKind.LOOKUP,
            context=lookup_context,
        )
        _step(
            work_item_id,
            "record lookup action",
            self.workitems.record_assistant_action,
            work_item_id=work_item_id,
            actor_id=dto.agent_party_id,
            action_kind=ActionKind.LOOKUP,
            output=lookup_output,
            draft_status=DraftStatus.NONE,
        )

        draft_output = _step(
            work_item_id,
            "agent draft",
            self.agent.execute,
            work_item_id=work_item_id,
            action_kind=ActionKind.DRAFT,
            context={"lookup_result": lookup_output, "inbound_body": dto.body},
        )
        _step(
            work_item_id,
            "record draft action",
            self.workitems.record_assistant_action,
            work_item_id=work_item_id,
            actor_id=dto.agent_party_id,
            action_kind=ActionKind.DRAFT,
            output=draft_output,
            draft_status=DraftStatus.PENDING,
        )

        logger.info("inbound inquiry handled (work_item_id=%s)", work_item_id)
        return work_item_id