"""Reaction of the account module to organization changes."""

from __future__ import annotations

import logging
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class ActiveOrganizationUpdateError(Exception):
    """Setting an account's active organization failed."""


class _ActiveOrgSetter(Protocol):
    def set_active_organization(self, account_id: str, org_id: str) -> None: ...


class _ActiveOrgChanged(Protocol):
    organization_id: str
    affected_user_id: str


def make_org_changed_handler(
    org_setter: _ActiveOrgSetter,
) -> Callable[[_ActiveOrgChanged], None]:
    """Build a handler that records an account's newly active organization."""

    def handle(event: _ActiveOrgChanged) -> None:
        logger.info(
            "handling ActiveOrgChangedEvent (account_id=%s, org_id=%s)",
            event.affected_user_id,
            event.organization_id,
        )
        try:
            org_setter.set_active_organization(event.affected_user_id, event.organization_id)
        except Exception as err:
            raise ActiveOrganizationUpdateError(
                f"set active organization for account {event.affected_user_id}: {err}"
            ) from err

    return handle