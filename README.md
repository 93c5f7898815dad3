# luminor

Building blocks for a property-management back office: user accounts with
roles and party memberships, a case-handling workflow with an assistant in the
loop, a case dashboard read model kept in SQLite, and tenant inquiry intake.

The package is a library. Its parts are plain Python objects that you wire
together yourself; collaborators such as a clock, an event publisher or a
work-item service are passed in as ordinary objects or callables.

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## What is inside

### `luminor.account`

- `luminor.account.models` — the `AccountCore` dataclass with `has_role`,
  `add_role`, `remove_role`, `is_admin`, `role_strings` and `display_name`
  (the e-mail address). `Role` has the values `user` and `admin`;
  `parse_role` turns a stored string back into a `Role`, or returns `None`
  for an unknown one. `new_account` creates an account with a fresh UUID, the
  `user` role and a trimmed, lower-cased e-mail. `PartyMembership` and
  `PendingPartyLink` are frozen dataclasses.
- `luminor.account.service` — `AccountService(repo, clock, bcrypt_rounds=10)`.
  It registers accounts (passwords must be at least eight bytes and are stored
  as bcrypt hashes), authenticates them, changes passwords (clearing the
  must-set-password flag), sets the active organization and party, links
  parties to accounts, and creates and resolves pending party links made for
  invitations. The `clock` is any object with a `now()` method. Failures are
  raised as subclasses of `AccountError`: `EmailAlreadyTakenError`,
  `InvalidCredentialsError`, `AccountNotFoundError`, `PasswordTooShortError`,
  `AlreadyLinkedError`, `PendingLinkNotFoundError` and `ValidationError`
  (which carries a translation `key`).
- `luminor.account.facade` — `AccountFacade(service, publish=None,
  enqueue=None)` exposes the service through frozen DTOs (`AccountInfoDTO`,
  `PartyMembershipDTO`, `RegistrationDTO`). `register` turns a taken e-mail
  or a short password into a `ValidationError` with the key
  `auth.validation.emailTaken` or `auth.validation.passwordTooShort`. After a
  successful registration it calls `publish` with an `AccountCreatedEvent`;
  if that raises and `enqueue` was given, the event is handed to `enqueue`
  instead and a warning is logged. If publishing fails with no `enqueue`, or
  `enqueue` fails too, an `EventPublishError` is raised.
- `luminor.account.repository` — `SqliteAccountRepository`, storage over a
  `sqlite3` connection. Call `create_schema()` once. Each write commits on its
  own unless it runs inside `with repo.transaction():`, which commits at the
  end and rolls back on an exception. Inserting a party membership that
  already exists for the same account and party is silently ignored. Lookups
  that find nothing raise `AccountNotFoundError` or
  `PendingLinkNotFoundError`.
- `luminor.account.subscriber` — `make_org_changed_handler(org_setter)`
  returns a callable that takes an event with `organization_id` and
  `affected_user_id` and calls `org_setter.set_active_organization`. A failure
  is raised again as `ActiveOrganizationUpdateError`, with the account id in
  its message.

### `luminor.casehandling`

- `luminor.casehandling.facade` — `CaseHandlingFacade(workitems, agent,
  subjects).handle_inbound_inquiry(dto)` takes an `InquiryDTO`, opens a work
  item, asks the agent for a lookup (with the subject's name and detail when
  they can be found) and then a draft, records both as assistant actions
  (`ActionKind.LOOKUP` with `DraftStatus.NONE`, then `ActionKind.DRAFT` with
  `DraftStatus.PENDING`) and returns the work item id. A failing step raises
  `CaseHandlingError`, whose `work_item_id` is set once the work item exists.
- `luminor.casehandling.dashboard` — `DashboardStore`, the case dashboard read
  model over a `sqlite3` connection, with `CaseDashboardRow`, `TimelineEntry`
  and `TimelineNote` (the last two convert to and from JSON-ready dicts).
  It upserts rows, appends timeline entries, updates status, lists rows newest
  first, and adds, edits and soft-deletes notes on timeline entries; deleted
  notes are left out of `find_notes_by_entry_index`. A missing case raises
  `CaseNotFoundError`; an entry index out of range raises `IndexError`.
- `luminor.casehandling.projection` — `CaseProjection(store, parties,
  subjects)` has one `on_...` method per work-item event (creation, linked
  party and subject, status change, inbound, assistant and outbound messages,
  added, edited and deleted notes) and applies it to the store. Only parties
  linked in the `sender` role are recorded on the row. An outbound message
  also sets the status to `CaseStatus.RESOLVED`. When a party on the timeline
  cannot be looked up, its id is shown with the kind `unknown`.
- `luminor.casehandling.golden_path` — `seed_golden_path(cases, workitems)`
  submits a lease-renewal inquiry and confirms the reply;
  `seed_pending_case(cases)` submits a parking inquiry, leaves it unconfirmed
  and returns its work item id.

### `luminor.inquiry`

- `luminor.inquiry.facade` — `InquiryFacade(rentals, cases,
  parties).submit_inquiry(dto)` takes a `SubmitInquiryDTO`, uses the tenant's
  first rental to find the subject, picks the organization's first
  `property_manager` and first `assistant` party (an empty id when none is
  found), and hands an `InquiryDTO` to case handling. A tenant without a
  rental gets a `NoRentalFoundError`.

## An example

```python
import sqlite3
from datetime import datetime, timezone

from luminor.account.models import Role
from luminor.account.repository import SqliteAccountRepository
from luminor.account.service import AccountService, InvalidCredentialsError


class SystemClock:
    def now(self):
        return datetime.now(timezone.utc)


repo = SqliteAccountRepository(sqlite3.connect(":memory:"))
repo.create_schema()
service = AccountService(repo, SystemClock(), bcrypt_rounds=4)

password = "password"
account = service.register("  Anna@Example.com ", password)
assert account.email == "anna@example.com"
assert account.has_role(Role.USER)

assert service.authenticate("anna@example.com", password).id == account.id
try:
    service.authenticate("anna@example.com", "secret")
except InvalidCredentialsError:
    pass
```

## What the package does not do

- It has no command-line tool, web server, HTTP routes or pages; sign-in,
  sign-up and case screens are left to the application that uses it.
- It stores only accounts and the case dashboard, both in SQLite. There is no
  storage for organizations, parties, subjects, rentals or work items, and no
  schema migrations beyond `create_schema()`.
- It has no event bus, outbox or background worker: events are delivered by
  whatever `publish`, `enqueue` or handler wiring the caller supplies.
- It has no assistant of its own; the agent that performs lookups and drafts
  is an object you provide.