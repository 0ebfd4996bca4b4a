from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Sequence

from servicedesk.auth.tokens import Identity
from servicedesk.core.clock import Clock, MonotonicIds, utc_now
from servicedesk.core.errors import Forbidden, NotFound, ValidationError
from servicedesk.users.repository import UserRepository

from .attachments import AttachmentStorage, IncomingFile
from .models import Interaction, Ticket, TicketStatus
from .patches import AdminPatch, parse_patch
from .repository import TicketRepository

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "client", "category", "description", "priority", "requester")

# stored (camelCase) key -> Ticket attribute
_PATCHABLE_ATTRIBUTES = {
    "title": "title",
    "client": "client",
    "category": "category",
    "description": "description",
    "priority": "priority",
    "requester": "requester",
    "status": "status",
    "assignedAnalyst": "assigned_analyst",
}


def _sort_key(ticket: Ticket) -> tuple[int, str]:
    return (int(ticket.id) if ticket.id.isdigit() else 0, ticket.id)


class TicketService:
    """Ticket lifecycle: creation, role-scoped updates, interactions and attachments."""

    def __init__(
        self,
        repository: TicketRepository,
        users: UserRepository,
        attachments: AttachmentStorage,
        *,
        ids: MonotonicIds | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._repository = repository
        self._users = users
        self._attachments = attachments
        self._clock = clock
        self._ids = ids or MonotonicIds(clock)

    @property
    def max_upload_bytes(self) -> int:
        """Largest attachment accepted, in bytes."""

        return self._attachments.max_bytes

    async def list_tickets(self) -> Sequence[Ticket]:
        tickets = list(await self._repository.list_all())
        tickets.sort(key=_sort_key, reverse=True)
        return tickets

    async def list_created_by(self, name: str) -> Sequence[Ticket]:
        """Tickets whose creator name matches ``name`` ignoring case."""

        wanted = (name or "").strip().casefold()
        return [ticket for ticket in await self.list_tickets() if ticket.created_by.strip().casefold() == wanted]

    async def get_ticket(self, ticket_id: str) -> Ticket:
        ticket = await self._repository.get(ticket_id)
        if ticket is None:
            raise NotFound("Ticket not found")
        return ticket

    async def create_ticket(
        self,
        *,
        fields: dict[str, str | None],
        files: Sequence[IncomingFile] = (),
        actor: Identity,
    ) -> Ticket:
        values = {name: (fields.get(name) or "").strip() for name in REQUIRED_FIELDS}
        missing = [name for name, value in values.items() if not value]
        if missing:
            raise ValidationError(f"Required fields missing: {', '.join(missing)}")

        now = self._clock()
        attachments = self._attachments.store_all(files, uploaded_by=actor.name, now=now)
        ticket = Ticket(
            id=self._ids.next_id(),
            status=TicketStatus.OPEN.value,
            created_at=now,
            created_by=actor.name,
            attachments=attachments,
            **values,
        )
        await self._repository.add(ticket)
        logger.info("Ticket %s created by %s with %d attachment(s)", ticket.id, actor.name, len(attachments))
        return ticket

    async def update_ticket(self, ticket_id: str, payload: dict[str, Any], *, actor: Identity) -> Ticket:
        """Merge ``payload`` into the ticket using the schema of the caller's role."""

        patch = parse_patch(actor.role, payload)
        changes = patch.changes()
        now = self._clock()

        def apply(ticket: Ticket, _others: list[Ticket]) -> Ticket:
            updated = replace(ticket, extra=dict(ticket.extra), updated_at=now)
            for key, value in changes.items():
                attribute = _PATCHABLE_ATTRIBUTES.get(key)
                if attribute is not None:
                    setattr(updated, attribute, value)
                elif isinstance(patch, AdminPatch):
                    updated.extra[key] = value
            return updated

        return await self._update(ticket_id, apply)

    async def delete_ticket(self, ticket_id: str, *, actor: Identity) -> Ticket:
        if not actor.is_admin():
            raise Forbidden("Only administrators can delete tickets")
        removed = await self._repository.delete(ticket_id)
        if removed is None:
            raise NotFound("Ticket not found")
        for attachment in removed.attachments:
            self._attachments.remove(attachment.stored_name)
        logger.info("Ticket %s deleted by %s", ticket_id, actor.name)
        return removed

    async def add_attachments(self, ticket_id: str, files: Sequence[IncomingFile], *, actor: Identity) -> Ticket:
        if not files:
            raise ValidationError("No file sent")
        await self.get_ticket(ticket_id)

        attachments = self._attachments.store_all(files, uploaded_by=actor.name, now=self._clock())
        try:
            return await self._update(
                ticket_id,
                lambda ticket, _others: replace(ticket, attachments=[*ticket.attachments, *attachments]),
            )
        except NotFound:
            for attachment in attachments:
                self._attachments.remove(attachment.stored_name)
            raise

    async def remove_attachment(self, ticket_id: str, stored_name: str, *, actor: Identity) -> Ticket:
        if not actor.is_admin():
            raise Forbidden("Only administrators can remove attachments")
        ticket = await self.get_ticket(ticket_id)
        if ticket.find_attachment(stored_name) is None:
            raise NotFound("Attachment not found")

        updated = await self._update(
            ticket_id,
            lambda current, _others: replace(
                current,
                attachments=[item for item in current.attachments if item.stored_name != stored_name],
            ),
        )
        self._attachments.remove(stored_name)
        return updated

    async def add_interaction(self, ticket_id: str, message: str, *, actor: Identity) -> Ticket:
        text = (message or "").strip()
        if not text:
            raise ValidationError("Message is required")
        now = self._clock()
        interaction = Interaction(timestamp=now, author=actor.name, role=actor.role.value, message=text)

        def append(ticket: Ticket, _others: list[Ticket]) -> Ticket:
            status = ticket.status
            if status == TicketStatus.OPEN.value:
                status = TicketStatus.IN_PROGRESS.value
            return replace(ticket, interactions=[*ticket.interactions, interaction], status=status, updated_at=now)

        return await self._update(ticket_id, append)

    async def assign(self, ticket_id: str, analyst: str | None, *, actor: Identity) -> Ticket:
        """Set the ticket's analyst.

        Analysts can only claim a ticket for themselves. Administrators name any
        existing login; the user's stored name is what gets recorded.
        """

        if actor.is_admin():
            if not (analyst or "").strip():
                raise ValidationError("Inform the analyst login")
            user = await self._users.find_by_login(analyst)
            if user is None:
                raise ValidationError("Analyst not found")
            assignee = user.name
        else:
            requested = (analyst or "").strip()
            if requested and requested.casefold() != actor.name.casefold():
                named = await self._users.find_by_login(requested)
                if named is None or named.id != actor.id:
                    raise Forbidden("Analysts can only assign tickets to themselves")
            assignee = actor.name

        now = self._clock()
        updated = await self._update(
            ticket_id,
            lambda ticket, _others: replace(ticket, assigned_analyst=assignee, updated_at=now),
        )
        logger.info("Ticket %s assigned to %s by %s", ticket_id, assignee, actor.name)
        return updated

    async def _update(self, ticket_id: str, change) -> Ticket:
        updated = await self._repository.update(ticket_id, change)
        if updated is None:
            raise NotFound("Ticket not found")
        return updated
